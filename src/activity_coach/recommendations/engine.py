"""
Recommendation Engine

Combines trend classification with advice text. The enhanced path asks the
text-generation service for advice and always falls back to the template
table when that fails.
"""

import logging
from typing import Callable, Optional, Protocol, Sequence

from ..analysis.aggregation import pace_distribution
from ..analysis.trends import classify
from ..config import get_settings
from ..exceptions import ExternalServiceError, NoDataAvailableError
from ..llm.context_builder import format_series_for_prompt
from ..llm.prompts import ADVICE_SYSTEM, build_advice_prompt
from ..llm.providers import get_llm_client
from ..models.recommendation import (
    AdviceSource,
    MetricKind,
    Recommendation,
    TrendVerdict,
)
from ..models.series import SeriesPoint, TimeSeriesPoint
from .templates import recommend


logger = logging.getLogger(__name__)


class AdviceGenerator(Protocol):
    """Anything that turns a system and user prompt into advice text."""

    async def generate_advice(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.7,
    ) -> str:
        ...


class RecommendationEngine:
    """
    Classify a series and produce a recommendation for it.

    The generator is created lazily so a missing API key only affects the
    enhanced path, and then only as a fallback.
    """

    def __init__(
        self,
        generator: Optional[AdviceGenerator] = None,
        generator_factory: Callable[[], AdviceGenerator] = get_llm_client,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> None:
        settings = get_settings()
        self._generator = generator
        self._generator_factory = generator_factory
        self.max_tokens = max_tokens if max_tokens is not None else settings.llm_max_tokens
        self.temperature = temperature if temperature is not None else settings.llm_temperature

    def _get_generator(self) -> AdviceGenerator:
        if self._generator is None:
            self._generator = self._generator_factory()
        return self._generator

    def classify(self, series: Sequence[SeriesPoint], metric_kind: MetricKind) -> TrendVerdict:
        return classify(series, metric_kind)

    def recommend(self, verdict: TrendVerdict, metric_kind: MetricKind) -> Recommendation:
        return recommend(verdict, metric_kind)

    def build_prompt(self, series: Sequence[SeriesPoint], metric_kind: MetricKind) -> str:
        """
        Build the user prompt for a series.

        Raises:
            NoDataAvailableError: If the series is empty
        """
        metrics = format_series_for_prompt(series, metric_kind)
        if not metrics:
            raise NoDataAvailableError(metric=metric_kind.value)

        distribution = None
        if metric_kind is MetricKind.PACE_DISTRIBUTION:
            runs = [p for p in series if isinstance(p, TimeSeriesPoint)]
            distribution = pace_distribution(runs).describe()

        return build_advice_prompt(metric_kind, metrics, distribution)

    async def request_advice(self, series: Sequence[SeriesPoint], metric_kind: MetricKind) -> str:
        """
        Ask the text-generation service for advice on a series.

        Raises:
            NoDataAvailableError: If the series is empty
            ExternalServiceError: If the service is unusable or the call fails
        """
        prompt = self.build_prompt(series, metric_kind)
        generator = self._get_generator()
        return await generator.generate_advice(
            ADVICE_SYSTEM,
            prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

    async def recommend_with_external_advice(
        self,
        series: Sequence[SeriesPoint],
        metric_kind: MetricKind,
        verdict: Optional[TrendVerdict] = None,
    ) -> Recommendation:
        """
        Recommendation with generated advice, or the local one on failure.

        Never raises for service failures or empty data; cancellation
        propagates unchanged.
        """
        if verdict is None:
            verdict = self.classify(series, metric_kind)

        try:
            advice = await self.request_advice(series, metric_kind)
        except NoDataAvailableError:
            logger.info(f"No {metric_kind.value} data for generated advice, using template")
            return recommend(verdict, metric_kind, source=AdviceSource.FALLBACK)
        except ExternalServiceError as e:
            logger.warning(
                f"Generated advice unavailable for {metric_kind.value} "
                f"({e.code.value}: {e.message}), using template"
            )
            return recommend(verdict, metric_kind, source=AdviceSource.FALLBACK)

        logger.info(f"Generated advice for {metric_kind.value} ({verdict.value})")
        return Recommendation(
            trend_verdict=verdict,
            headline=f"{metric_kind.title} Analysis",
            advice=advice,
            source=AdviceSource.LLM,
        )
