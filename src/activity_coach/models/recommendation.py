"""Trend verdicts, metric kinds and recommendations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from ..exceptions import UnknownMetricError


class TrendVerdict(str, Enum):
    """Direction of a metric over the recent window."""

    IMPROVEMENT = "improvement"
    DECLINE = "decline"
    CONSTANT = "constant"
    INSUFFICIENT_DATA = "insufficient_data"


class MetricKind(str, Enum):
    """Metrics that can be classified and advised on."""

    SPEED = "speed"
    DISTANCE = "distance"
    ELEVATION = "elevation"
    PACE_DISTRIBUTION = "pace_distribution"
    PERFORMANCE = "performance"

    @property
    def label(self) -> str:
        """Phrase used in prompts and advice."""
        return _LABELS[self]

    @property
    def title(self) -> str:
        return _TITLES[self]

    @classmethod
    def parse(cls, value: str) -> "MetricKind":
        normalized = value.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise UnknownMetricError(value, field="metric")


_LABELS = {
    MetricKind.SPEED: "running speed",
    MetricKind.DISTANCE: "running distance",
    MetricKind.ELEVATION: "elevation gain",
    MetricKind.PACE_DISTRIBUTION: "pace distribution",
    MetricKind.PERFORMANCE: "overall performance",
}

_TITLES = {
    MetricKind.SPEED: "Speed",
    MetricKind.DISTANCE: "Distance",
    MetricKind.ELEVATION: "Elevation",
    MetricKind.PACE_DISTRIBUTION: "Pace Distribution",
    MetricKind.PERFORMANCE: "Performance",
}


class AdviceSource(str, Enum):
    """Where the advice text came from."""

    TEMPLATE = "template"  # local table, requested directly
    LLM = "llm"            # generated by the text-generation service
    FALLBACK = "fallback"  # local table after the service failed


@dataclass(frozen=True)
class Recommendation:
    """
    Headline and advice for one metric.

    ``source`` is excluded from equality: a fallback recommendation compares
    equal to the local one for the same verdict and metric.
    """

    trend_verdict: TrendVerdict
    headline: str
    advice: str
    source: AdviceSource = field(default=AdviceSource.TEMPLATE, compare=False)

    @property
    def is_enhanced(self) -> bool:
        return self.source is AdviceSource.LLM

    @property
    def is_degraded(self) -> bool:
        return self.source is AdviceSource.FALLBACK

    def with_source(self, source: AdviceSource) -> "Recommendation":
        return Recommendation(
            trend_verdict=self.trend_verdict,
            headline=self.headline,
            advice=self.advice,
            source=source,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trend_verdict": self.trend_verdict.value,
            "headline": self.headline,
            "advice": self.advice,
            "source": self.source.value,
            "degraded": self.is_degraded,
        }
