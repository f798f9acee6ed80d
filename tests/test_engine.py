"""Tests for the recommendation engine."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from activity_coach.exceptions import (
    AuthRejectedError,
    InvalidEndpointError,
    LLMNotConfiguredError,
    LLMTimeoutError,
    MalformedResponseError,
    NetworkError,
    NoDataAvailableError,
)
from activity_coach.models.recommendation import AdviceSource, MetricKind, TrendVerdict
from activity_coach.models.series import TimeSeriesPoint
from activity_coach.recommendations.engine import RecommendationEngine
from activity_coach.recommendations.templates import recommend


class FakeGenerator:
    """Records prompts and returns canned advice or raises."""

    def __init__(self, advice: str = "Add a tempo run.", error: Exception = None):
        self.advice = advice
        self.error = error
        self.calls = []

    async def generate_advice(self, system_prompt, user_prompt, max_tokens=300, temperature=0.7):
        self.calls.append((system_prompt, user_prompt, max_tokens, temperature))
        if self.error is not None:
            raise self.error
        return self.advice


def _series(*values: float):
    start = datetime(2025, 3, 1, 8, 0, tzinfo=timezone.utc)
    return [
        TimeSeriesPoint(timestamp=start + timedelta(days=i), value=v, distance=5000.0)
        for i, v in enumerate(values)
    ]


class TestLocalRecommendation:
    """Tests for the synchronous path."""

    def test_classify_and_recommend(self):
        engine = RecommendationEngine(generator=FakeGenerator())
        verdict = engine.classify(_series(3.0, 3.1, 3.3), MetricKind.SPEED)

        recommendation = engine.recommend(verdict, MetricKind.SPEED)

        assert verdict is TrendVerdict.IMPROVEMENT
        assert recommendation.headline == "Your speed is improving!"
        assert recommendation.source is AdviceSource.TEMPLATE


class TestBuildPrompt:
    """Tests for prompt construction."""

    def test_empty_series_raises(self):
        engine = RecommendationEngine(generator=FakeGenerator())
        with pytest.raises(NoDataAvailableError):
            engine.build_prompt([], MetricKind.SPEED)

    def test_pace_prompt_has_distribution(self):
        engine = RecommendationEngine(generator=FakeGenerator())
        prompt = engine.build_prompt(_series(13.0, 10.0, 7.0), MetricKind.PACE_DISTRIBUTION)

        assert "Fast Pace (>12 km/h): 1 runs" in prompt
        assert "Total runs: 3" in prompt


class TestExternalAdvice:
    """Tests for recommend_with_external_advice."""

    @pytest.mark.asyncio
    async def test_generated_advice(self):
        generator = FakeGenerator(advice="Hold your long run at 12 km.")
        engine = RecommendationEngine(generator=generator, max_tokens=300, temperature=0.7)

        recommendation = await engine.recommend_with_external_advice(
            _series(5000, 5200, 5600), MetricKind.DISTANCE,
        )

        assert recommendation.source is AdviceSource.LLM
        assert recommendation.headline == "Distance Analysis"
        assert recommendation.advice == "Hold your long run at 12 km."
        assert recommendation.trend_verdict is TrendVerdict.IMPROVEMENT

        system_prompt, user_prompt, max_tokens, temperature = generator.calls[0]
        assert "fitness coach" in system_prompt
        assert "running distance metrics" in user_prompt
        assert (max_tokens, temperature) == (300, 0.7)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        AuthRejectedError(status_code=401),
        AuthRejectedError(status_code=403),
        MalformedResponseError("Could not read response"),
        NetworkError(),
        LLMTimeoutError(timeout_seconds=20),
        InvalidEndpointError("localhost"),
    ])
    async def test_service_failure_falls_back_to_local(self, error):
        """Any service failure yields the same recommendation as the local path."""
        series = _series(3.0, 2.9, 2.7)
        engine = RecommendationEngine(generator=FakeGenerator(error=error))

        recommendation = await engine.recommend_with_external_advice(series, MetricKind.SPEED)

        local = recommend(engine.classify(series, MetricKind.SPEED), MetricKind.SPEED)
        assert recommendation == local
        assert recommendation.source is AdviceSource.FALLBACK

    @pytest.mark.asyncio
    async def test_missing_configuration_falls_back(self):
        def factory():
            raise LLMNotConfiguredError()

        engine = RecommendationEngine(generator_factory=factory)

        recommendation = await engine.recommend_with_external_advice(
            _series(3.0, 3.0, 3.0), MetricKind.SPEED,
        )

        assert recommendation.is_degraded
        assert recommendation.headline == "Your performance is stable."

    @pytest.mark.asyncio
    async def test_empty_series_skips_service(self):
        generator = FakeGenerator()
        engine = RecommendationEngine(generator=generator)

        recommendation = await engine.recommend_with_external_advice([], MetricKind.ELEVATION)

        assert generator.calls == []
        assert recommendation.trend_verdict is TrendVerdict.INSUFFICIENT_DATA
        assert recommendation.is_degraded

    @pytest.mark.asyncio
    async def test_uses_given_verdict(self):
        engine = RecommendationEngine(generator=FakeGenerator(error=NetworkError()))

        recommendation = await engine.recommend_with_external_advice(
            _series(3.0, 3.3), MetricKind.SPEED, verdict=TrendVerdict.DECLINE,
        )

        assert recommendation.trend_verdict is TrendVerdict.DECLINE

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        engine = RecommendationEngine(generator=FakeGenerator(error=asyncio.CancelledError()))

        with pytest.raises(asyncio.CancelledError):
            await engine.recommend_with_external_advice(_series(3.0, 3.1), MetricKind.SPEED)
