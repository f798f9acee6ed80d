"""Tests for the dashboard service."""

import asyncio

import pytest

from activity_coach.analysis.aggregation import TimeRange
from activity_coach.integrations.base import ActivitySource, IntegrationError
from activity_coach.integrations.strava import StaticActivitySource
from activity_coach.models.recommendation import AdviceSource, MetricKind, TrendVerdict
from activity_coach.recommendations.engine import RecommendationEngine
from activity_coach.services.dashboard import DashboardService


class GatedGenerator:
    """Generator whose calls block until released, one gate per call."""

    def __init__(self):
        self.calls = []
        self.gates = []
        self.cancelled = []
        self.started = asyncio.Event()

    async def generate_advice(self, system_prompt, user_prompt, max_tokens=300, temperature=0.7):
        index = len(self.calls)
        gate = asyncio.Event()
        self.calls.append(user_prompt)
        self.gates.append(gate)
        self.started.set()
        try:
            await gate.wait()
        except asyncio.CancelledError:
            self.cancelled.append(index)
            raise
        return f"advice #{index + 1}"

    async def wait_for_call(self, count: int):
        while len(self.calls) < count:
            self.started.clear()
            await asyncio.wait_for(self.started.wait(), timeout=1)

    def release(self, index: int):
        self.gates[index].set()


class FailingSource(ActivitySource):
    provider = "failing"

    async def list_recent_activities(self):
        raise IntegrationError("upstream unavailable", self.provider, "network")


@pytest.fixture
def service_factory(now):
    def _make(activities=None, generator=None, source=None):
        engine = RecommendationEngine(generator=generator or GatedGenerator())
        return DashboardService(
            source=source or StaticActivitySource(activities or []),
            engine=engine,
            clock=lambda: now,
        )
    return _make


class TestRefresh:
    """Tests for snapshot refresh."""

    @pytest.mark.asyncio
    async def test_refresh_builds_snapshot(self, service_factory, improving_week):
        service = service_factory(improving_week)

        snapshot = await service.refresh()

        assert snapshot is service.snapshot
        assert snapshot.record_count == 5
        assert len(snapshot.trend) == 5

    @pytest.mark.asyncio
    async def test_newest_first_source_classified_chronologically(self, service_factory, improving_week):
        """Strava lists newest first; verdicts must match the oldest-first order."""
        service = service_factory(list(reversed(improving_week)))

        await service.refresh()

        for kind in (MetricKind.SPEED, MetricKind.DISTANCE, MetricKind.ELEVATION, MetricKind.PERFORMANCE):
            assert service.classify_trend(kind, TimeRange.WEEK) is TrendVerdict.IMPROVEMENT
        speeds = [p.value for p in service.get_filtered_series(MetricKind.SPEED, TimeRange.WEEK)]
        assert speeds == [2.8, 2.9, 3.0, 3.1, 3.3]

    @pytest.mark.asyncio
    async def test_source_failure_means_no_data(self, service_factory):
        service = service_factory(source=FailingSource())

        snapshot = await service.refresh()

        assert snapshot.is_empty
        assert service.classify_trend(MetricKind.SPEED, TimeRange.WEEK) is TrendVerdict.INSUFFICIENT_DATA

    @pytest.mark.asyncio
    async def test_no_source(self, now):
        service = DashboardService(source=None, engine=RecommendationEngine(generator=GatedGenerator()), clock=lambda: now)
        snapshot = await service.refresh()
        assert snapshot.is_empty

    def test_load_records_replaces_snapshot(self, service_factory, improving_week, activity_factory):
        service = service_factory()
        service.load_records(improving_week)
        assert service.snapshot.record_count == 5

        service.load_records([activity_factory(1)])
        assert service.snapshot.record_count == 1


class TestQueries:
    """Tests for filtered series, verdicts and summaries."""

    def test_series_per_metric(self, service_factory, improving_week, activity_factory):
        service = service_factory()
        service.load_records(improving_week + [activity_factory(20)])

        assert len(service.get_filtered_series(MetricKind.SPEED, TimeRange.WEEK)) == 5
        assert len(service.get_filtered_series(MetricKind.SPEED, TimeRange.MONTH)) == 6
        assert len(service.get_filtered_series(MetricKind.PERFORMANCE, TimeRange.WEEK)) == 5
        assert len(service.get_filtered_series(MetricKind.PACE_DISTRIBUTION, TimeRange.WEEK)) == 5

    def test_classify_and_local_recommendation(self, service_factory, improving_week):
        service = service_factory()
        service.load_records(improving_week)

        assert service.classify_trend(MetricKind.SPEED, TimeRange.WEEK) is TrendVerdict.IMPROVEMENT
        assert service.classify_trend(MetricKind.ELEVATION, TimeRange.WEEK) is TrendVerdict.IMPROVEMENT

        recommendation = service.get_local_recommendation(MetricKind.DISTANCE, TimeRange.WEEK)
        assert recommendation.headline == "Your distance capacity is growing!"
        assert recommendation.source is AdviceSource.TEMPLATE

    def test_summary(self, service_factory, improving_week):
        service = service_factory()
        service.load_records(improving_week)

        summary = service.summary(TimeRange.WEEK)

        assert summary.activity_count == 5
        assert summary.average_speed == pytest.approx((2.8 + 2.9 + 3.0 + 3.1 + 3.3) / 5)
        assert summary.max_elevation == 70
        assert summary.verdicts[MetricKind.PERFORMANCE] is TrendVerdict.IMPROVEMENT
        assert summary.pace["total"] == 5

        data = summary.to_dict()
        assert data["time_range"] == "week"
        assert data["verdicts"]["speed"] == "improvement"

    def test_summary_of_empty_window(self, service_factory):
        summary = service_factory().summary(TimeRange.YEAR)
        assert summary.activity_count == 0
        assert summary.average_distance == 0
        assert summary.max_elevation == 1.0
        assert set(summary.verdicts.values()) == {TrendVerdict.INSUFFICIENT_DATA}


class TestEnhancedRecommendations:
    """Tests for in-flight de-duplication, generations and cancellation."""

    @pytest.mark.asyncio
    async def test_returns_generated_advice(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        request = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)
        generator.release(0)
        recommendation = await request

        assert recommendation.source is AdviceSource.LLM
        assert recommendation.advice == "advice #1"
        assert service.latest_recommendation(MetricKind.SPEED, TimeRange.WEEK) == recommendation
        assert generator.cancelled == []

    @pytest.mark.asyncio
    async def test_last_caller_leaving_cancels_request(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        request = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)

        request.cancel()
        with pytest.raises(asyncio.CancelledError):
            await request
        generator.release(0)
        await asyncio.sleep(0.01)

        assert generator.cancelled == [0]
        assert service.latest_recommendation(MetricKind.SPEED, TimeRange.WEEK) is None
        assert not service.cancel_pending(MetricKind.SPEED, TimeRange.WEEK)

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        first = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)
        second = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await asyncio.sleep(0)
        generator.release(0)

        results = await asyncio.gather(first, second)

        assert len(generator.calls) == 1
        assert results[0] == results[1]

    @pytest.mark.asyncio
    async def test_different_slots_are_independent(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        week = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)
        month = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.MONTH))
        await generator.wait_for_call(2)
        generator.release(0)
        generator.release(1)
        await asyncio.gather(week, month)

        assert len(generator.calls) == 2

    @pytest.mark.asyncio
    async def test_superseded_request_is_not_published(self, service_factory, improving_week, activity_factory):
        """A request started before a refresh never overwrites a newer one."""
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        stale = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)

        service.load_records(improving_week + [activity_factory(0.5, speed=3.6)])
        fresh = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(2)

        generator.release(1)
        fresh_result = await fresh
        generator.release(0)
        stale_result = await stale

        assert stale_result.advice == "advice #1"
        assert fresh_result.advice == "advice #2"
        assert service.latest_recommendation(MetricKind.SPEED, TimeRange.WEEK).advice == "advice #2"

    @pytest.mark.asyncio
    async def test_cancelled_request_publishes_nothing(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        request = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)

        assert service.cancel_pending(MetricKind.SPEED, TimeRange.WEEK)
        with pytest.raises(asyncio.CancelledError):
            await request

        assert service.latest_recommendation(MetricKind.SPEED, TimeRange.WEEK) is None
        assert not service.cancel_pending(MetricKind.SPEED, TimeRange.WEEK)

    @pytest.mark.asyncio
    async def test_one_caller_leaving_keeps_shared_request(self, service_factory, improving_week):
        generator = GatedGenerator()
        service = service_factory(generator=generator)
        service.load_records(improving_week)

        leaving = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await generator.wait_for_call(1)
        staying = asyncio.ensure_future(service.get_enhanced_recommendation(MetricKind.SPEED, TimeRange.WEEK))
        await asyncio.sleep(0)

        leaving.cancel()
        with pytest.raises(asyncio.CancelledError):
            await leaving

        generator.release(0)
        recommendation = await staying

        assert recommendation.advice == "advice #1"
        assert service.latest_recommendation(MetricKind.SPEED, TimeRange.WEEK) == recommendation
        assert generator.cancelled == []

    @pytest.mark.asyncio
    async def test_empty_window_falls_back(self, service_factory):
        generator = GatedGenerator()
        service = service_factory(generator=generator)

        recommendation = await service.get_enhanced_recommendation(MetricKind.ELEVATION, TimeRange.WEEK)

        assert generator.calls == []
        assert recommendation.is_degraded
        assert recommendation.trend_verdict is TrendVerdict.INSUFFICIENT_DATA
