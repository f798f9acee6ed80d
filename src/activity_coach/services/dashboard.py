"""
Dashboard service.

The single entry point for presentation layers (HTTP API, CLI). Holds the
latest SeriesSnapshot, answers window-filtered queries against it and
coordinates enhanced recommendation requests:

- Concurrent requests for the same (metric, range) share one in-flight call.
- Every request gets a generation number; only the newest generation for a
  slot is published, so a superseded request never overwrites a newer one.
- A request whose every caller went away is cancelled.
- A cancelled request publishes nothing.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..analysis.aggregation import (
    TimeRange,
    aggregate,
    average_value,
    filter_window,
    max_value,
    pace_distribution,
)
from ..analysis.trends import classify
from ..integrations.base import ActivitySource, IntegrationError
from ..models.recommendation import MetricKind, Recommendation, TrendVerdict
from ..models.series import SeriesPoint, SeriesSnapshot
from ..recommendations.engine import RecommendationEngine
from ..recommendations.templates import recommend


logger = logging.getLogger(__name__)

SlotKey = Tuple[MetricKind, TimeRange]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DashboardSummary:
    """Headline numbers for one window."""

    time_range: TimeRange
    activity_count: int
    average_speed: float
    average_distance: float
    average_elevation: float
    max_elevation: float
    verdicts: Dict[MetricKind, TrendVerdict] = field(default_factory=dict)
    pace: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time_range": self.time_range.value,
            "description": self.time_range.description,
            "activity_count": self.activity_count,
            "average_speed": round(self.average_speed, 3),
            "average_distance": round(self.average_distance, 1),
            "average_elevation": round(self.average_elevation, 1),
            "max_elevation": round(self.max_elevation, 1),
            "verdicts": {kind.value: verdict.value for kind, verdict in self.verdicts.items()},
            "pace": dict(self.pace),
        }


class DashboardService:
    """Query and recommendation facade over the latest activity snapshot."""

    def __init__(
        self,
        source: Optional[ActivitySource] = None,
        engine: Optional[RecommendationEngine] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._source = source
        self._engine = engine or RecommendationEngine()
        self._clock = clock
        self._snapshot: SeriesSnapshot = aggregate([], now=clock())
        self._refresh_generation = 0

        self._generations: Dict[SlotKey, int] = {}
        self._in_flight: Dict[SlotKey, "asyncio.Task[Recommendation]"] = {}
        self._waiters: Dict["asyncio.Task[Recommendation]", int] = {}
        self._latest: Dict[SlotKey, Recommendation] = {}

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SeriesSnapshot:
        return self._snapshot

    def load_records(self, raw_records: Iterable[Any]) -> SeriesSnapshot:
        """Replace the snapshot with one built from ``raw_records``."""
        self._refresh_generation += 1
        return self._install(aggregate(raw_records, now=self._clock()))

    async def refresh(self) -> SeriesSnapshot:
        """
        Pull activities from the source and rebuild the snapshot.

        A source failure counts as "no data" for this cycle. If a newer
        refresh finished first, this one is discarded.
        """
        self._refresh_generation += 1
        generation = self._refresh_generation

        raw_records: List[Dict[str, Any]] = []
        if self._source is None:
            logger.warning("No activity source configured")
        else:
            try:
                raw_records = await self._source.list_recent_activities()
            except IntegrationError as e:
                logger.warning(f"Activity source '{self._source.provider}' failed: {e}")

        snapshot = aggregate(raw_records, now=self._clock())
        if generation != self._refresh_generation:
            logger.debug("Discarding refresh superseded by a newer one")
            return self._snapshot
        return self._install(snapshot)

    def _install(self, snapshot: SeriesSnapshot) -> SeriesSnapshot:
        self._snapshot = snapshot
        # Requests started against the old data can no longer publish
        for key in list(self._generations):
            self._generations[key] += 1
        self._in_flight.clear()
        logger.info(
            f"Snapshot rebuilt from {snapshot.record_count} activities "
            f"({len(snapshot.trend)} trend days, {len(snapshot.issues)} field issues)"
        )
        return snapshot

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _series_for(self, metric_kind: MetricKind) -> Sequence[SeriesPoint]:
        snapshot = self._snapshot
        return {
            MetricKind.SPEED: snapshot.speed,
            MetricKind.DISTANCE: snapshot.distance,
            MetricKind.ELEVATION: snapshot.elevation,
            MetricKind.PACE_DISTRIBUTION: snapshot.pace,
            MetricKind.PERFORMANCE: snapshot.trend,
        }[metric_kind]

    def get_filtered_series(self, metric_kind: MetricKind, time_range: TimeRange) -> List[SeriesPoint]:
        return filter_window(self._series_for(metric_kind), time_range, now=self._clock())

    def classify_trend(self, metric_kind: MetricKind, time_range: TimeRange) -> TrendVerdict:
        return classify(self.get_filtered_series(metric_kind, time_range), metric_kind)

    def get_local_recommendation(self, metric_kind: MetricKind, time_range: TimeRange) -> Recommendation:
        return recommend(self.classify_trend(metric_kind, time_range), metric_kind)

    def summary(self, time_range: TimeRange) -> DashboardSummary:
        speed = self.get_filtered_series(MetricKind.SPEED, time_range)
        distance = self.get_filtered_series(MetricKind.DISTANCE, time_range)
        elevation = self.get_filtered_series(MetricKind.ELEVATION, time_range)
        pace = self.get_filtered_series(MetricKind.PACE_DISTRIBUTION, time_range)

        return DashboardSummary(
            time_range=time_range,
            activity_count=len(distance),
            average_speed=average_value(speed),
            average_distance=average_value(distance),
            average_elevation=average_value(elevation),
            max_elevation=max_value(elevation),
            verdicts={kind: self.classify_trend(kind, time_range) for kind in MetricKind},
            pace=pace_distribution(pace).to_dict(),
        )

    # ------------------------------------------------------------------
    # Enhanced recommendations
    # ------------------------------------------------------------------

    async def get_enhanced_recommendation(
        self,
        metric_kind: MetricKind,
        time_range: TimeRange,
    ) -> Recommendation:
        """
        Recommendation with generated advice, falling back to the template.

        Joins an in-flight request for the same slot instead of issuing a
        second call. The request is cancelled once its last caller goes away.
        Raises CancelledError if the request is cancelled.
        """
        key = (metric_kind, time_range)
        task = self._in_flight.get(key)
        if task is None or task.done():
            generation = self._generations.get(key, 0) + 1
            self._generations[key] = generation

            series = self.get_filtered_series(metric_kind, time_range)
            verdict = classify(series, metric_kind)
            task = asyncio.ensure_future(
                self._engine.recommend_with_external_advice(series, metric_kind, verdict)
            )
            self._in_flight[key] = task
            task.add_done_callback(lambda t, k=key, g=generation: self._on_request_done(k, g, t))
        else:
            logger.debug(f"Joining in-flight {metric_kind.value}/{time_range.value} request")

        self._waiters[task] = self._waiters.get(task, 0) + 1
        try:
            # A departing caller leaves the shared request running for the others
            return await asyncio.shield(task)
        finally:
            self._waiters[task] -= 1
            if self._waiters[task] == 0:
                del self._waiters[task]
                if not task.done():
                    logger.debug(f"Last caller left {metric_kind.value}/{time_range.value}, cancelling request")
                    task.cancel()

    def _on_request_done(self, key: SlotKey, generation: int, task: "asyncio.Task[Recommendation]") -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if task.cancelled():
            logger.debug(f"Request {key[0].value}/{key[1].value} #{generation} cancelled")
            return
        if task.exception() is not None:
            return
        if generation != self._generations.get(key):
            logger.debug(f"Request {key[0].value}/{key[1].value} #{generation} superseded, not published")
            return
        self._latest[key] = task.result()

    def cancel_pending(self, metric_kind: MetricKind, time_range: TimeRange) -> bool:
        """Cancel the in-flight request for a slot, if any."""
        task = self._in_flight.get((metric_kind, time_range))
        if task is None or task.done():
            return False
        return task.cancel()

    def latest_recommendation(self, metric_kind: MetricKind, time_range: TimeRange) -> Optional[Recommendation]:
        """Most recent published enhanced recommendation for a slot."""
        return self._latest.get((metric_kind, time_range))
