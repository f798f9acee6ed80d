"""
Metric Aggregation

Turn a list of activity records into per-metric time series and a
calendar-day join of speed, distance and elevation.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..exceptions import UnknownMetricError
from ..models.activity import ActivityRecord, parse_activities
from ..models.series import (
    PerformanceTrendPoint,
    SeriesPoint,
    SeriesSnapshot,
    TimeSeriesPoint,
)


logger = logging.getLogger(__name__)

# Weighting of the combined performance index
SPEED_WEIGHT = 0.4
DISTANCE_WEIGHT = 0.6

MPS_TO_KMH = 3.6

# Pace buckets in km/h
FAST_PACE_KMH = 12.0
SLOW_PACE_KMH = 8.0

# Returns (value, distance) for one record, or None to skip it
MetricSelector = Callable[[ActivityRecord], Optional[Tuple[float, float]]]


class TimeRange(str, Enum):
    """Windows the dashboard can be filtered to."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"

    @property
    def days(self) -> int:
        return {TimeRange.WEEK: 7, TimeRange.MONTH: 30, TimeRange.YEAR: 365}[self]

    @property
    def description(self) -> str:
        return {
            TimeRange.WEEK: "Last 7 days",
            TimeRange.MONTH: "Last 30 days",
            TimeRange.YEAR: "Last 12 months",
        }[self]

    @classmethod
    def parse(cls, value: str) -> "TimeRange":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnknownMetricError(value, field="range")


# ============================================================================
# Selectors
# ============================================================================

def select_speed(record: ActivityRecord) -> Optional[Tuple[float, float]]:
    if record.average_speed is None or record.distance is None:
        return None
    return record.average_speed, record.distance


def select_distance(record: ActivityRecord) -> Optional[Tuple[float, float]]:
    if record.distance is None:
        return None
    return record.distance, record.distance


def select_elevation(record: ActivityRecord) -> Optional[Tuple[float, float]]:
    if record.total_elevation_gain is None or record.distance is None:
        return None
    return record.total_elevation_gain, record.distance


def select_pace(record: ActivityRecord) -> Optional[Tuple[float, float]]:
    """Run speed in km/h; non-run activities are skipped."""
    if not record.is_run:
        return None
    if record.average_speed is None or record.distance is None:
        return None
    return record.average_speed * MPS_TO_KMH, record.distance


# ============================================================================
# Series construction
# ============================================================================

def build_series(
    records: Iterable[ActivityRecord],
    selector: MetricSelector,
) -> List[TimeSeriesPoint]:
    """
    Build one metric's series in chronological order.

    Sources may list activities newest first; the sort is stable so records
    sharing a timestamp keep their input order. Records without a start
    timestamp, or that the selector rejects, are skipped for this metric only.
    Several activities on the same day each produce a point.
    """
    series: List[TimeSeriesPoint] = []
    for record in records or []:
        if record.start_date is None:
            continue
        selected = selector(record)
        if selected is None:
            continue
        value, distance = selected
        series.append(TimeSeriesPoint(timestamp=record.start_date, value=value, distance=distance))
    series.sort(key=lambda p: p.timestamp)
    return series


def _values_by_day(series: Sequence[TimeSeriesPoint]) -> Dict[date, float]:
    by_day: Dict[date, float] = {}
    for point in series:
        # latest activity of the day wins
        by_day[point.day] = point.value
    return by_day


def build_trend_series(
    speed_series: Sequence[TimeSeriesPoint],
    distance_series: Sequence[TimeSeriesPoint],
    elevation_series: Sequence[TimeSeriesPoint],
) -> List[PerformanceTrendPoint]:
    """
    Join speed, distance and elevation on calendar day.

    Only days present in all three series produce a point. The emitted
    distance is the distance series' ``value``. Sorted ascending by day.
    """
    speed_by_day = _values_by_day(speed_series)
    elevation_by_day = _values_by_day(elevation_series)

    trend: List[PerformanceTrendPoint] = []
    for item in distance_series:
        day = item.day
        speed = speed_by_day.get(day)
        elevation = elevation_by_day.get(day)
        if speed is None or elevation is None:
            continue
        trend.append(PerformanceTrendPoint(
            day=day,
            speed=speed,
            distance=item.value,
            elevation=elevation,
            performance_index=speed * SPEED_WEIGHT + item.value * DISTANCE_WEIGHT,
        ))

    trend.sort(key=lambda p: p.day)
    return trend


def aggregate(raw_records: Iterable[Any], now: Optional[datetime] = None) -> SeriesSnapshot:
    """
    Parse raw activities and derive every series.

    Never raises: malformed records only shrink the affected series.
    """
    results = parse_activities(raw_records)
    records = [r.record for r in results]

    issues = tuple(
        (index, issue)
        for index, result in enumerate(results)
        for issue in result.issues
    )
    if issues:
        reasons = Counter(f"{issue.field}: {issue.reason}" for _, issue in issues)
        logger.debug(f"Dropped fields while parsing {len(records)} activities: {dict(reasons)}")

    speed = build_series(records, select_speed)
    distance = build_series(records, select_distance)
    elevation = build_series(records, select_elevation)
    pace = build_series(records, select_pace)
    trend = build_trend_series(speed, distance, elevation)

    return SeriesSnapshot(
        generated_at=now or datetime.now(timezone.utc),
        record_count=len(records),
        speed=tuple(speed),
        distance=tuple(distance),
        elevation=tuple(elevation),
        pace=tuple(pace),
        trend=tuple(trend),
        issues=issues,
    )


# ============================================================================
# Window filtering and summaries
# ============================================================================

def window_start(time_range: TimeRange, now: Optional[datetime] = None) -> datetime:
    """Earliest timestamp included in the window."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - timedelta(days=time_range.days)


def filter_window(
    points: Iterable[SeriesPoint],
    time_range: TimeRange,
    now: Optional[datetime] = None,
) -> List[SeriesPoint]:
    """Keep the points that fall inside the last ``time_range.days`` days."""
    start = window_start(time_range, now)
    filtered: List[SeriesPoint] = []
    for point in points:
        if isinstance(point, PerformanceTrendPoint):
            # A day counts from its midnight, so a partial start day is excluded
            if datetime.combine(point.day, time.min, tzinfo=start.tzinfo) >= start:
                filtered.append(point)
        elif point.timestamp >= start:
            filtered.append(point)
    return filtered


def average_value(points: Sequence[TimeSeriesPoint]) -> float:
    """Mean of ``value``; 0 for an empty series."""
    if not points:
        return 0.0
    return sum(p.value for p in points) / len(points)


def max_value(points: Sequence[TimeSeriesPoint]) -> float:
    """Largest ``value``; 1.0 for an empty series so it can scale a chart."""
    if not points:
        return 1.0
    return max(p.value for p in points)


@dataclass(frozen=True)
class PaceDistribution:
    """Run counts per speed bucket."""

    fast: int
    moderate: int
    slow: int

    @property
    def total(self) -> int:
        return self.fast + self.moderate + self.slow

    def percentage(self, count: int) -> float:
        return count / self.total * 100.0 if self.total else 0.0

    def describe(self) -> str:
        if self.total == 0:
            return "Insufficient pace data"
        return "\n".join([
            f"Fast Pace (>{FAST_PACE_KMH:.0f} km/h): {self.fast} runs ({self.percentage(self.fast):.1f}%)",
            f"Moderate Pace ({SLOW_PACE_KMH:.0f}-{FAST_PACE_KMH:.0f} km/h): "
            f"{self.moderate} runs ({self.percentage(self.moderate):.1f}%)",
            f"Slow Pace (<{SLOW_PACE_KMH:.0f} km/h): {self.slow} runs ({self.percentage(self.slow):.1f}%)",
            f"Total runs: {self.total}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fast": self.fast,
            "moderate": self.moderate,
            "slow": self.slow,
            "total": self.total,
        }


def pace_distribution(points: Sequence[TimeSeriesPoint]) -> PaceDistribution:
    """Bucket run speeds (km/h) into fast, moderate and slow."""
    fast = sum(1 for p in points if p.value > FAST_PACE_KMH)
    slow = sum(1 for p in points if p.value < SLOW_PACE_KMH)
    return PaceDistribution(fast=fast, moderate=len(points) - fast - slow, slow=slow)
