"""
Trend Classification

Decide whether a metric is improving, declining or holding steady over the
selected window.
"""

import statistics
from typing import Dict, Optional, Sequence

from ..models.recommendation import MetricKind, TrendVerdict
from ..models.series import PerformanceTrendPoint, SeriesPoint


# Percent change needed to call a direction
CHANGE_THRESHOLDS: Dict[MetricKind, float] = {
    MetricKind.SPEED: 5.0,
    MetricKind.DISTANCE: 5.0,
    MetricKind.PERFORMANCE: 5.0,
    MetricKind.ELEVATION: 10.0,  # noisier signal
}

RECENT_POINTS = 3
MIN_RECENT_POINTS = 2

# Pace consistency (population std dev, km/h)
MIN_PACE_POINTS = 3
CONSISTENT_PACE_STDEV = 0.5
ERRATIC_PACE_STDEV = 1.5


def point_value(point: SeriesPoint) -> float:
    """Value compared for a point; trend points are compared on speed."""
    if isinstance(point, PerformanceTrendPoint):
        return point.speed
    return point.value


def percent_change(first: Optional[float], last: Optional[float]) -> float:
    """
    Percent change from ``first`` to ``last``.

    Returns 0 when ``first`` is missing or not positive.
    """
    if first is None or last is None or first <= 0:
        return 0.0
    return (last - first) * 100.0 / first


def pace_variability(series: Sequence[SeriesPoint]) -> Optional[float]:
    """Population standard deviation of the series, None below 3 points."""
    if len(series) < MIN_PACE_POINTS:
        return None
    return statistics.pstdev(point_value(p) for p in series)


def _verdict_from_change(change_pct: float, threshold: float) -> TrendVerdict:
    if change_pct > threshold:
        return TrendVerdict.IMPROVEMENT
    elif change_pct < -threshold:
        return TrendVerdict.DECLINE
    else:
        return TrendVerdict.CONSTANT


def _classify_pace(series: Sequence[SeriesPoint]) -> TrendVerdict:
    stdev = pace_variability(series)
    if stdev is None:
        return TrendVerdict.INSUFFICIENT_DATA
    # Lower spread means more consistent pacing
    if stdev < CONSISTENT_PACE_STDEV:
        return TrendVerdict.IMPROVEMENT
    elif stdev > ERRATIC_PACE_STDEV:
        return TrendVerdict.DECLINE
    else:
        return TrendVerdict.CONSTANT


def classify(series: Sequence[SeriesPoint], metric_kind: MetricKind) -> TrendVerdict:
    """
    Classify a window-filtered series.

    Args:
        series: Points in chronological order, already filtered to the window
        metric_kind: Which rule and thresholds to apply

    Returns:
        The trend verdict; INSUFFICIENT_DATA when there are too few points
    """
    series = list(series or [])

    if metric_kind is MetricKind.PACE_DISTRIBUTION:
        return _classify_pace(series)

    recent = series[-RECENT_POINTS:]
    if len(recent) < MIN_RECENT_POINTS:
        return TrendVerdict.INSUFFICIENT_DATA

    change = percent_change(point_value(recent[0]), point_value(recent[-1]))
    return _verdict_from_change(change, CHANGE_THRESHOLDS[metric_kind])
