"""Format series points for prompt injection."""

from datetime import date, datetime
from typing import List, Sequence, Union

from ..analysis.aggregation import MPS_TO_KMH
from ..models.recommendation import MetricKind
from ..models.series import PerformanceTrendPoint, SeriesPoint, TimeSeriesPoint


MAX_PROMPT_POINTS = 5


def _short_date(value: Union[date, datetime]) -> str:
    """M/D/YY, e.g. 3/7/25."""
    return f"{value.month}/{value.day}/{value:%y}"


def _km(meters: float) -> str:
    return f"{meters / 1000:.2f} km"


def _point_date(point: SeriesPoint) -> Union[date, datetime]:
    if isinstance(point, PerformanceTrendPoint):
        return point.day
    return point.timestamp


def _describe_trend_point(point: PerformanceTrendPoint, metric_kind: MetricKind) -> str:
    if metric_kind is MetricKind.ELEVATION:
        return f"Elevation gain: {point.elevation:.0f} m, Distance: {_km(point.distance)}"
    return f"Speed: {point.speed * MPS_TO_KMH:.2f} km/h, Distance: {_km(point.distance)}"


def _describe_series_point(point: TimeSeriesPoint, metric_kind: MetricKind) -> str:
    if metric_kind is MetricKind.DISTANCE:
        return f"Distance: {_km(point.value)}, Start: {point.timestamp:%H:%M}"
    if metric_kind is MetricKind.ELEVATION:
        return f"Elevation gain: {point.value:.0f} m, Distance: {_km(point.distance)}"
    if metric_kind is MetricKind.PACE_DISTRIBUTION:
        # pace series values are already km/h
        return f"Speed: {point.value:.2f} km/h, Distance: {_km(point.distance)}"
    return f"Speed: {point.value * MPS_TO_KMH:.2f} km/h, Distance: {_km(point.distance)}"


def format_series_for_prompt(
    series: Sequence[SeriesPoint],
    metric_kind: MetricKind,
    limit: int = MAX_PROMPT_POINTS,
) -> str:
    """
    Summarize the most recent points, newest first.

    Returns an empty string for an empty series.
    """
    if not series:
        return ""

    recent = sorted(series, key=_point_date, reverse=True)[:limit]

    lines: List[str] = []
    for index, point in enumerate(recent, start=1):
        if isinstance(point, PerformanceTrendPoint):
            summary = _describe_trend_point(point, metric_kind)
        else:
            summary = _describe_series_point(point, metric_kind)
        lines.append(f"Day {index} ({_short_date(_point_date(point))}): {summary}")
    return "\n".join(lines)
