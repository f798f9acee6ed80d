"""Data models for activity records, series and recommendations."""

from .activity import (
    ActivityParseResult,
    ActivityRecord,
    FieldIssue,
    parse_activities,
)
from .recommendation import (
    AdviceSource,
    MetricKind,
    Recommendation,
    TrendVerdict,
)
from .series import (
    PerformanceTrendPoint,
    SeriesPoint,
    SeriesSnapshot,
    TimeSeriesPoint,
)

__all__ = [
    # Activity
    "ActivityParseResult",
    "ActivityRecord",
    "FieldIssue",
    "parse_activities",
    # Series
    "PerformanceTrendPoint",
    "SeriesPoint",
    "SeriesSnapshot",
    "TimeSeriesPoint",
    # Recommendations
    "AdviceSource",
    "MetricKind",
    "Recommendation",
    "TrendVerdict",
]
