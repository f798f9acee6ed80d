"""
Analysis module for activity data.

Provides series aggregation, window filtering and trend classification.
"""

from .aggregation import (
    PaceDistribution,
    TimeRange,
    aggregate,
    average_value,
    build_series,
    build_trend_series,
    filter_window,
    max_value,
    pace_distribution,
    select_distance,
    select_elevation,
    select_pace,
    select_speed,
)
from .trends import (
    CHANGE_THRESHOLDS,
    classify,
    pace_variability,
    percent_change,
)

__all__ = [
    # Aggregation
    "PaceDistribution",
    "TimeRange",
    "aggregate",
    "average_value",
    "build_series",
    "build_trend_series",
    "filter_window",
    "max_value",
    "pace_distribution",
    "select_distance",
    "select_elevation",
    "select_pace",
    "select_speed",
    # Trends
    "CHANGE_THRESHOLDS",
    "classify",
    "pace_variability",
    "percent_change",
]
