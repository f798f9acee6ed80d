"""Activity Coach: activity trends and training recommendations."""

__version__ = "0.1.0"

from .analysis.aggregation import TimeRange, aggregate
from .models.recommendation import AdviceSource, MetricKind, Recommendation, TrendVerdict
from .services.dashboard import DashboardService

__all__ = [
    "__version__",
    "AdviceSource",
    "DashboardService",
    "MetricKind",
    "Recommendation",
    "TimeRange",
    "TrendVerdict",
    "aggregate",
]
