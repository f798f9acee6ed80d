"""Time series derived from activity records."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Tuple, Union

from .activity import FieldIssue


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One activity's value for a single metric."""

    timestamp: datetime
    value: float
    distance: float  # meters

    @property
    def day(self) -> date:
        return self.timestamp.date()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "day": self.day.isoformat(),
            "value": round(self.value, 3),
            "distance": round(self.distance, 1),
        }


@dataclass(frozen=True)
class PerformanceTrendPoint:
    """Speed, distance and elevation joined on one calendar day."""

    day: date
    speed: float
    distance: float
    elevation: float
    performance_index: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.isoformat(),
            "speed": round(self.speed, 3),
            "distance": round(self.distance, 1),
            "elevation": round(self.elevation, 1),
            "performance_index": round(self.performance_index, 3),
        }


SeriesPoint = Union[TimeSeriesPoint, PerformanceTrendPoint]


@dataclass(frozen=True)
class SeriesSnapshot:
    """
    Everything derived from one activity list.

    Built in one pass and never mutated; a refresh replaces the whole snapshot.
    """

    generated_at: datetime
    record_count: int
    speed: Tuple[TimeSeriesPoint, ...] = ()
    distance: Tuple[TimeSeriesPoint, ...] = ()
    elevation: Tuple[TimeSeriesPoint, ...] = ()
    pace: Tuple[TimeSeriesPoint, ...] = ()
    trend: Tuple[PerformanceTrendPoint, ...] = ()
    issues: Tuple[Tuple[int, FieldIssue], ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "record_count": self.record_count,
            "series_sizes": {
                "speed": len(self.speed),
                "distance": len(self.distance),
                "elevation": len(self.elevation),
                "pace": len(self.pace),
                "trend": len(self.trend),
            },
            "issue_count": len(self.issues),
        }
