"""Activity records parsed from the activity source."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple


RUN_ACTIVITY_TYPES = frozenset({"run", "trailrun", "virtualrun"})

NUMERIC_FIELDS = ("average_speed", "distance", "total_elevation_gain")


@dataclass(frozen=True)
class FieldIssue:
    """A single field that could not be read from a raw record."""

    field: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "reason": self.reason}


@dataclass(frozen=True)
class ActivityRecord:
    """
    A validated activity.

    Every metric field is optional: a field that is missing or has the wrong
    type is None here, so only the series that need it skip the record.
    """

    start_date: Optional[datetime]
    average_speed: Optional[float] = None         # m/s
    distance: Optional[float] = None              # meters
    total_elevation_gain: Optional[float] = None  # meters
    activity_type: Optional[str] = None
    activity_id: Optional[str] = None

    @property
    def is_run(self) -> bool:
        return (
            self.activity_type is not None
            and self.activity_type.lower() in RUN_ACTIVITY_TYPES
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activity_id": self.activity_id,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "average_speed": self.average_speed,
            "distance": self.distance,
            "total_elevation_gain": self.total_elevation_gain,
            "activity_type": self.activity_type,
        }

    @classmethod
    def from_raw(cls, data: Any) -> "ActivityParseResult":
        """
        Parse a loosely typed mapping (Strava API shape).

        Never raises. Fields that fail validation are reported as issues and
        left as None on the record.
        """
        if not isinstance(data, dict):
            record = cls(start_date=None)
            issue = FieldIssue("record", f"expected a mapping, got {type(data).__name__}")
            return ActivityParseResult(record=record, issues=(issue,))

        issues: List[FieldIssue] = []

        start_date = _parse_timestamp(data.get("start_date"), issues)
        numbers = {name: _parse_number(name, data.get(name), issues) for name in NUMERIC_FIELDS}

        raw_type = data.get("sport_type", data.get("type"))
        activity_type = None
        if isinstance(raw_type, str) and raw_type:
            activity_type = raw_type
        elif raw_type is not None:
            issues.append(FieldIssue("type", "not a string"))

        raw_id = data.get("id")
        activity_id = str(raw_id) if raw_id is not None else None

        record = cls(
            start_date=start_date,
            average_speed=numbers["average_speed"],
            distance=numbers["distance"],
            total_elevation_gain=numbers["total_elevation_gain"],
            activity_type=activity_type,
            activity_id=activity_id,
        )
        return ActivityParseResult(record=record, issues=tuple(issues))


@dataclass(frozen=True)
class ActivityParseResult:
    """Outcome of parsing one raw record."""

    record: ActivityRecord
    issues: Tuple[FieldIssue, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.issues


def _parse_timestamp(value: Any, issues: List[FieldIssue]) -> Optional[datetime]:
    """ISO-8601 string to an aware datetime (naive values are read as UTC)."""
    if value is None:
        issues.append(FieldIssue("start_date", "missing"))
        return None
    if not isinstance(value, str):
        issues.append(FieldIssue("start_date", "not a string"))
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        issues.append(FieldIssue("start_date", "not ISO-8601"))
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_number(name: str, value: Any, issues: List[FieldIssue]) -> Optional[float]:
    if value is None:
        issues.append(FieldIssue(name, "missing"))
        return None
    # bool is an int subclass; JSON true/false is not a measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.append(FieldIssue(name, "not a number"))
        return None
    number = float(value)
    if not math.isfinite(number):
        issues.append(FieldIssue(name, "not finite"))
        return None
    return number


def parse_activities(raw_records: Iterable[Any]) -> List[ActivityParseResult]:
    """Parse every raw record, preserving order."""
    return [ActivityRecord.from_raw(raw) for raw in raw_records or []]
