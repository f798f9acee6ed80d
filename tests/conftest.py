"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest

from activity_coach.config import get_settings
from activity_coach.llm.providers import reset_llm_client


# Fixed "now" so window filtering is deterministic
NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def make_activity(
    days_ago: float,
    speed: Any = 3.0,
    distance: Any = 5000.0,
    elevation: Any = 50.0,
    sport_type: str = "Run",
    now: datetime = NOW,
    **overrides: Any,
) -> Dict[str, Any]:
    """Build a raw activity in the Strava API shape."""
    start = now - timedelta(days=days_ago)
    activity = {
        "id": int(start.timestamp()),
        "name": f"{sport_type} {start:%Y-%m-%d}",
        "sport_type": sport_type,
        "start_date": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
        "average_speed": speed,
        "distance": distance,
        "total_elevation_gain": elevation,
    }
    activity.update(overrides)
    return activity


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Each test starts with fresh settings and no cached LLM client."""
    get_settings.cache_clear()
    reset_llm_client()
    yield
    get_settings.cache_clear()
    reset_llm_client()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def activity_factory():
    """Factory for raw activities relative to NOW."""
    return make_activity


@pytest.fixture
def improving_week():
    """Five runs over the last week, each faster and longer than the last."""
    return [
        make_activity(6, speed=2.8, distance=5000, elevation=40),
        make_activity(5, speed=2.9, distance=5200, elevation=45),
        make_activity(3, speed=3.0, distance=5500, elevation=50),
        make_activity(2, speed=3.1, distance=5800, elevation=55),
        make_activity(1, speed=3.3, distance=6200, elevation=70),
    ]
