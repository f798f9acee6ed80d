"""Dependency injection for API routes."""

import logging
from functools import lru_cache
from typing import Optional

from ..config import get_settings
from ..integrations.base import ActivitySource
from ..integrations.strava import FileActivitySource, StravaActivitySource
from ..recommendations.engine import RecommendationEngine
from ..services.dashboard import DashboardService


logger = logging.getLogger(__name__)


@lru_cache
def get_activity_source() -> Optional[ActivitySource]:
    """Activity file when configured, otherwise Strava if a token is present."""
    settings = get_settings()
    if settings.activities_file:
        return FileActivitySource(settings.activities_file)
    if settings.strava_access_token:
        return StravaActivitySource(
            access_token=settings.strava_access_token,
            base_url=settings.strava_base_url,
            per_page=settings.strava_per_page,
        )
    logger.warning("Neither ACTIVITIES_FILE nor STRAVA_ACCESS_TOKEN is set")
    return None


@lru_cache
def get_dashboard_service() -> DashboardService:
    """Get the dashboard service instance."""
    return DashboardService(
        source=get_activity_source(),
        engine=RecommendationEngine(),
    )
