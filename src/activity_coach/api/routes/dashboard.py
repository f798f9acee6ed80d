"""Dashboard API routes."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ...analysis.aggregation import TimeRange
from ...config import get_settings
from ...models.recommendation import MetricKind, Recommendation
from ...services.dashboard import DashboardService
from ..deps import get_dashboard_service


router = APIRouter()


class RefreshResponse(BaseModel):
    """Result of rebuilding the snapshot."""
    generated_at: str
    record_count: int
    series_sizes: Dict[str, int]
    issue_count: int


class SeriesResponse(BaseModel):
    """Window-filtered series for one metric."""
    metric: str
    time_range: str
    description: str
    points: List[Dict[str, Any]]


class TrendResponse(BaseModel):
    """Trend verdict for one metric."""
    metric: str
    time_range: str
    trend_verdict: str
    point_count: int


class RecommendationResponse(BaseModel):
    """Recommendation for one metric."""
    metric: str
    time_range: str
    trend_verdict: str
    headline: str
    advice: str
    source: str
    degraded: bool


class SummaryResponse(BaseModel):
    """Headline numbers for a window."""
    time_range: str
    description: str
    activity_count: int
    average_speed: float
    average_distance: float
    average_elevation: float
    max_elevation: float
    verdicts: Dict[str, str]
    pace: Dict[str, int]


def _resolve_range(value: Optional[str]) -> TimeRange:
    return TimeRange.parse(value or get_settings().default_time_range)


def _recommendation_response(
    metric_kind: MetricKind,
    time_range: TimeRange,
    recommendation: Recommendation,
) -> RecommendationResponse:
    return RecommendationResponse(
        metric=metric_kind.value,
        time_range=time_range.value,
        **recommendation.to_dict(),
    )


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(
    service: DashboardService = Depends(get_dashboard_service),
):
    """Fetch activities from the configured source and rebuild all series."""
    snapshot = await service.refresh()
    return RefreshResponse(**snapshot.to_dict())


@router.get("/series/{metric}", response_model=SeriesResponse)
async def get_series(
    metric: str,
    time_range: Optional[str] = Query(None, alias="range"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Points of one metric inside the requested window."""
    metric_kind = MetricKind.parse(metric)
    window = _resolve_range(time_range)
    points = service.get_filtered_series(metric_kind, window)
    return SeriesResponse(
        metric=metric_kind.value,
        time_range=window.value,
        description=window.description,
        points=[point.to_dict() for point in points],
    )


@router.get("/trend/{metric}", response_model=TrendResponse)
async def get_trend(
    metric: str,
    time_range: Optional[str] = Query(None, alias="range"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Trend verdict of one metric inside the requested window."""
    metric_kind = MetricKind.parse(metric)
    window = _resolve_range(time_range)
    series = service.get_filtered_series(metric_kind, window)
    return TrendResponse(
        metric=metric_kind.value,
        time_range=window.value,
        trend_verdict=service.classify_trend(metric_kind, window).value,
        point_count=len(series),
    )


@router.get("/recommendation/{metric}", response_model=RecommendationResponse)
async def get_recommendation(
    metric: str,
    time_range: Optional[str] = Query(None, alias="range"),
    enhanced: bool = Query(False, description="Ask the text-generation service for advice"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """
    Recommendation for one metric.

    With ``enhanced=true`` the advice is generated; if that fails the local
    advice is returned with ``degraded`` set.
    """
    metric_kind = MetricKind.parse(metric)
    window = _resolve_range(time_range)
    if enhanced:
        recommendation = await service.get_enhanced_recommendation(metric_kind, window)
    else:
        recommendation = service.get_local_recommendation(metric_kind, window)
    return _recommendation_response(metric_kind, window, recommendation)


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    time_range: Optional[str] = Query(None, alias="range"),
    service: DashboardService = Depends(get_dashboard_service),
):
    """Averages, pace buckets and verdicts for every metric."""
    window = _resolve_range(time_range)
    return SummaryResponse(**service.summary(window).to_dict())
