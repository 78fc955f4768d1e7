# backend/farewelly/routes/v1/analytics.py
"""
Venue analytics routes - API v1

Endpoints:
    GET /venue/analytics - Dashboard metrics, comparisons and charts
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies.auth import require_venue
from ...api.dependencies.services import get_analytics_service
from ...core.enums import AnalyticsPeriod
from ...models.user import UserProfile
from ...schemas.analytics import SingleMetricData, VenueAnalyticsData
from ...schemas.base_responses import ApiResponse
from ...services.analytics_service import AnalyticsService
from ...utils.time_slots import parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["venue-analytics-v1"])


@router.get("/venue/analytics", response_model=ApiResponse[Any])
def get_venue_analytics(
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH),
    start_date: Optional[str] = Query(None, description="Custom period start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Custom period end (YYYY-MM-DD)"),
    metric: Optional[str] = Query(None, description="Return a single metric instead"),
    venue: UserProfile = Depends(require_venue),
    service: AnalyticsService = Depends(get_analytics_service),
) -> ApiResponse[Any]:
    analytics = service.venue_analytics(
        venue,
        period=period.value,
        start_date=parse_iso_date(start_date),
        end_date=parse_iso_date(end_date),
    )
    if metric:
        return ApiResponse(
            data=SingleMetricData(**service.single_metric(analytics, metric)),
            message=f"{metric} analytics retrieved successfully",
        )
    return ApiResponse(
        data=VenueAnalyticsData.model_validate(analytics),
        message="Analytics data retrieved successfully",
    )
