# backend/farewelly/routes/v1/venue_availability.py
"""
Venue availability routes - API v1

Endpoints:
    GET /venue/availability  - List availability days with slot statistics
    POST /venue/availability - Upsert one day's slot list
    PUT /venue/availability  - Block or unblock a whole day
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import Pagination, get_pagination
from ...api.dependencies.auth import require_venue
from ...api.dependencies.services import get_availability_service
from ...core.constants import DEFAULT_VIEW
from ...core.enums import AvailabilityAction
from ...models.user import UserProfile
from ...ratelimit.dependency import rate_limit
from ...schemas.availability import (
    AvailabilityListData,
    AvailabilityPeriod,
    AvailabilityResponse,
    AvailabilityStats,
    DayStateRequest,
    SetAvailabilityRequest,
)
from ...schemas.base_responses import ApiResponse
from ...services.availability_service import AvailabilityService
from ...utils.time_slots import parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["venue-availability-v1"])


@router.get("/venue/availability", response_model=ApiResponse[AvailabilityListData])
def list_availability(
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD; ignored when malformed"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD; ignored when malformed"),
    view: str = Query(DEFAULT_VIEW),
    pagination: Pagination = Depends(get_pagination),
    venue: UserProfile = Depends(require_venue),
    service: AvailabilityService = Depends(get_availability_service),
) -> ApiResponse[AvailabilityListData]:
    start, end = parse_iso_date(start_date), parse_iso_date(end_date)
    rows, total, stats = service.list_availability(
        venue,
        start_date=start,
        end_date=end,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    return ApiResponse(
        data=AvailabilityListData(
            availability=[AvailabilityResponse.model_validate(row) for row in rows],
            stats=AvailabilityStats(**stats),
            view=view,
            period=AvailabilityPeriod(start=start, end=end),
        ),
        message="Availability retrieved successfully",
        pagination=pagination.info(total),
    )


@router.post(
    "/venue/availability",
    response_model=ApiResponse[AvailabilityResponse],
    dependencies=[Depends(rate_limit("write"))],
)
def set_availability(
    payload: SetAvailabilityRequest = Body(...),
    venue: UserProfile = Depends(require_venue),
    service: AvailabilityService = Depends(get_availability_service),
) -> ApiResponse[AvailabilityResponse]:
    """Create or replace the slot list for one day."""
    record = service.set_day_availability(
        venue,
        payload.date,
        [slot.model_dump() for slot in payload.time_slots],
        special_pricing=payload.special_pricing,
    )
    return ApiResponse(
        data=AvailabilityResponse.model_validate(record),
        message="Availability updated successfully",
    )


@router.put(
    "/venue/availability",
    response_model=ApiResponse[AvailabilityResponse],
    dependencies=[Depends(rate_limit("write"))],
)
def set_day_state(
    payload: DayStateRequest = Body(...),
    venue: UserProfile = Depends(require_venue),
    service: AvailabilityService = Depends(get_availability_service),
) -> ApiResponse[AvailabilityResponse]:
    """Block or unblock an entire day."""
    record = service.set_day_state(venue, payload.date, payload.action.value, payload.reason)
    verb = "blocked" if payload.action == AvailabilityAction.BLOCK else "unblocked"
    return ApiResponse(
        data=AvailabilityResponse.model_validate(record),
        message=f"Day {verb} successfully",
    )
