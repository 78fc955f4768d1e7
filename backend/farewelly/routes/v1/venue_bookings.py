# backend/farewelly/routes/v1/venue_bookings.py
"""
Venue booking routes - API v1

Endpoints:
    GET /venue/bookings - List the venue's bookings with filters and statistics
    PUT /venue/bookings - Confirm, cancel or complete a booking
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import Pagination, get_pagination
from ...api.dependencies.auth import require_venue
from ...api.dependencies.services import get_venue_booking_service
from ...core.enums import BookingStatus
from ...models.user import UserProfile
from ...ratelimit.dependency import rate_limit
from ...repositories.booking_repository import BookingFilters
from ...schemas.base_responses import ApiResponse
from ...schemas.booking import (
    BookingActionRequest,
    BookingFiltersEcho,
    BookingListData,
    BookingResponse,
    BookingStats,
)
from ...services.venue_booking_service import VenueBookingService
from ...utils.time_slots import parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["venue-bookings-v1"])


@router.get("/venue/bookings", response_model=ApiResponse[BookingListData])
def list_venue_bookings(
    status: Optional[BookingStatus] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    director_id: Optional[str] = Query(None),
    family_id: Optional[str] = Query(None),
    sort_by: Literal["date", "created_at", "price", "status"] = Query("date"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    pagination: Pagination = Depends(get_pagination),
    venue: UserProfile = Depends(require_venue),
    service: VenueBookingService = Depends(get_venue_booking_service),
) -> ApiResponse[BookingListData]:
    filters = BookingFilters(
        status=status.value if status else None,
        start_date=parse_iso_date(start_date),
        end_date=parse_iso_date(end_date),
        director_id=director_id,
        family_id=family_id,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    rows, total, stats = service.list_bookings(
        venue, filters, offset=pagination.offset, limit=pagination.limit
    )
    return ApiResponse(
        data=BookingListData(
            bookings=[BookingResponse.model_validate(row) for row in rows],
            stats=BookingStats(**stats),
            filters=BookingFiltersEcho(**vars(filters)),
        ),
        message="Bookings retrieved successfully",
        pagination=pagination.info(total),
    )


@router.put(
    "/venue/bookings",
    response_model=ApiResponse[BookingResponse],
    dependencies=[Depends(rate_limit("write"))],
)
def update_venue_booking(
    payload: BookingActionRequest = Body(...),
    venue: UserProfile = Depends(require_venue),
    service: VenueBookingService = Depends(get_venue_booking_service),
) -> ApiResponse[BookingResponse]:
    """Apply a confirm, cancel or complete action to one of the venue's bookings."""
    booking = service.apply_action(venue, payload.booking_id, payload.action, payload.notes)
    return ApiResponse(
        data=BookingResponse.model_validate(booking),
        message=f"Booking {booking.status} successfully",
    )
