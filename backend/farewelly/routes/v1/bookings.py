"""
Booking routes - API v1

Endpoints:
    GET  /bookings        - List the caller's bookings (family, director or venue view)
    POST /bookings        - Create a pending booking (families and directors)
    GET  /family/bookings - List the calling family's bookings
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import Pagination, get_pagination
from ...api.dependencies.auth import get_current_profile, require_family
from ...api.dependencies.services import get_booking_service
from ...core.enums import BookingStatus
from ...models.user import UserProfile
from ...ratelimit.dependency import rate_limit
from ...repositories.booking_repository import BookingFilters
from ...schemas.base_responses import ApiResponse
from ...schemas.booking import (
    BookingResponse,
    CreateBookingRequest,
    PartyBookingFiltersEcho,
    PartyBookingListData,
)
from ...services.booking_service import BookingService
from ...utils.time_slots import parse_iso_date

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings-v1"])


def _page(
    profile: UserProfile,
    filters: BookingFilters,
    pagination: Pagination,
    service: BookingService,
) -> ApiResponse[PartyBookingListData]:
    rows, total = service.list_bookings(
        profile, filters, offset=pagination.offset, limit=pagination.limit
    )
    return ApiResponse(
        data=PartyBookingListData(
            bookings=[BookingResponse.model_validate(row) for row in rows],
            user_role=profile.user_type,
            filters=PartyBookingFiltersEcho(
                status=filters.status,
                start_date=filters.start_date,
                end_date=filters.end_date,
                service_type=filters.service_type,
            ),
        ),
        message="Bookings retrieved successfully",
        pagination=pagination.info(total),
    )


@router.get("/bookings", response_model=ApiResponse[PartyBookingListData])
def list_bookings(
    status: Optional[BookingStatus] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    service_type: Optional[str] = Query(None, max_length=100),
    pagination: Pagination = Depends(get_pagination),
    profile: UserProfile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[PartyBookingListData]:
    filters = BookingFilters(
        status=status.value if status else None,
        start_date=parse_iso_date(start_date),
        end_date=parse_iso_date(end_date),
        service_type=service_type,
    )
    return _page(profile, filters, pagination, service)


@router.post(
    "/bookings",
    response_model=ApiResponse[BookingResponse],
    status_code=201,
    dependencies=[Depends(rate_limit("write"))],
)
def create_booking(
    payload: CreateBookingRequest = Body(...),
    profile: UserProfile = Depends(get_current_profile),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[BookingResponse]:
    booking = service.create_booking(
        profile,
        service_type=payload.service_type,
        booking_date=payload.booking_date,
        start_time=payload.start_time,
        duration_minutes=payload.duration_minutes,
        family_id=payload.family_id,
        director_id=payload.director_id,
        venue_id=payload.venue_id,
        notes=payload.notes,
    )
    return ApiResponse(
        data=BookingResponse.model_validate(booking),
        message="Booking created successfully",
    )


@router.get("/family/bookings", response_model=ApiResponse[PartyBookingListData])
def list_family_bookings(
    status: Optional[BookingStatus] = Query(None),
    from_date: Optional[str] = Query(None),
    to_date: Optional[str] = Query(None),
    pagination: Pagination = Depends(get_pagination),
    family: UserProfile = Depends(require_family),
    service: BookingService = Depends(get_booking_service),
) -> ApiResponse[PartyBookingListData]:
    filters = BookingFilters(
        status=status.value if status else None,
        start_date=parse_iso_date(from_date),
        end_date=parse_iso_date(to_date),
    )
    return _page(family, filters, pagination, service)
