"""
Legal deadline routes - API v1

Endpoints:
    PUT  /compliance/bookings/{booking_id} - Record the death registration date
    GET  /compliance/bookings/{booking_id} - Deadline status for a booking
    POST /compliance/check                 - Re-evaluate all open deadlines (admin)
"""

import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies.auth import get_current_profile, require_admin
from ...api.dependencies.services import get_compliance_service
from ...models.user import UserProfile
from ...ratelimit.dependency import rate_limit
from ...schemas.base_responses import ApiResponse
from ...schemas.compliance import (
    ComplianceCheckSummary,
    ComplianceStatusResponse,
    RegisterDeathRequest,
)
from ...services.compliance_service import ComplianceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["compliance-v1"])


@router.put(
    "/compliance/bookings/{booking_id}",
    response_model=ApiResponse[ComplianceStatusResponse],
    dependencies=[Depends(rate_limit("write"))],
)
def register_death(
    booking_id: str,
    payload: RegisterDeathRequest = Body(...),
    profile: UserProfile = Depends(get_current_profile),
    service: ComplianceService = Depends(get_compliance_service),
) -> ApiResponse[ComplianceStatusResponse]:
    summary = service.register_death(profile, booking_id, payload.death_registration_date)
    return ApiResponse(
        data=ComplianceStatusResponse(**summary),
        message="Compliance tracking initialized",
    )


@router.get(
    "/compliance/bookings/{booking_id}", response_model=ApiResponse[ComplianceStatusResponse]
)
def get_compliance_status(
    booking_id: str,
    profile: UserProfile = Depends(get_current_profile),
    service: ComplianceService = Depends(get_compliance_service),
) -> ApiResponse[ComplianceStatusResponse]:
    return ApiResponse(data=ComplianceStatusResponse(**service.get_status(profile, booking_id)))


@router.post("/compliance/check", response_model=ApiResponse[ComplianceCheckSummary])
def check_deadlines(
    _admin: UserProfile = Depends(require_admin),
    service: ComplianceService = Depends(get_compliance_service),
) -> ApiResponse[ComplianceCheckSummary]:
    """Run the periodic deadline check on demand."""
    return ApiResponse(
        data=ComplianceCheckSummary(**service.check_deadlines()),
        message="Compliance check completed",
    )
