# backend/farewelly/routes/v1/payments.py
"""
Payment API Routes - API v1

Checkout, role-scoped payment history, refunds and split bookkeeping.

Endpoints:
    GET /payments                 → List payments visible to the caller
    POST /payments                → Charge a family for a booking
    GET /payments/splits          → List the caller's payment splits
    PUT /payments/splits          → Mark splits paid or request a payout
    GET /payments/{payment_id}    → One payment with splits and refunds
    POST /payments/{payment_id}/refund → Refund all or part of a payment
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, Query

from ...api.dependencies import Pagination, get_current_profile, get_pagination
from ...api.dependencies.auth import require_service_provider
from ...api.dependencies.services import (
    get_payment_service,
    get_refund_service,
    get_split_service,
)
from ...core.enums import PaymentStatus, SplitAction, SplitStatus
from ...models.user import UserProfile
from ...ratelimit.dependency import rate_limit
from ...repositories.payment_repository import PaymentFilters, SplitFilters
from ...schemas.base_responses import ApiResponse
from ...schemas.payment import (
    CreatePaymentRequest,
    PaymentFiltersEcho,
    PaymentListData,
    PaymentResponse,
    PaymentSplitResponse,
    PaymentStats,
    RefundRequest,
    RefundResultData,
    SplitActionData,
    SplitActionRequest,
    SplitFiltersEcho,
    SplitListData,
    SplitListItem,
    SplitStats,
    refund_detail,
)
from ...services.payment_service import PaymentService
from ...services.refund_service import RefundService
from ...services.split_service import SplitService
from ...utils.money import money_float
from ...utils.time_slots import parse_iso_date

logger = logging.getLogger(__name__)

# V1 router - no prefix here, added when mounting in main.py
router = APIRouter(tags=["payments-v1"])


def _day_start(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.min, tzinfo=timezone.utc) if value else None


def _day_end(value: Optional[date]) -> Optional[datetime]:
    return datetime.combine(value, time.max, tzinfo=timezone.utc) if value else None


# ============================================================================
# Payments
# ============================================================================


@router.get("/payments", response_model=ApiResponse[PaymentListData])
def list_payments(
    status: Optional[PaymentStatus] = Query(None),
    booking_id: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    sort_by: Literal["created_at", "amount", "status"] = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    pagination: Pagination = Depends(get_pagination),
    profile: UserProfile = Depends(get_current_profile),
    service: PaymentService = Depends(get_payment_service),
) -> ApiResponse[PaymentListData]:
    start, end = parse_iso_date(start_date), parse_iso_date(end_date)
    filters = PaymentFilters(
        status=status.value if status else None,
        booking_id=booking_id,
        start=_day_start(start),
        end=_day_end(end),
        sort_by=sort_by,
        sort_order=sort_order,
    )
    rows, total, stats = service.list_payments(
        profile, filters, offset=pagination.offset, limit=pagination.limit
    )
    return ApiResponse(
        data=PaymentListData(
            payments=[PaymentResponse.model_validate(row) for row in rows],
            stats=PaymentStats(**stats),
            user_role=profile.user_type,
            filters=PaymentFiltersEcho(
                status=filters.status,
                booking_id=booking_id,
                start_date=start,
                end_date=end,
                sort_by=sort_by,
                sort_order=sort_order,
            ),
        ),
        message="Payments retrieved successfully",
        pagination=pagination.info(total),
    )


@router.post(
    "/payments",
    response_model=ApiResponse[PaymentResponse],
    status_code=201,
    dependencies=[Depends(rate_limit("financial"))],
)
def create_payment(
    payload: CreatePaymentRequest = Body(...),
    profile: UserProfile = Depends(get_current_profile),
    service: PaymentService = Depends(get_payment_service),
) -> ApiResponse[PaymentResponse]:
    """Charge the family's payment method and record the payment splits."""
    payment = service.create_payment(
        profile,
        booking_id=payload.booking_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        payment_token=payload.payment_token,
        splits=[split.model_dump() for split in payload.splits] if payload.splits else None,
    )
    return ApiResponse(
        data=PaymentResponse.model_validate(payment),
        message="Payment processed successfully",
    )


# ============================================================================
# Splits (static paths registered before /payments/{payment_id})
# ============================================================================


@router.get("/payments/splits", response_model=ApiResponse[SplitListData])
def list_payment_splits(
    status: Optional[SplitStatus] = Query(None),
    payment_id: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
    pagination: Pagination = Depends(get_pagination),
    profile: UserProfile = Depends(require_service_provider),
    service: SplitService = Depends(get_split_service),
) -> ApiResponse[SplitListData]:
    start, end = parse_iso_date(start_date), parse_iso_date(end_date)
    filters = SplitFilters(
        status=status.value if status else None,
        payment_id=payment_id,
        start=_day_start(start),
        end=_day_end(end),
    )
    rows, total, stats = service.list_splits(
        profile, filters, offset=pagination.offset, limit=pagination.limit
    )
    return ApiResponse(
        data=SplitListData(
            splits=[SplitListItem.model_validate(row) for row in rows],
            stats=SplitStats(**stats),
            user_role=profile.user_type,
            filters=SplitFiltersEcho(
                status=filters.status,
                payment_id=payment_id,
                start_date=start,
                end_date=end,
            ),
        ),
        message="Payment splits retrieved successfully",
        pagination=pagination.info(total),
    )


@router.put(
    "/payments/splits",
    response_model=ApiResponse[SplitActionData],
    dependencies=[Depends(rate_limit("financial"))],
)
def update_payment_splits(
    payload: SplitActionRequest = Body(...),
    profile: UserProfile = Depends(require_service_provider),
    service: SplitService = Depends(get_split_service),
) -> ApiResponse[SplitActionData]:
    splits, total_amount = service.update_splits(profile, payload.split_ids, payload.action.value)
    if payload.action == SplitAction.MARK_PAID:
        message = "Payment splits marked as paid successfully"
    else:
        message = "Payout request submitted successfully"
    return ApiResponse(
        data=SplitActionData(
            updated_splits=[PaymentSplitResponse.model_validate(split) for split in splits],
            action=payload.action.value,
            total_amount=money_float(total_amount),
        ),
        message=message,
    )


# ============================================================================
# Single payment
# ============================================================================


@router.get("/payments/{payment_id}", response_model=ApiResponse[PaymentResponse])
def get_payment(
    payment_id: str,
    profile: UserProfile = Depends(get_current_profile),
    service: PaymentService = Depends(get_payment_service),
) -> ApiResponse[PaymentResponse]:
    payment = service.get_payment(profile, payment_id)
    return ApiResponse(
        data=PaymentResponse.model_validate(payment),
        message="Payment retrieved successfully",
    )


@router.post(
    "/payments/{payment_id}/refund",
    response_model=ApiResponse[RefundResultData],
    dependencies=[Depends(rate_limit("financial"))],
)
def refund_payment(
    payment_id: str,
    payload: Optional[RefundRequest] = Body(None),
    profile: UserProfile = Depends(get_current_profile),
    service: RefundService = Depends(get_refund_service),
) -> ApiResponse[RefundResultData]:
    """
    Refund a payment in full, or partially when ``amount`` is given.

    The refund fee depends on who asks and how long ago the payment was made.
    """
    payload = payload or RefundRequest()
    outcome = service.process_refund(
        profile, payment_id, amount=payload.amount, reason=payload.reason
    )
    return ApiResponse(
        data=RefundResultData(
            payment=PaymentResponse.model_validate(outcome.payment),
            refund=refund_detail(outcome.refund, outcome.policy.to_payload()),
        ),
        message="Refund processed successfully",
    )
