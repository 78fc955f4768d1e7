"""
Payment, split and refund schemas.

Amounts are accepted as decimals and rendered as euro floats.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..core.enums import SplitAction
from ._strict_base import ORMModel, StrictRequestModel

# ========== Request Models ==========


class SplitInput(BaseModel):
    recipient_id: str = Field(..., min_length=1)
    amount: Decimal
    percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)


class CreatePaymentRequest(StrictRequestModel):
    booking_id: str = Field(..., min_length=1)
    amount: Decimal
    payment_method: str = Field(..., min_length=1, max_length=50)
    payment_token: Optional[str] = None
    splits: Optional[List[SplitInput]] = None


class RefundRequest(StrictRequestModel):
    amount: Optional[Decimal] = None
    reason: Optional[str] = Field(default=None, max_length=500)


class SplitActionRequest(StrictRequestModel):
    split_ids: List[str] = Field(..., min_length=1)
    action: SplitAction


# ========== Response Models ==========


class PartySummary(ORMModel):
    id: str
    name: str
    venue_name: Optional[str] = None


class PaymentBookingSummary(ORMModel):
    id: str
    service_type: str
    booking_date: date
    start_time: str
    status: str
    family: Optional[PartySummary] = None
    director: Optional[PartySummary] = None
    venue: Optional[PartySummary] = None


class PaymentSplitResponse(ORMModel):
    id: str
    payment_id: str
    recipient_id: str
    recipient_type: str
    amount: float
    percentage: float
    refunded_amount: float
    status: str
    paid_at: Optional[datetime] = None
    payout_requested_at: Optional[datetime] = None
    created_at: datetime


class PaymentRefundResponse(ORMModel):
    id: str
    payment_id: str
    amount: float
    fee: float
    net_amount: float
    reason: Optional[str] = None
    provider_refund_id: Optional[str] = None
    status: str
    processed_by: str
    processed_by_type: str
    processed_at: datetime
    created_at: datetime


class PaymentResponse(ORMModel):
    id: str
    booking_id: str
    amount: float
    currency: str
    status: str
    payment_method: str
    provider_payment_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    booking: Optional[PaymentBookingSummary] = None
    splits: List[PaymentSplitResponse] = Field(default_factory=list)
    refunds: List[PaymentRefundResponse] = Field(default_factory=list)


class PaymentStats(BaseModel):
    total_payments: int
    total_amount: float
    completed_amount: float
    pending_amount: float
    refunded_amount: float
    average_payment: float


class PaymentFiltersEcho(BaseModel):
    status: Optional[str] = None
    booking_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    sort_by: str
    sort_order: str


class PaymentListData(BaseModel):
    payments: List[PaymentResponse]
    stats: PaymentStats
    user_role: str
    filters: PaymentFiltersEcho


class RefundPolicyApplied(BaseModel):
    allowed: bool
    fee_percentage: float
    reason: Optional[str] = None


class RefundDetail(PaymentRefundResponse):
    policy_applied: RefundPolicyApplied


class RefundResultData(BaseModel):
    payment: PaymentResponse
    refund: RefundDetail


class SplitPaymentSummary(ORMModel):
    id: str
    amount: float
    status: str
    created_at: datetime
    booking: Optional[PaymentBookingSummary] = None


class SplitListItem(PaymentSplitResponse):
    payment: Optional[SplitPaymentSummary] = None


class SplitStats(BaseModel):
    total_splits: int
    total_amount: float
    paid_amount: float
    pending_amount: float
    refunded_amount: float
    net_amount: float


class SplitFiltersEcho(BaseModel):
    status: Optional[str] = None
    payment_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class SplitListData(BaseModel):
    splits: List[SplitListItem]
    stats: SplitStats
    user_role: str
    filters: SplitFiltersEcho


class SplitActionData(BaseModel):
    updated_splits: List[PaymentSplitResponse]
    action: str
    total_amount: float


def refund_detail(refund: Any, policy_payload: Dict[str, Any]) -> RefundDetail:
    base = PaymentRefundResponse.model_validate(refund).model_dump()
    return RefundDetail(**base, policy_applied=RefundPolicyApplied(**policy_payload))
