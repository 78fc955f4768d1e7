# backend/farewelly/services/refund_service.py
"""
Refund processing for completed payments.

A completed payment is refunded once, fully or partially. The amount is
capped at the payment total, priced by RefundPolicyEngine, executed at the
provider, and then spread over the payment's splits in proportion to their
current amounts. After that the payment is refunded or partial_refunded and
accepts no further refunds.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import NotificationType, PaymentStatus, RefundStatus
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    RefundNotAllowedException,
    ServiceException,
    ValidationException,
)
from ..models.payment import Payment, PaymentRefund, PaymentSplit
from ..models.user import UserProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..utils.money import money_float, to_money
from .base import BaseService
from .notification_service import NotificationService
from .payment_provider import MockPaymentProvider
from .refund_policy_engine import RefundPolicyEngine, RefundPolicyResult

REFUNDABLE_PAYMENT_STATUSES = {PaymentStatus.COMPLETED.value}
DEFAULT_REFUND_REASON = "Customer request"


@dataclass
class RefundOutcome:
    payment: Payment
    refund: PaymentRefund
    policy: RefundPolicyResult


def proportional_shares(split_amounts: Sequence[Decimal], refund_amount: Decimal) -> List[Decimal]:
    """
    Divide ``refund_amount`` over splits in proportion to their amounts.

    Shares are rounded to cents and the last split takes the rounding
    remainder, so the shares always add up to the refund amount.
    """
    total = sum(split_amounts, Decimal("0"))
    if total <= 0 or not split_amounts:
        return [Decimal("0.00") for _ in split_amounts]

    refund_amount = to_money(refund_amount)
    shares: List[Decimal] = []
    for amount in split_amounts[:-1]:
        shares.append(to_money(Decimal(amount) / total * refund_amount))
    shares.append(refund_amount - sum(shares, Decimal("0")))
    return shares


def redistribute_refund(splits: Sequence[PaymentSplit], refund_amount: Decimal) -> List[Decimal]:
    """Reduce each split's live amount by its share; amounts never go below zero."""
    shares = proportional_shares([Decimal(s.amount) for s in splits], refund_amount)
    for split, share in zip(splits, shares):
        split.amount = max(Decimal("0.00"), to_money(Decimal(split.amount) - share))
        split.refunded_amount = to_money(Decimal(split.refunded_amount or 0) + share)
    return shares


class RefundService(BaseService):
    def __init__(
        self,
        db: Session,
        provider: Optional[MockPaymentProvider] = None,
        notification_service: Optional[NotificationService] = None,
        policy_engine: Optional[RefundPolicyEngine] = None,
    ):
        super().__init__(db)
        self.provider = provider or MockPaymentProvider()
        self.notification_service = notification_service or NotificationService(db)
        self.policy_engine = policy_engine or RefundPolicyEngine()
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.refund_repository = RepositoryFactory.create_payment_refund_repository(db)

    @BaseService.measure_operation("process_refund")
    def process_refund(
        self,
        profile: UserProfile,
        payment_id: str,
        *,
        amount: Optional[Decimal] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> RefundOutcome:
        payment = self.payment_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")

        booking = payment.booking
        if not booking.is_party(profile.id):
            raise ForbiddenException("Access denied - not authorized to refund this payment")

        if payment.status not in REFUNDABLE_PAYMENT_STATUSES:
            raise ValidationException("Can only refund completed payments")

        already_refunded = self.refund_repository.total_for_payment(payment.id)
        available = to_money(Decimal(payment.amount) - already_refunded)
        if available <= 0:
            raise ValidationException("Payment has already been fully refunded")

        if amount is None:
            refund_amount = available
        else:
            refund_amount = to_money(amount)
            if refund_amount <= 0:
                raise ValidationException("Invalid refund amount")
            refund_amount = min(refund_amount, available)

        policy = self.policy_engine.evaluate(
            profile.user_type, booking.status, payment.created_at, now=now
        )
        if not policy.allowed:
            prometheus_metrics.record_refund("denied", profile.user_type)
            raise RefundNotAllowedException(policy.reason or "Refund not allowed")

        fee = to_money(refund_amount * policy.fee_rate)
        net_amount = refund_amount - fee

        result = self.provider.refund(payment.provider_payment_id, refund_amount)
        if not result.success:
            prometheus_metrics.record_refund("provider_failed", profile.user_type)
            raise ServiceException(
                result.error or "Refund processing failed at payment provider",
                code="REFUND_PROVIDER_FAILED",
            )

        with self.transaction():
            refund = self.refund_repository.create(
                payment_id=payment.id,
                amount=refund_amount,
                fee=fee,
                net_amount=net_amount,
                reason=reason or DEFAULT_REFUND_REASON,
                provider_refund_id=result.reference,
                status=RefundStatus.COMPLETED.value,
                processed_by=profile.id,
                processed_by_type=profile.user_type,
            )

            total_refunded = already_refunded + refund_amount
            new_status = (
                PaymentStatus.REFUNDED.value
                if total_refunded >= Decimal(payment.amount)
                else PaymentStatus.PARTIAL_REFUNDED.value
            )
            self.payment_repository.update(payment, status=new_status)

            if payment.splits:
                redistribute_refund(list(payment.splits), refund_amount)
                self.db.flush()

            self._notify_refund(profile, payment, refund, reason)

        prometheus_metrics.record_refund("completed", profile.user_type)
        self.log_operation(
            "process_refund",
            payment_id=payment.id,
            refund_id=refund.id,
            amount=str(refund_amount),
            status=new_status,
        )
        self.db.refresh(payment)
        return RefundOutcome(payment=payment, refund=refund, policy=policy)

    def _notify_refund(
        self,
        profile: UserProfile,
        payment: Payment,
        refund: PaymentRefund,
        reason: Optional[str],
    ) -> None:
        booking = payment.booking
        refund_amount = money_float(refund.amount)

        self.notification_service.notify(
            booking.family_id,
            NotificationType.PAYMENT.value,
            "Refund Processed",
            f"Refund of €{refund_amount} has been processed for your payment",
            {
                "payment_id": payment.id,
                "refund_id": refund.id,
                "refund_amount": refund_amount,
                "net_amount": money_float(refund.net_amount),
                "reason": reason,
                "processed_by": profile.name,
            },
        )

        for stakeholder_id in (booking.director_id, booking.venue_id):
            if not stakeholder_id or stakeholder_id == profile.id:
                continue
            self.notification_service.notify(
                stakeholder_id,
                NotificationType.PAYMENT.value,
                "Payment Refunded",
                f"A refund of €{refund_amount} has been processed for booking on "
                f"{booking.booking_date}",
                {
                    "payment_id": payment.id,
                    "refund_id": refund.id,
                    "refund_amount": refund_amount,
                    "booking_id": booking.id,
                    "processed_by": profile.name,
                },
            )
