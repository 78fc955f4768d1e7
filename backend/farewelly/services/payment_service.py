# backend/farewelly/services/payment_service.py
"""
Payment Service for the Farewelly platform.

Handles family checkout against a booking: eligibility checks, the
commission split, the provider charge and the Payment/PaymentSplit rows.
Read paths are scoped to the caller's role.

Splits always sum to the payment amount within one cent. When the caller
does not supply splits, the platform keeps 5% and the remainder goes to the
director and venue 70/30, or entirely to whichever of the two is attached.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import MONEY_TOLERANCE, PLATFORM_RECIPIENT_ID
from ..core.enums import (
    BookingStatus,
    NotificationType,
    PaymentStatus,
    RecipientType,
    SplitStatus,
    UserType,
)
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    PaymentDeclinedException,
    ValidationException,
)
from ..models.booking import Booking
from ..models.payment import Payment
from ..models.user import UserProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from ..repositories.payment_repository import PaymentFilters
from ..utils.money import money_float, to_money
from .base import BaseService
from .notification_service import NotificationService
from .payment_provider import MockPaymentProvider

PAYABLE_BOOKING_STATUSES = {BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value}


@dataclass
class SplitAllocation:
    recipient_id: str
    recipient_type: str
    amount: Decimal
    percentage: Decimal


def compute_default_splits(
    amount: Decimal, director_id: Optional[str], venue_id: Optional[str]
) -> List[SplitAllocation]:
    """
    Build the default commission split for a payment.

    The platform share is rounded to cents; the party shares absorb the
    rounding so the allocations always add up to ``amount`` exactly.
    """
    if not director_id and not venue_id:
        raise ValidationException(
            "Booking has no director or venue to receive the payment",
            code="NO_PAYMENT_RECIPIENT",
        )

    amount = to_money(amount)
    fee_percent = Decimal(str(settings.platform_fee_percent))
    platform_fee = to_money(amount * fee_percent / 100)
    remaining = amount - platform_fee

    allocations = [
        SplitAllocation(
            recipient_id=PLATFORM_RECIPIENT_ID,
            recipient_type=RecipientType.PLATFORM.value,
            amount=platform_fee,
            percentage=fee_percent,
        )
    ]

    if director_id and venue_id:
        director_percent = Decimal(str(settings.director_share_percent))
        director_amount = to_money(remaining * director_percent / 100)
        allocations.append(
            SplitAllocation(
                recipient_id=director_id,
                recipient_type=RecipientType.DIRECTOR.value,
                amount=director_amount,
                percentage=director_percent,
            )
        )
        allocations.append(
            SplitAllocation(
                recipient_id=venue_id,
                recipient_type=RecipientType.VENUE.value,
                amount=remaining - director_amount,
                percentage=Decimal(100) - director_percent,
            )
        )
    else:
        single_party = director_id or venue_id
        allocations.append(
            SplitAllocation(
                recipient_id=single_party,  # type: ignore[arg-type]
                recipient_type=(
                    RecipientType.DIRECTOR.value if director_id else RecipientType.VENUE.value
                ),
                amount=remaining,
                percentage=Decimal(str(settings.single_party_share_percent)),
            )
        )
    return allocations


def splits_balance(amount: Decimal, allocations: Sequence[SplitAllocation]) -> bool:
    total = sum((a.amount for a in allocations), Decimal("0"))
    return abs(total - to_money(amount)) <= Decimal(MONEY_TOLERANCE)


class PaymentService(BaseService):
    """Checkout and payment queries."""

    def __init__(
        self,
        db: Session,
        provider: Optional[MockPaymentProvider] = None,
        notification_service: Optional[NotificationService] = None,
    ):
        super().__init__(db)
        self.provider = provider or MockPaymentProvider()
        self.notification_service = notification_service or NotificationService(db)
        self.payment_repository = RepositoryFactory.create_payment_repository(db)
        self.split_repository = RepositoryFactory.create_payment_split_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    # Checkout

    def _resolve_explicit_splits(
        self, booking: Booking, amount: Decimal, requested: Sequence[Dict[str, Any]]
    ) -> List[SplitAllocation]:
        allocations: List[SplitAllocation] = []
        for item in requested:
            recipient_id = str(item.get("recipient_id") or "")
            if recipient_id == PLATFORM_RECIPIENT_ID:
                recipient_type = RecipientType.PLATFORM.value
            elif recipient_id and recipient_id == booking.director_id:
                recipient_type = RecipientType.DIRECTOR.value
            elif recipient_id and recipient_id == booking.venue_id:
                recipient_type = RecipientType.VENUE.value
            else:
                raise ValidationException(
                    f"Invalid split recipient: {recipient_id or 'missing'}",
                    code="INVALID_SPLIT_RECIPIENT",
                )

            split_amount = to_money(item.get("amount") or 0)
            if split_amount < 0:
                raise ValidationException("Split amounts cannot be negative")

            percentage = item.get("percentage")
            if percentage is None:
                percentage = (split_amount / amount * 100).quantize(Decimal("0.01"))
            allocations.append(
                SplitAllocation(
                    recipient_id=recipient_id,
                    recipient_type=recipient_type,
                    amount=split_amount,
                    percentage=Decimal(str(percentage)),
                )
            )
        return allocations

    @BaseService.measure_operation("create_payment")
    def create_payment(
        self,
        profile: UserProfile,
        *,
        booking_id: str,
        amount: Decimal,
        payment_method: str,
        payment_token: Optional[str] = None,
        splits: Optional[Sequence[Dict[str, Any]]] = None,
    ) -> Payment:
        """
        Charge a family for a booking and record the payment with its splits.

        Raises:
            ForbiddenException: caller is not a family or does not own the booking
            NotFoundException: booking does not exist
            ValidationException: booking not payable, already paid, bad amount or splits
            PaymentDeclinedException: provider rejected the charge (nothing persisted)
        """
        if profile.user_type != UserType.FAMILY.value:
            raise ForbiddenException("Only families can process payments")

        booking = self.booking_repository.get_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if booking.family_id != profile.id:
            raise ForbiddenException("Access denied - can only pay for your own bookings")
        if booking.status not in PAYABLE_BOOKING_STATUSES:
            raise ValidationException("Can only pay for confirmed or completed bookings")
        if self.payment_repository.has_completed_payment(booking.id):
            raise ValidationException("Payment already completed for this booking")

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationException("Payment amount must be greater than 0")

        if splits:
            allocations = self._resolve_explicit_splits(booking, amount, splits)
        else:
            allocations = compute_default_splits(amount, booking.director_id, booking.venue_id)
        if not splits_balance(amount, allocations):
            raise ValidationException("Payment splits must total the payment amount")

        result = self.provider.charge(amount, payment_method, payment_token)
        if not result.success:
            prometheus_metrics.record_payment("declined")
            self.logger.info(
                "Payment declined for booking %s: %s", booking.id, result.error
            )
            raise PaymentDeclinedException(result.error or "Payment processing failed")

        with self.transaction():
            payment = self.payment_repository.create(
                booking_id=booking.id,
                amount=amount,
                status=PaymentStatus.COMPLETED.value,
                payment_method=payment_method,
                provider_payment_id=result.reference,
            )
            for allocation in allocations:
                self.split_repository.create(
                    payment_id=payment.id,
                    recipient_id=allocation.recipient_id,
                    recipient_type=allocation.recipient_type,
                    amount=allocation.amount,
                    percentage=allocation.percentage,
                    status=SplitStatus.PENDING.value,
                )

            notification_data = {
                "payment_id": payment.id,
                "booking_id": booking.id,
                "amount": money_float(amount),
                "from": profile.name,
            }
            if booking.director_id:
                self.notification_service.notify(
                    booking.director_id,
                    NotificationType.PAYMENT.value,
                    "Payment Received",
                    f"Payment of €{money_float(amount)} received for booking on {booking.booking_date}",
                    notification_data,
                )
            if booking.venue_id:
                self.notification_service.notify(
                    booking.venue_id,
                    NotificationType.PAYMENT.value,
                    "Payment Received",
                    f"Payment of €{money_float(amount)} received for venue booking on "
                    f"{booking.booking_date}",
                    notification_data,
                )

        prometheus_metrics.record_payment("completed")
        self.log_operation("create_payment", payment_id=payment.id, booking_id=booking.id)
        self.db.refresh(payment)
        return payment

    # Queries

    @BaseService.measure_operation("list_payments")
    def list_payments(
        self, profile: UserProfile, filters: PaymentFilters, *, offset: int, limit: int
    ) -> tuple[List[Payment], int, Dict[str, float]]:
        if profile.user_type not in (
            UserType.FAMILY.value,
            UserType.DIRECTOR.value,
            UserType.VENUE.value,
        ):
            raise ForbiddenException("Invalid user type")

        rows, total = self.payment_repository.list_for_profile(
            profile.user_type, profile.id, filters, offset=offset, limit=limit
        )
        totals = self.payment_repository.totals_for_profile(profile.user_type, profile.id, filters)
        stats = {
            "total_payments": totals.count,
            "total_amount": money_float(totals.total_amount),
            "completed_amount": money_float(totals.completed_amount),
            "pending_amount": money_float(totals.pending_amount),
            "refunded_amount": money_float(totals.refunded_amount),
            "average_payment": (
                money_float(totals.total_amount / totals.count) if totals.count else 0.0
            ),
        }
        return rows, total, stats

    @BaseService.measure_operation("get_payment")
    def get_payment(self, profile: UserProfile, payment_id: str) -> Payment:
        payment = self.payment_repository.get_by_id(payment_id)
        if payment is None:
            raise NotFoundException("Payment not found")
        booking = payment.booking
        holds_split = any(split.recipient_id == profile.id for split in payment.splits)
        if not (booking.is_party(profile.id) or holds_split):
            raise ForbiddenException("Access denied to this payment")
        return payment
