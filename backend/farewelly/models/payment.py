"""
Payment models.

A payment is made by a family against a booking and is divided into splits
(platform commission, director share, venue share). Refunds are recorded as
separate rows so the cumulative refunded amount can always be recomputed.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
import ulid

from ..core.constants import CURRENCY
from ..core.enums import PaymentStatus, SplitStatus
from ..database import Base

if TYPE_CHECKING:
    from .booking import Booking


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Payment(Base):
    """Family payment against a booking."""

    __tablename__ = "payments"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    booking_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default=CURRENCY)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True
    )
    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_payment_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now_utc, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_now_utc, onupdate=_now_utc
    )

    booking: Mapped["Booking"] = relationship("Booking", back_populates="payments")
    splits: Mapped[list["PaymentSplit"]] = relationship(
        "PaymentSplit",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="PaymentSplit.created_at",
        lazy="selectin",
    )
    refunds: Mapped[list["PaymentRefund"]] = relationship(
        "PaymentRefund",
        back_populates="payment",
        cascade="all, delete-orphan",
        order_by="PaymentRefund.created_at",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def total_refunded(self) -> Decimal:
        return sum((Decimal(r.amount) for r in self.refunds), Decimal("0"))

    def __repr__(self) -> str:
        return f"<Payment {self.id} booking={self.booking_id} amount={self.amount} {self.status}>"


class PaymentSplit(Base):
    """Portion of a payment allocated to the platform, a director or a venue."""

    __tablename__ = "payment_splits"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    payment_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # "platform" or a user_profiles id
    recipient_id: Mapped[str] = mapped_column(String(26), nullable=False, index=True)
    recipient_type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    refunded_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SplitStatus.PENDING.value, index=True
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payout_requested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now_utc, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_now_utc, onupdate=_now_utc
    )

    payment: Mapped["Payment"] = relationship("Payment", back_populates="splits")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<PaymentSplit {self.recipient_type}:{self.recipient_id} {self.amount}>"


class PaymentRefund(Base):
    """Completed refund against a payment."""

    __tablename__ = "payment_refunds"

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    payment_id: Mapped[str] = mapped_column(
        String(26), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    net_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    provider_refund_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    processed_by: Mapped[str] = mapped_column(String(26), nullable=False)
    processed_by_type: Mapped[str] = mapped_column(String(20), nullable=False)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now_utc, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now_utc, server_default=func.now(), nullable=False
    )

    payment: Mapped["Payment"] = relationship("Payment", back_populates="refunds")

    def __repr__(self) -> str:
        return f"<PaymentRefund {self.id} payment={self.payment_id} amount={self.amount}>"
