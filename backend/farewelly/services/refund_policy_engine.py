"""Refund policy evaluation: role- and age-based eligibility and fee rates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from ..core.enums import BookingStatus, UserType

SECONDS_PER_DAY = 86400


@dataclass(frozen=True)
class RefundPolicyResult:
    allowed: bool
    fee_rate: Decimal = Decimal("0")
    reason: str | None = None

    @property
    def fee_percentage(self) -> float:
        return float(self.fee_rate * 100)

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "allowed": self.allowed,
            "fee_percentage": self.fee_percentage,
        }
        if self.reason:
            payload["reason"] = self.reason
        return payload


def days_between(earlier: datetime, later: datetime) -> float:
    """Fractional days from ``earlier`` to ``later``; naive datetimes are treated as UTC."""
    if earlier.tzinfo is None:
        earlier = earlier.replace(tzinfo=timezone.utc)
    if later.tzinfo is None:
        later = later.replace(tzinfo=timezone.utc)
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


class RefundPolicyEngine:
    """
    Determines refund eligibility and the processing fee.

    Families on a completed booking get a free refund within one day and a
    10% fee up to seven days. Families on any other booking pay 5% up to 30
    days. Directors and venues pay 3% up to 90 days.
    """

    def evaluate(
        self,
        requester_type: str,
        booking_status: str,
        paid_at: datetime,
        now: datetime | None = None,
    ) -> RefundPolicyResult:
        age_days = days_between(paid_at, now or datetime.now(timezone.utc))

        if requester_type == UserType.FAMILY.value:
            if booking_status == BookingStatus.COMPLETED.value:
                if age_days <= 1:
                    return RefundPolicyResult(allowed=True, fee_rate=Decimal("0"))
                if age_days <= 7:
                    return RefundPolicyResult(allowed=True, fee_rate=Decimal("0.10"))
                return RefundPolicyResult(
                    allowed=False,
                    reason="Refunds not allowed more than 7 days after completed service",
                )
            if age_days <= 30:
                return RefundPolicyResult(allowed=True, fee_rate=Decimal("0.05"))
            return RefundPolicyResult(
                allowed=False,
                reason="Refunds not allowed more than 30 days after payment",
            )

        if requester_type in (UserType.DIRECTOR.value, UserType.VENUE.value):
            if age_days <= 90:
                return RefundPolicyResult(allowed=True, fee_rate=Decimal("0.03"))
            return RefundPolicyResult(
                allowed=False,
                reason="Refunds not allowed more than 90 days after payment",
            )

        return RefundPolicyResult(allowed=False, reason="Invalid user type for refund")
