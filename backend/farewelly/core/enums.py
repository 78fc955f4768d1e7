"""Shared enumerations for marketplace roles and record states."""

from enum import Enum


class UserType(str, Enum):
    """Role attached to every user profile."""

    FAMILY = "family"
    DIRECTOR = "director"
    VENUE = "venue"
    ADMIN = "admin"


class BookingStatus(str, Enum):
    """Booking lifecycle states. COMPLETED and CANCELLED are terminal."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingAction(str, Enum):
    """Venue-initiated booking actions."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    COMPLETE = "complete"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUNDED = "partial_refunded"


class RecipientType(str, Enum):
    PLATFORM = "platform"
    DIRECTOR = "director"
    VENUE = "venue"


class SplitStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    PAYOUT_REQUESTED = "payout_requested"


class SplitAction(str, Enum):
    MARK_PAID = "mark_paid"
    REQUEST_PAYOUT = "request_payout"


class RefundStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class AvailabilityAction(str, Enum):
    BLOCK = "block"
    UNBLOCK = "unblock"


class AnalyticsPeriod(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"


class NotificationType(str, Enum):
    BOOKING = "booking"
    PAYMENT = "payment"
    VENUE = "venue"


class ComplianceStatus(str, Enum):
    """Progress against the legal burial or cremation deadline."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    AT_RISK = "at_risk"
    EMERGENCY = "emergency"
