"""SQLAlchemy models. Importing this package registers every table on Base.metadata."""

from .booking import Booking
from .event_outbox import EventOutbox, EventOutboxStatus
from .notification import Notification
from .payment import Payment, PaymentRefund, PaymentSplit
from .review import VenueReview
from .user import UserProfile
from .venue_availability import VenueAvailability

__all__ = [
    "Booking",
    "EventOutbox",
    "EventOutboxStatus",
    "Notification",
    "Payment",
    "PaymentRefund",
    "PaymentSplit",
    "UserProfile",
    "VenueAvailability",
    "VenueReview",
]
