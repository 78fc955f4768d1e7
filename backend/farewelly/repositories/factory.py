"""
Repository Factory for the Farewelly platform.

Central place for creating repository instances so services do not need to
know constructor details.
"""

from sqlalchemy.orm import Session

from .availability_repository import AvailabilityRepository
from .booking_repository import BookingRepository
from .event_outbox_repository import EventOutboxRepository
from .notification_repository import NotificationRepository
from .payment_repository import (
    PaymentRefundRepository,
    PaymentRepository,
    PaymentSplitRepository,
)
from .review_repository import VenueReviewRepository
from .user_repository import UserProfileRepository


class RepositoryFactory:
    """Factory for creating repository instances."""

    @staticmethod
    def create_user_profile_repository(db: Session) -> UserProfileRepository:
        return UserProfileRepository(db)

    @staticmethod
    def create_availability_repository(db: Session) -> AvailabilityRepository:
        return AvailabilityRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> BookingRepository:
        return BookingRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> PaymentRepository:
        return PaymentRepository(db)

    @staticmethod
    def create_payment_split_repository(db: Session) -> PaymentSplitRepository:
        return PaymentSplitRepository(db)

    @staticmethod
    def create_payment_refund_repository(db: Session) -> PaymentRefundRepository:
        return PaymentRefundRepository(db)

    @staticmethod
    def create_notification_repository(db: Session) -> NotificationRepository:
        return NotificationRepository(db)

    @staticmethod
    def create_event_outbox_repository(db: Session) -> EventOutboxRepository:
        return EventOutboxRepository(db)

    @staticmethod
    def create_venue_review_repository(db: Session) -> VenueReviewRepository:
        return VenueReviewRepository(db)
