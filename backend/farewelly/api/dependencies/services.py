# backend/farewelly/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a request-scoped service on the request's database
session. External collaborators (payment provider, event publisher, relay
rate limiter) have their own factories so tests can override them.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.config import settings
from ...ratelimit.fixed_window import FixedWindowRateLimiter
from ...ratelimit.redis_backend import get_redis
from ...services.analytics_service import AnalyticsService
from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from ...services.compliance_service import ComplianceService
from ...services.notification_service import NotificationService
from ...services.payment_provider import MockPaymentProvider
from ...services.payment_service import PaymentService
from ...services.realtime_service import BroadcastPublisher, EventPublisher, RealtimeRelayService
from ...services.refund_service import RefundService
from ...services.split_service import SplitService
from ...services.venue_booking_service import VenueBookingService
from .database import get_db


@lru_cache(maxsize=1)
def get_payment_provider() -> MockPaymentProvider:
    return MockPaymentProvider()


def get_event_publisher() -> EventPublisher:
    return BroadcastPublisher()


@lru_cache(maxsize=1)
def get_relay_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(get_redis(), settings.rate_limit_namespace)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_compliance_service(db: Session = Depends(get_db)) -> ComplianceService:
    return ComplianceService(db)


def get_venue_booking_service(db: Session = Depends(get_db)) -> VenueBookingService:
    return VenueBookingService(db)


def get_payment_service(
    db: Session = Depends(get_db),
    provider: MockPaymentProvider = Depends(get_payment_provider),
) -> PaymentService:
    return PaymentService(db, provider=provider)


def get_refund_service(
    db: Session = Depends(get_db),
    provider: MockPaymentProvider = Depends(get_payment_provider),
) -> RefundService:
    return RefundService(db, provider=provider)


def get_split_service(db: Session = Depends(get_db)) -> SplitService:
    return SplitService(db)


def get_analytics_service(db: Session = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)


def get_realtime_relay_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
    limiter: FixedWindowRateLimiter = Depends(get_relay_limiter),
) -> RealtimeRelayService:
    return RealtimeRelayService(db, publisher=publisher, limiter=limiter)
