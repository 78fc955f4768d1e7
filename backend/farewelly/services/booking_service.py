# backend/farewelly/services/booking_service.py
"""
Booking intake and role-scoped booking lists.

Families book for themselves; directors book on behalf of a family they
name. Every new booking starts as pending and waits for the venue to
confirm it. When the venue has published availability for the date, the
requested window must fall inside its open slots.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingStatus, NotificationType, UserType
from ..core.exceptions import ForbiddenException, NotFoundException, ValidationException
from ..models.booking import Booking
from ..models.user import UserProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingFilters
from ..repositories.factory import RepositoryFactory
from ..utils.money import to_money
from ..utils.time_slots import DAY_MINUTES, booking_window, normalize_time_str, window_available
from .base import BaseService
from .notification_service import NotificationService

CREATOR_TYPES = {UserType.FAMILY.value, UserType.DIRECTOR.value}

PARTY_COLUMNS = {
    UserType.FAMILY.value: Booking.family_id,
    UserType.DIRECTOR.value: Booking.director_id,
    UserType.VENUE.value: Booking.venue_id,
}


def estimate_price(venue: Optional[UserProfile], duration_minutes: int) -> Optional[Decimal]:
    """Venue hourly rate pro-rated over the booking duration."""
    if venue is None or venue.price_per_hour is None:
        return None
    return to_money(Decimal(venue.price_per_hour) * Decimal(duration_minutes) / Decimal(60))


class BookingService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.user_repository = RepositoryFactory.create_user_profile_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        profile: UserProfile,
        *,
        service_type: str,
        booking_date: date,
        start_time: str,
        duration_minutes: int,
        family_id: Optional[str] = None,
        director_id: Optional[str] = None,
        venue_id: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Create a pending booking.

        A family caller is always the booking's family. A director caller is
        always the booking's director and must name the family in
        ``family_id``.

        Raises:
            ForbiddenException: caller is neither a family nor a director
            ValidationException: bad time, past date, or venue closed then
            NotFoundException: named family, director or venue does not exist
        """
        if profile.user_type not in CREATOR_TYPES:
            raise ForbiddenException("Only families and directors can create bookings")

        try:
            start_time = normalize_time_str(start_time)
            start, end = booking_window(start_time, duration_minutes)
        except ValueError as exc:
            raise ValidationException("Invalid time format") from exc
        if end > DAY_MINUTES:
            raise ValidationException("Booking must end on the same day")

        today = (now or datetime.now(timezone.utc)).date()
        if booking_date <= today:
            raise ValidationException("Booking date must be in the future")

        if profile.user_type == UserType.FAMILY.value:
            family = profile
            director = self._party(director_id, UserType.DIRECTOR, "Director")
        else:
            if not family_id:
                raise ValidationException("family_id is required when a director creates a booking")
            family = self._party(family_id, UserType.FAMILY, "Family")
            director = profile
        venue = self._party(venue_id, UserType.VENUE, "Venue")

        if venue is not None:
            record = self.availability_repository.get_for_day(venue.id, booking_date)
            if record is not None and not window_available(record.time_slots or [], start, end):
                raise ValidationException("Venue is not available at the requested time")

        with self.transaction():
            booking = self.booking_repository.create(
                family_id=family.id,
                director_id=director.id if director else None,
                venue_id=venue.id if venue else None,
                service_type=service_type,
                booking_date=booking_date,
                start_time=start_time,
                duration_minutes=duration_minutes,
                status=BookingStatus.PENDING.value,
                price=estimate_price(venue, duration_minutes),
                notes=notes,
            )
            self._notify_new_booking(profile, booking, family, director, venue)

        prometheus_metrics.record_booking_created(profile.user_type)
        self.log_operation(
            "create_booking",
            booking_id=booking.id,
            creator_type=profile.user_type,
            venue_id=booking.venue_id,
        )
        return booking

    def _party(
        self, profile_id: Optional[str], user_type: UserType, label: str
    ) -> Optional[UserProfile]:
        if not profile_id:
            return None
        party = self.user_repository.get_by_id(profile_id, load_relationships=False)
        if party is None or party.user_type != user_type.value:
            raise NotFoundException(f"{label} not found")
        return party

    def _notify_new_booking(
        self,
        creator: UserProfile,
        booking: Booking,
        family: UserProfile,
        director: Optional[UserProfile],
        venue: Optional[UserProfile],
    ) -> None:
        data = {"booking_id": booking.id, "family_id": family.id}
        day = booking.booking_date.isoformat()
        if director is not None and director.id != creator.id:
            self.notification_service.notify(
                director.id,
                NotificationType.BOOKING.value,
                "New Booking Request",
                f"New booking request from {creator.display_name} "
                f"for {booking.service_type} on {day}",
                data,
            )
        if family.id != creator.id:
            self.notification_service.notify(
                family.id,
                NotificationType.BOOKING.value,
                "Booking Requested",
                f"{creator.display_name} requested a {booking.service_type} on {day} for you",
                data,
            )
        if venue is not None:
            self.notification_service.notify(
                venue.id,
                NotificationType.VENUE.value,
                "New Venue Booking Request",
                f"New venue booking request for {day} at {booking.start_time}",
                data,
            )

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self, profile: UserProfile, filters: BookingFilters, *, offset: int, limit: int
    ) -> tuple[List[Booking], int]:
        """Bookings the caller takes part in, newest first."""
        column = PARTY_COLUMNS.get(profile.user_type)
        if column is None:
            raise ForbiddenException("Invalid user type")
        return self.booking_repository.list_for_party(
            column, profile.id, filters, offset=offset, limit=limit
        )

