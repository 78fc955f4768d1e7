# backend/farewelly/services/venue_booking_service.py
"""
Venue-side booking management.

Venues list their bookings with aggregate statistics and move them through
the booking lifecycle:

    pending   --confirm-->  confirmed --complete--> completed
    pending   --cancel--->  cancelled
    confirmed --cancel--->  cancelled

Confirming stamps the overlapping availability slots with the booking id;
cancelling releases them again. Completed and cancelled are terminal.
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from ..core.enums import BookingAction, BookingStatus, NotificationType
from ..core.exceptions import InvalidTransitionException, NotFoundException, ValidationException
from ..models.booking import Booking
from ..models.user import UserProfile
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingFilters
from ..repositories.factory import RepositoryFactory
from ..utils.money import money_float, percentage
from ..utils.time_slots import booking_window, slot_window, windows_overlap
from .base import BaseService
from .notification_service import NotificationService

TRANSITIONS: Dict[str, Dict[str, str]] = {
    BookingStatus.PENDING.value: {
        BookingAction.CONFIRM.value: BookingStatus.CONFIRMED.value,
        BookingAction.CANCEL.value: BookingStatus.CANCELLED.value,
    },
    BookingStatus.CONFIRMED.value: {
        BookingAction.COMPLETE.value: BookingStatus.COMPLETED.value,
        BookingAction.CANCEL.value: BookingStatus.CANCELLED.value,
    },
    BookingStatus.COMPLETED.value: {},
    BookingStatus.CANCELLED.value: {},
}

ACTION_MESSAGES = {
    BookingAction.CONFIRM.value: "Your venue booking has been confirmed",
    BookingAction.CANCEL.value: "Your venue booking has been cancelled",
    BookingAction.COMPLETE.value: "Your venue booking has been completed",
}


def next_status(current_status: str, action: str) -> str:
    """
    Resolve the status an action leads to.

    Raises:
        InvalidTransitionException: action is not allowed from current_status
    """
    target = TRANSITIONS.get(current_status, {}).get(action)
    if target is None:
        raise InvalidTransitionException(action, current_status)
    return target


def reserve_slots(
    slots: List[Mapping[str, Any]], booking_id: str, start_time: str, duration_minutes: int
) -> List[Dict[str, Any]]:
    """Mark every slot overlapping [start, start + duration) as taken by the booking."""
    start, end = booking_window(start_time, duration_minutes)
    updated = []
    for slot in slots:
        slot_start, slot_end = slot_window(slot)
        if windows_overlap(start, end, slot_start, slot_end):
            updated.append({**slot, "is_available": False, "booking_id": booking_id})
        else:
            updated.append(dict(slot))
    return updated


def release_slots(slots: List[Mapping[str, Any]], booking_id: str) -> List[Dict[str, Any]]:
    """Reopen every slot held by the booking."""
    return [
        {**slot, "is_available": True, "booking_id": None}
        if slot.get("booking_id") == booking_id
        else dict(slot)
        for slot in slots
    ]


class VenueBookingService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)

    @BaseService.measure_operation("list_venue_bookings")
    def list_bookings(
        self, venue: UserProfile, filters: BookingFilters, *, offset: int, limit: int
    ) -> tuple[List[Booking], int, Dict[str, Any]]:
        """
        Page through the venue's bookings.

        Statistics cover every booking matching the filters, not just the
        returned page.
        """
        rows, total = self.booking_repository.list_for_venue(
            venue.id, filters, offset=offset, limit=limit
        )
        counts = self.booking_repository.status_counts(venue.id, filters)
        revenue = self.booking_repository.completed_revenue(venue.id, filters)

        total_bookings = sum(counts.values())
        completed = counts.get(BookingStatus.COMPLETED.value, 0)
        cancelled = counts.get(BookingStatus.CANCELLED.value, 0)
        stats = {
            "total_bookings": total_bookings,
            "completed_bookings": completed,
            "pending_bookings": counts.get(BookingStatus.PENDING.value, 0),
            "confirmed_bookings": counts.get(BookingStatus.CONFIRMED.value, 0),
            "cancelled_bookings": cancelled,
            "total_revenue": money_float(revenue),
            "average_booking_value": (
                money_float(revenue / Decimal(total_bookings)) if total_bookings else 0.0
            ),
            "completion_rate": int(percentage(completed, total_bookings)),
            "cancellation_rate": int(percentage(cancelled, total_bookings)),
        }
        return rows, total, stats

    @BaseService.measure_operation("apply_booking_action")
    def apply_action(
        self, venue: UserProfile, booking_id: str, action: str, notes: Optional[str] = None
    ) -> Booking:
        if action not in ACTION_MESSAGES:
            raise ValidationException("Invalid action. Must be confirm, cancel, or complete")

        booking = self.booking_repository.get_for_venue(booking_id, venue.id)
        if booking is None:
            raise NotFoundException("Booking not found")

        new_status = next_status(booking.status, action)

        with self.transaction():
            fields: Dict[str, Any] = {"status": new_status}
            if notes:
                fields["venue_notes"] = notes
            self.booking_repository.update(booking, **fields)

            if action == BookingAction.CONFIRM.value:
                self._stamp_availability(venue, booking)
            elif action == BookingAction.CANCEL.value:
                self._release_availability(venue, booking)

            self._notify_parties(venue, booking, action, new_status, notes)

        prometheus_metrics.record_booking_transition(action)
        self.log_operation(
            "apply_booking_action", booking_id=booking.id, action=action, status=new_status
        )
        return booking

    def _stamp_availability(self, venue: UserProfile, booking: Booking) -> None:
        record = self.availability_repository.get_for_day(venue.id, booking.booking_date)
        if record is None:
            self.logger.info(
                "No availability for %s on %s; skipping slot reservation",
                venue.id,
                booking.booking_date,
            )
            return
        try:
            slots = reserve_slots(
                list(record.time_slots or []),
                booking.id,
                booking.start_time,
                booking.duration_minutes,
            )
        except (KeyError, ValueError) as exc:
            self.logger.warning("Skipping slot reservation for booking %s: %s", booking.id, exc)
            return
        self.availability_repository.replace_slots(record, slots)

    def _release_availability(self, venue: UserProfile, booking: Booking) -> None:
        record = self.availability_repository.get_for_day(venue.id, booking.booking_date)
        if record is None:
            return
        self.availability_repository.replace_slots(
            record, release_slots(list(record.time_slots or []), booking.id)
        )

    def _notify_parties(
        self,
        venue: UserProfile,
        booking: Booking,
        action: str,
        new_status: str,
        notes: Optional[str],
    ) -> None:
        message = f"{ACTION_MESSAGES[action]} at {venue.display_name}"
        data = {
            "booking_id": booking.id,
            "venue_id": venue.id,
            "new_status": new_status,
            "venue_notes": notes,
        }
        if booking.family_id:
            self.notification_service.notify(
                booking.family_id,
                NotificationType.BOOKING.value,
                "Booking Status Updated",
                message,
                data,
            )
        if booking.director_id:
            self.notification_service.notify(
                booking.director_id,
                NotificationType.BOOKING.value,
                "Venue Booking Updated",
                message,
                data,
            )
