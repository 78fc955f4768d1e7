# backend/farewelly/services/availability_service.py
"""
Availability Service for the Farewelly platform.

Venues publish one slot list per calendar day. This service owns:
- Listing days with slot statistics recomputed on every read
- Upserting a day while keeping booking stamps on unchanged slots
- Blocking and unblocking whole days
- Telling families and directors when a pending request becomes bookable

Slot lists are rewritten whole. The record's version column makes a writer
that lost a concurrent race fail with a conflict instead of clobbering the
other change.
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import ALL_DAY_END, ALL_DAY_START
from ..core.enums import AvailabilityAction, NotificationType
from ..core.exceptions import (
    ConcurrentModificationException,
    RepositoryException,
    ValidationException,
)
from ..models.user import UserProfile
from ..models.venue_availability import VenueAvailability
from ..repositories.factory import RepositoryFactory
from ..utils.money import money_float, percentage
from ..utils.time_slots import covers, hourly_grid, normalize_time_str, parse_time_str
from .base import BaseService
from .notification_service import NotificationService


def normalize_slots(raw_slots: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """
    Validate and canonicalize a submitted slot list.

    Booking ids are never taken from the caller; they are only stamped by
    booking confirmation and carried over by merge_booking_stamps.

    Raises:
        ValidationException: A slot is missing a time, has an unparseable
            time, or does not end after it starts.
    """
    slots: List[Dict[str, Any]] = []
    for raw in raw_slots:
        start_raw, end_raw = raw.get("start_time"), raw.get("end_time")
        if not start_raw or not end_raw:
            raise ValidationException("Each time slot must have start_time and end_time")
        try:
            start, end = parse_time_str(start_raw), parse_time_str(end_raw)
        except ValueError as exc:
            raise ValidationException(str(exc)) from exc
        if start >= end:
            raise ValidationException("End time must be after start time for all slots")
        slots.append(
            {
                "start_time": normalize_time_str(start_raw),
                "end_time": normalize_time_str(end_raw),
                "is_available": bool(raw.get("is_available", True)),
                "price": money_float(raw.get("price") or 0),
                "booking_id": None,
            }
        )
    return slots


def merge_booking_stamps(
    existing: Sequence[Mapping[str, Any]], incoming: Sequence[Dict[str, Any]]
) -> List[Dict[str, Any]]:
    """Carry booking ids over to incoming slots with an identical start and end."""
    stamps = {
        (slot.get("start_time"), slot.get("end_time")): slot.get("booking_id")
        for slot in existing
    }
    merged = []
    for slot in incoming:
        merged.append({**slot, "booking_id": stamps.get((slot["start_time"], slot["end_time"]))})
    return merged


def slot_statistics(records: Sequence[VenueAvailability]) -> Dict[str, Any]:
    total = available = booked = 0
    for record in records:
        for slot in record.time_slots or []:
            total += 1
            if slot.get("is_available"):
                available += 1
            if slot.get("booking_id"):
                booked += 1
    return {
        "total_slots": total,
        "available_slots": available,
        "booked_slots": booked,
        "utilization_rate": int(percentage(booked, total)),
        "availability_rate": int(percentage(available, total)),
    }


class AvailabilityService(BaseService):
    def __init__(self, db: Session, notification_service: Optional[NotificationService] = None):
        super().__init__(db)
        self.notification_service = notification_service or NotificationService(db)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    @BaseService.measure_operation("list_availability")
    def list_availability(
        self,
        venue: UserProfile,
        *,
        start_date: Optional[date],
        end_date: Optional[date],
        offset: int,
        limit: int,
    ) -> tuple[List[VenueAvailability], int, Dict[str, Any]]:
        rows, total = self.availability_repository.list_for_venue(
            venue.id, start=start_date, end=end_date, offset=offset, limit=limit
        )
        return rows, total, slot_statistics(rows)

    def _write_day(
        self,
        venue: UserProfile,
        day: date,
        slots: List[Dict[str, Any]],
        **fields: Any,
    ) -> tuple[VenueAvailability, List[Dict[str, Any]]]:
        """Insert or overwrite the day; returns the record and its previous slots."""
        record = self.availability_repository.get_for_day(venue.id, day)
        if record is not None:
            previous = list(record.time_slots or [])
            self.availability_repository.replace_slots(record, slots, **fields)
            return record, previous

        try:
            record = self.availability_repository.create(
                venue_id=venue.id, date=day, time_slots=slots, **fields
            )
        except RepositoryException as exc:
            # Another request created the same (venue, date) row first
            raise ConcurrentModificationException("Availability") from exc
        return record, []

    @BaseService.measure_operation("set_day_availability")
    def set_day_availability(
        self,
        venue: UserProfile,
        day: date,
        raw_slots: Sequence[Mapping[str, Any]],
        special_pricing: Optional[Dict[str, Any]] = None,
    ) -> VenueAvailability:
        """
        Upsert the slot list for ``day``.

        When a record already exists, a submitted slot whose start and end
        match an existing slot keeps that slot's booking id.
        """
        slots = normalize_slots(raw_slots)
        existing = self.availability_repository.get_for_day(venue.id, day)
        if existing is not None:
            slots = merge_booking_stamps(existing.time_slots or [], slots)

        fields: Dict[str, Any] = {}
        if special_pricing is not None:
            fields["special_pricing"] = special_pricing

        with self.transaction():
            record, previous = self._write_day(venue, day, slots, **fields)
            self._notify_newly_available(venue, day, previous, slots)

        self.log_operation("set_day_availability", venue_id=venue.id, date=day.isoformat())
        return record

    @BaseService.measure_operation("set_day_state")
    def set_day_state(
        self, venue: UserProfile, day: date, action: str, reason: Optional[str] = None
    ) -> VenueAvailability:
        """Block the whole day, or reopen it on the default hourly grid."""
        if action == AvailabilityAction.BLOCK.value:
            slots = [
                {
                    "start_time": ALL_DAY_START,
                    "end_time": ALL_DAY_END,
                    "is_available": False,
                    "price": 0.0,
                    "booking_id": None,
                }
            ]
            notes = reason or "Unavailable"
        elif action == AvailabilityAction.UNBLOCK.value:
            slots = hourly_grid(
                settings.default_open_hour,
                settings.default_close_hour,
                money_float(venue.price_per_hour or 0),
            )
            notes = reason or "Available"
        else:
            raise ValidationException("Invalid action. Must be 'block' or 'unblock'")

        with self.transaction():
            record, _ = self._write_day(venue, day, slots, notes=notes)

        self.log_operation("set_day_state", venue_id=venue.id, date=day.isoformat(), action=action)
        return record

    def _notify_newly_available(
        self,
        venue: UserProfile,
        day: date,
        previous: Sequence[Mapping[str, Any]],
        current: Sequence[Mapping[str, Any]],
    ) -> None:
        venue_label = venue.display_name
        for booking in self.booking_repository.pending_on_date(venue.id, day):
            try:
                was_open = covers(previous, booking.start_time)
                is_open = covers(current, booking.start_time)
            except ValueError:
                self.logger.warning(
                    "Skipping booking %s with malformed start time %r",
                    booking.id,
                    booking.start_time,
                )
                continue
            if was_open or not is_open:
                continue

            data = {"venue_id": venue.id, "booking_id": booking.id, "date": day.isoformat()}
            if booking.director_id:
                self.notification_service.notify(
                    booking.director_id,
                    NotificationType.VENUE.value,
                    "Venue Available",
                    f"{venue_label} is now available for your requested time on {day.isoformat()}",
                    data,
                )
            if booking.family_id:
                self.notification_service.notify(
                    booking.family_id,
                    NotificationType.VENUE.value,
                    "Venue Available",
                    f"{venue_label} is now available for {day.isoformat()}",
                    data,
                )
