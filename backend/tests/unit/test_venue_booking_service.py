from datetime import date
from decimal import Decimal

import pytest

from farewelly.core.enums import BookingStatus
from farewelly.core.exceptions import (
    InvalidTransitionException,
    NotFoundException,
    ValidationException,
)
from farewelly.models.booking import Booking
from farewelly.models.event_outbox import EventOutbox
from farewelly.models.payment import Payment
from farewelly.repositories.booking_repository import BookingFilters
from farewelly.services.venue_booking_service import (
    VenueBookingService,
    next_status,
    release_slots,
    reserve_slots,
)
from tests.helpers import hourly_slots, make_availability, make_booking

DAY = date(2026, 11, 20)


@pytest.mark.parametrize(
    "current, action, expected",
    [
        ("pending", "confirm", "confirmed"),
        ("pending", "cancel", "cancelled"),
        ("confirmed", "complete", "completed"),
        ("confirmed", "cancel", "cancelled"),
    ],
)
def test_allowed_transitions(current, action, expected):
    assert next_status(current, action) == expected


@pytest.mark.parametrize(
    "current, action",
    [
        ("pending", "complete"),
        ("confirmed", "confirm"),
        ("completed", "cancel"),
        ("cancelled", "confirm"),
    ],
)
def test_rejected_transitions(current, action):
    with pytest.raises(InvalidTransitionException):
        next_status(current, action)


def test_reserve_and_release_slots():
    slots = hourly_slots(9, 13)
    reserved = reserve_slots(slots, "b1", "10:00", 90)
    assert [s["booking_id"] for s in reserved] == [None, "b1", "b1", None]
    assert [s["is_available"] for s in reserved] == [True, False, False, True]

    released = release_slots(reserved, "b1")
    assert released == slots


def test_confirm_stamps_availability_and_notifies(db, venue, family, director):
    booking = make_booking(db, family, director=director, venue=venue, start_time="10:00")
    make_availability(db, venue, DAY, hourly_slots(9, 13))

    updated = VenueBookingService(db).apply_action(venue, booking.id, "confirm", "Tot dan")

    assert updated.status == BookingStatus.CONFIRMED.value
    assert updated.venue_notes == "Tot dan"
    record = VenueBookingService(db).availability_repository.get_for_day(venue.id, DAY)
    assert [s["booking_id"] for s in record.time_slots] == [None, booking.id, booking.id, None]

    events = {row.aggregate_id: row.payload for row in db.query(EventOutbox).all()}
    assert events[family.id]["title"] == "Booking Status Updated"
    assert events[director.id]["title"] == "Venue Booking Updated"
    assert events[family.id]["message"] == (
        "Your venue booking has been confirmed at Crematorium Westerveld"
    )
    assert events[family.id]["data"]["venue_notes"] == "Tot dan"


def test_confirm_without_availability_still_succeeds(db, venue, family):
    booking = make_booking(db, family, venue=venue)
    updated = VenueBookingService(db).apply_action(venue, booking.id, "confirm")
    assert updated.status == "confirmed"


def test_cancel_releases_slots(db, venue, family):
    booking = make_booking(db, family, venue=venue, status=BookingStatus.CONFIRMED)
    slots = reserve_slots(hourly_slots(9, 13), booking.id, "10:00", 120)
    make_availability(db, venue, DAY, slots)

    VenueBookingService(db).apply_action(venue, booking.id, "cancel")

    record = VenueBookingService(db).availability_repository.get_for_day(venue.id, DAY)
    assert all(s["booking_id"] is None and s["is_available"] for s in record.time_slots)


def test_invalid_transition_leaves_status(db, venue, family):
    booking = make_booking(db, family, venue=venue, status=BookingStatus.COMPLETED)

    with pytest.raises(InvalidTransitionException):
        VenueBookingService(db).apply_action(venue, booking.id, "cancel")

    db.expire_all()
    assert db.get(Booking, booking.id).status == "completed"


def test_unknown_action_and_foreign_booking(db, venue, other_venue, family):
    booking = make_booking(db, family, venue=other_venue)
    service = VenueBookingService(db)

    with pytest.raises(ValidationException) as exc:
        service.apply_action(venue, booking.id, "archive")
    assert exc.value.message == "Invalid action. Must be confirm, cancel, or complete"

    with pytest.raises(NotFoundException):
        service.apply_action(venue, booking.id, "confirm")


def test_list_bookings_stats(db, venue, family, director):
    completed = make_booking(db, family, venue=venue, status=BookingStatus.COMPLETED)
    db.add(
        Payment(
            booking_id=completed.id,
            amount=Decimal("800.00"),
            status="completed",
            payment_method="ideal",
        )
    )
    db.commit()
    make_booking(db, family, director=director, venue=venue, status=BookingStatus.CANCELLED)
    make_booking(db, family, venue=venue)
    make_booking(db, family, venue=venue, status=BookingStatus.CONFIRMED)

    rows, total, stats = VenueBookingService(db).list_bookings(
        venue, BookingFilters(), offset=0, limit=2
    )

    assert total == 4
    assert len(rows) == 2
    assert stats["total_bookings"] == 4
    assert stats["completed_bookings"] == 1
    assert stats["cancelled_bookings"] == 1
    assert stats["total_revenue"] == 800.0
    assert stats["average_booking_value"] == 200.0
    assert stats["completion_rate"] == 25
    assert stats["cancellation_rate"] == 25


def test_list_bookings_filters_by_director(db, venue, family, director):
    make_booking(db, family, director=director, venue=venue)
    make_booking(db, family, venue=venue)

    rows, total, _ = VenueBookingService(db).list_bookings(
        venue, BookingFilters(director_id=director.id), offset=0, limit=10
    )
    assert total == 1
    assert rows[0].director_id == director.id
