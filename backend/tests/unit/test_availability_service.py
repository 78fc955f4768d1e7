from datetime import date
from decimal import Decimal

import pytest

from farewelly.core.enums import BookingStatus
from farewelly.core.exceptions import ValidationException
from farewelly.models.event_outbox import EventOutbox
from farewelly.models.payment import Payment
from farewelly.models.venue_availability import VenueAvailability
from farewelly.services.availability_service import (
    AvailabilityService,
    merge_booking_stamps,
    normalize_slots,
    slot_statistics,
)
from farewelly.services.payment_service import PaymentService
from tests.helpers import hourly_slots, make_availability, make_booking

DAY = date(2026, 11, 20)


def outbox_titles(db):
    return sorted((row.aggregate_id, row.payload["title"]) for row in db.query(EventOutbox).all())


def test_normalize_slots_canonicalizes_times_and_price():
    slots = normalize_slots([{"start_time": "09:00:00", "end_time": "10:00", "price": "99.995"}])
    assert slots == [
        {
            "start_time": "09:00",
            "end_time": "10:00",
            "is_available": True,
            "price": 100.0,
            "booking_id": None,
        }
    ]


@pytest.mark.parametrize(
    "slot, message",
    [
        ({"start_time": "09:00"}, "Each time slot must have start_time and end_time"),
        ({"start_time": "10:00", "end_time": "10:00"}, "End time must be after start time for all slots"),
        ({"start_time": "11:00", "end_time": "10:00"}, "End time must be after start time for all slots"),
    ],
)
def test_normalize_slots_rejects_bad_windows(slot, message):
    with pytest.raises(ValidationException) as exc:
        normalize_slots([slot])
    assert exc.value.message == message


def test_merge_keeps_booking_on_matching_slot_only():
    existing = [
        {"start_time": "09:00", "end_time": "10:00", "booking_id": "b1"},
        {"start_time": "10:00", "end_time": "11:00", "booking_id": "b2"},
    ]
    incoming = normalize_slots(
        [
            {"start_time": "09:00", "end_time": "10:00", "is_available": False},
            {"start_time": "10:00", "end_time": "12:00"},
        ]
    )
    merged = merge_booking_stamps(existing, incoming)
    assert [slot["booking_id"] for slot in merged] == ["b1", None]


def test_slot_statistics_over_rows():
    rows = [
        VenueAvailability(
            time_slots=[
                {"is_available": True, "booking_id": None},
                {"is_available": False, "booking_id": "b1"},
                {"is_available": False, "booking_id": None},
            ]
        ),
        VenueAvailability(time_slots=[{"is_available": True, "booking_id": None}]),
    ]
    assert slot_statistics(rows) == {
        "total_slots": 4,
        "available_slots": 2,
        "booked_slots": 1,
        "utilization_rate": 25,
        "availability_rate": 50,
    }


def test_set_day_creates_record(db, venue):
    service = AvailabilityService(db)

    record = service.set_day_availability(venue, DAY, hourly_slots(9, 12))

    assert record.version == 1
    assert len(record.time_slots) == 3
    assert record.slot_counts() == (3, 0)


def test_set_day_preserves_booking_ids(db, venue):
    slots = hourly_slots(9, 12)
    slots[1].update(is_available=False, booking_id="booking-1")
    make_availability(db, venue, DAY, slots)

    record = AvailabilityService(db).set_day_availability(venue, DAY, hourly_slots(9, 12))

    assert [slot["booking_id"] for slot in record.time_slots] == [None, "booking-1", None]
    assert record.version == 2


def test_newly_covered_pending_booking_notifies_parties(db, venue, family, director):
    make_booking(db, family, director=director, venue=venue, start_time="14:00")
    make_availability(db, venue, DAY, hourly_slots(9, 12))

    AvailabilityService(db).set_day_availability(venue, DAY, hourly_slots(9, 17))

    assert outbox_titles(db) == sorted(
        [(director.id, "Venue Available"), (family.id, "Venue Available")]
    )


def test_already_covered_booking_is_not_notified_again(db, venue, family, director):
    make_booking(db, family, director=director, venue=venue, start_time="10:00")
    make_availability(db, venue, DAY, hourly_slots(9, 12))

    AvailabilityService(db).set_day_availability(venue, DAY, hourly_slots(9, 13))

    assert outbox_titles(db) == []


def test_block_and_unblock_day(db, venue):
    service = AvailabilityService(db)

    blocked = service.set_day_state(venue, DAY, "block", "Onderhoud")
    assert blocked.notes == "Onderhoud"
    assert blocked.time_slots == [
        {
            "start_time": "00:00",
            "end_time": "23:59",
            "is_available": False,
            "price": 0.0,
            "booking_id": None,
        }
    ]

    reopened = service.set_day_state(venue, DAY, "unblock")
    assert reopened.notes == "Available"
    assert len(reopened.time_slots) == 9
    assert reopened.time_slots[0]["start_time"] == "09:00"
    assert reopened.time_slots[-1]["end_time"] == "18:00"
    assert all(slot["price"] == 150.0 for slot in reopened.time_slots)


def test_list_availability_filters_by_range(db, venue):
    make_availability(db, venue, date(2026, 11, 1), hourly_slots(9, 10))
    make_availability(db, venue, date(2026, 11, 15), hourly_slots(9, 11))
    make_availability(db, venue, date(2026, 12, 1), hourly_slots(9, 12))

    rows, total, stats = AvailabilityService(db).list_availability(
        venue, start_date=date(2026, 11, 10), end_date=date(2026, 11, 30), offset=0, limit=10
    )

    assert total == 1
    assert rows[0].date == date(2026, 11, 15)
    assert stats["total_slots"] == 2


def test_submitted_booking_ids_are_ignored_on_create_and_update(db, venue):
    service = AvailabilityService(db)
    submitted = hourly_slots(9, 11)
    submitted[0]["booking_id"] = "forged-booking"

    created = service.set_day_availability(venue, DAY, submitted)
    assert [slot["booking_id"] for slot in created.time_slots] == [None, None]

    updated = service.set_day_availability(venue, DAY, submitted)
    assert [slot["booking_id"] for slot in updated.time_slots] == [None, None]


def test_block_day_twice_is_idempotent(db, venue):
    service = AvailabilityService(db)
    make_availability(db, venue, DAY, hourly_slots(9, 17))

    first = service.set_day_state(venue, DAY, "block", "Onderhoud")
    first_slots = [dict(slot) for slot in first.time_slots]
    second = service.set_day_state(venue, DAY, "block", "Onderhoud")

    assert db.query(VenueAvailability).filter_by(venue_id=venue.id, date=DAY).count() == 1
    assert second.time_slots == first_slots
    assert len(second.time_slots) == 1
    assert second.time_slots[0]["start_time"] == "00:00"
    assert second.time_slots[0]["end_time"] == "23:59"
    assert second.time_slots[0]["is_available"] is False


def test_block_does_not_touch_payments(db, venue, family, director, payment_provider):
    booking = make_booking(
        db, family, director=director, venue=venue, status=BookingStatus.CONFIRMED
    )
    payment = PaymentService(db, provider=payment_provider).create_payment(
        family, booking_id=booking.id, amount=Decimal("1000"), payment_method="ideal"
    )
    before = sorted((s.recipient_id, s.amount, s.status) for s in payment.splits)

    AvailabilityService(db).set_day_state(venue, booking.booking_date, "block")

    db.expire_all()
    reloaded = db.get(Payment, payment.id)
    assert reloaded.status == "completed"
    assert reloaded.amount == Decimal("1000.00")
    assert sorted((s.recipient_id, s.amount, s.status) for s in reloaded.splits) == before
