from datetime import date
from decimal import Decimal

import pytest

from farewelly.core.enums import BookingStatus, UserType
from farewelly.core.exceptions import ForbiddenException, NotFoundException, ValidationException
from farewelly.models.event_outbox import EventOutbox
from farewelly.repositories.booking_repository import BookingFilters
from farewelly.services.booking_service import BookingService, estimate_price
from tests.helpers import hourly_slots, make_availability, make_booking, make_profile, utc

NOW = utc(2026, 10, 19, 9, 0)
DAY = date(2026, 11, 20)


def _create(db, profile, **overrides):
    fields = {
        "service_type": "cremation",
        "booking_date": DAY,
        "start_time": "10:00",
        "duration_minutes": 90,
        "now": NOW,
    }
    fields.update(overrides)
    return BookingService(db).create_booking(profile, **fields)


def test_estimate_price_prorates_hourly_rate(venue):
    assert estimate_price(venue, 90) == Decimal("225.00")
    assert estimate_price(None, 90) is None


def test_family_creates_pending_booking_and_notifies_parties(db, family, director, venue):
    booking = _create(db, family, director_id=director.id, venue_id=venue.id, notes="Aula")

    assert booking.status == BookingStatus.PENDING.value
    assert booking.family_id == family.id
    assert booking.director_id == director.id
    assert booking.venue_id == venue.id
    assert booking.price == Decimal("225.00")
    assert booking.notes == "Aula"

    events = {row.aggregate_id: row.payload for row in db.query(EventOutbox).all()}
    assert set(events) == {director.id, venue.id}
    assert events[director.id]["title"] == "New Booking Request"
    assert events[director.id]["message"] == (
        "New booking request from Familie de Vries for cremation on 2026-11-20"
    )
    assert events[venue.id]["title"] == "New Venue Booking Request"
    assert events[venue.id]["message"] == "New venue booking request for 2026-11-20 at 10:00"


def test_director_books_on_behalf_of_family(db, family, director):
    booking = _create(db, director, family_id=family.id, start_time="14:30:00")

    assert booking.family_id == family.id
    assert booking.director_id == director.id
    assert booking.start_time == "14:30"
    assert booking.price is None

    events = {row.aggregate_id: row.payload for row in db.query(EventOutbox).all()}
    assert set(events) == {family.id}
    assert events[family.id]["title"] == "Booking Requested"


def test_director_must_name_an_existing_family(db, director, other_venue):
    with pytest.raises(ValidationException, match="family_id is required"):
        _create(db, director)
    with pytest.raises(NotFoundException, match="Family not found"):
        _create(db, director, family_id=other_venue.id)


def test_only_families_and_directors_create_bookings(db, venue):
    with pytest.raises(ForbiddenException):
        _create(db, venue)


def test_unknown_director_or_venue_is_rejected(db, family, director):
    with pytest.raises(NotFoundException, match="Director not found"):
        _create(db, family, director_id="01HZZZZZZZZZZZZZZZZZZZZZZZ")
    with pytest.raises(NotFoundException, match="Venue not found"):
        _create(db, family, venue_id=director.id)


@pytest.mark.parametrize("booking_date", [date(2026, 10, 19), date(2026, 10, 1)])
def test_booking_date_must_be_in_the_future(db, family, booking_date):
    with pytest.raises(ValidationException, match="Booking date must be in the future"):
        _create(db, family, booking_date=booking_date)


def test_booking_must_end_on_the_same_day(db, family):
    with pytest.raises(ValidationException, match="same day"):
        _create(db, family, start_time="23:00", duration_minutes=120)
    with pytest.raises(ValidationException, match="Invalid time format"):
        _create(db, family, start_time="25:00")


def test_published_availability_must_cover_the_window(db, family, venue):
    make_availability(db, venue, DAY, hourly_slots(9, 11))

    with pytest.raises(ValidationException, match="Venue is not available"):
        _create(db, family, venue_id=venue.id, start_time="10:00", duration_minutes=90)

    booking = _create(db, family, venue_id=venue.id, start_time="09:00", duration_minutes=120)
    assert booking.status == BookingStatus.PENDING.value


def test_venue_without_published_availability_accepts_requests(db, family, venue):
    booking = _create(db, family, venue_id=venue.id, booking_date=date(2026, 12, 1))
    assert booking.venue_id == venue.id


def test_list_bookings_is_scoped_to_the_callers_role(db, family, other_family, director, venue):
    mine = make_booking(db, family, director=director, venue=venue)
    make_booking(db, other_family, venue=venue, status=BookingStatus.CONFIRMED)
    service = BookingService(db)

    rows, total = service.list_bookings(family, BookingFilters(), offset=0, limit=10)
    assert total == 1 and rows[0].id == mine.id

    rows, total = service.list_bookings(director, BookingFilters(), offset=0, limit=10)
    assert [row.id for row in rows] == [mine.id]

    rows, total = service.list_bookings(
        venue, BookingFilters(status=BookingStatus.CONFIRMED.value), offset=0, limit=10
    )
    assert total == 1 and rows[0].family_id == other_family.id


def test_admins_have_no_booking_list(db):
    admin = make_profile(db, UserType.ADMIN, "admin@example.nl", name="Beheer")
    with pytest.raises(ForbiddenException):
        BookingService(db).list_bookings(admin, BookingFilters(), offset=0, limit=10)
