from datetime import date, timedelta
from decimal import Decimal

import pytest

from farewelly.core.enums import BookingStatus
from farewelly.core.exceptions import ValidationException
from farewelly.models.payment import Payment
from farewelly.models.review import VenueReview
from farewelly.services.analytics_service import AnalyticsService, growth_rate, resolve_window
from tests.helpers import hourly_slots, make_availability, make_booking, utc

NOW = utc(2026, 10, 19, 12)


def _pay(db, booking, amount):
    db.add(
        Payment(
            booking_id=booking.id,
            amount=Decimal(amount),
            status="completed",
            payment_method="ideal",
        )
    )
    db.commit()


@pytest.fixture
def seeded(db, family, other_family, director, venue):
    earlier = make_booking(
        db, family, venue=venue, status=BookingStatus.COMPLETED, created_at=utc(2026, 9, 20)
    )
    _pay(db, earlier, "500")

    completed = make_booking(
        db,
        family,
        director=director,
        venue=venue,
        status=BookingStatus.COMPLETED,
        created_at=utc(2026, 10, 5),
    )
    _pay(db, completed, "1000")
    make_booking(
        db, other_family, venue=venue, status=BookingStatus.CANCELLED, created_at=utc(2026, 10, 10)
    )
    make_booking(db, family, venue=venue, created_at=utc(2026, 10, 12))

    slots = hourly_slots(9, 13)
    slots[0] = {**slots[0], "is_available": False, "booking_id": completed.id}
    make_availability(db, venue, date(2026, 10, 15), slots)

    for rating in (4, 5):
        db.add(
            VenueReview(
                venue_id=venue.id, reviewer_id=family.id, rating=rating, created_at=utc(2026, 10, 6)
            )
        )
    db.commit()


@pytest.mark.parametrize(
    "period, start",
    [
        ("week", utc(2026, 10, 12, 12)),
        ("month", utc(2026, 10, 1)),
        ("quarter", utc(2026, 10, 1)),
        ("year", utc(2026, 1, 1)),
    ],
)
def test_resolve_window(period, start):
    window = resolve_window(period, now=NOW)
    assert window.start == start
    assert window.end == NOW
    assert window.previous.end == window.start
    assert window.previous.start == window.start - (NOW - start)


def test_custom_window_rejects_inverted_range():
    with pytest.raises(ValidationException):
        resolve_window("custom", date(2026, 10, 10), date(2026, 10, 1), now=NOW)


def test_custom_window_defaults_to_last_thirty_days():
    window = resolve_window("custom", now=NOW)
    assert window.start == NOW - timedelta(days=30)


@pytest.mark.parametrize(
    "current, previous, expected",
    [(3, 1, 200.0), (5, 0, 100.0), (0, 0, 0.0), (1, 4, -75.0)],
)
def test_growth_rate(current, previous, expected):
    assert growth_rate(current, previous) == expected


def test_venue_metrics_for_month(db, seeded, venue):
    analytics = AnalyticsService(db).venue_analytics(venue, period="month", now=NOW)
    metrics = analytics["metrics"]

    assert metrics["total_bookings"] == 3
    assert metrics["completed_bookings"] == 1
    assert metrics["cancelled_bookings"] == 1
    assert metrics["pending_bookings"] == 1
    assert metrics["confirmed_bookings"] == 0
    assert metrics["total_revenue"] == 1000.0
    assert metrics["average_booking_value"] == 333.33
    assert metrics["total_time_slots"] == 4
    assert metrics["available_time_slots"] == 3
    assert metrics["booked_time_slots"] == 1
    assert metrics["utilization_rate"] == 25.0
    assert metrics["unique_directors"] == 1
    assert metrics["unique_families"] == 2
    assert metrics["repeat_client_rate"] == 50
    assert metrics["total_reviews"] == 2
    assert metrics["average_rating"] == 4.5
    assert metrics["completion_rate"] == 33
    assert metrics["cancellation_rate"] == 33

    assert analytics["comparisons"] == {"bookings_growth": 200.0, "revenue_growth": 100.0}


def test_month_charts(db, seeded, venue):
    analytics = AnalyticsService(db).venue_analytics(venue, period="month", now=NOW)
    charts = {chart["title"]: chart for chart in analytics["charts"]}

    assert set(charts) == {
        "Bookings Over Time",
        "Booking Status Distribution",
        "Daily Utilization Rate",
        "Client Types",
    }
    assert charts["Bookings Over Time"]["data"]["labels"] == [
        "2026-10-05",
        "2026-10-10",
        "2026-10-12",
    ]
    assert charts["Booking Status Distribution"]["data"]["datasets"][0]["data"] == [1, 0, 1, 1]
    assert charts["Daily Utilization Rate"]["data"]["datasets"][0]["data"] == [25.0]
    assert charts["Client Types"]["data"]["labels"] == ["Via Directors", "Direct Families"]
    assert charts["Client Types"]["data"]["datasets"][0]["data"] == [1, 2]


def test_year_adds_revenue_by_month(db, seeded, venue):
    analytics = AnalyticsService(db).venue_analytics(venue, period="year", now=NOW)
    revenue = next(c for c in analytics["charts"] if c["title"] == "Revenue by Month")
    assert revenue["type"] == "bar"
    assert revenue["data"]["labels"] == ["Sep", "Oct"]
    assert revenue["data"]["datasets"][0]["data"] == [500.0, 1000.0]


def test_empty_venue(db, venue):
    analytics = AnalyticsService(db).venue_analytics(venue, period="week", now=NOW)
    assert analytics["metrics"]["total_bookings"] == 0
    assert analytics["metrics"]["average_rating"] == 0.0
    assert [c["title"] for c in analytics["charts"]] == [
        "Bookings Over Time",
        "Booking Status Distribution",
    ]


def test_single_metric(db, seeded, venue):
    service = AnalyticsService(db)
    analytics = service.venue_analytics(venue, period="month", now=NOW)

    result = service.single_metric(analytics, "total_revenue")
    assert result["metric_name"] == "total_revenue"
    assert result["value"] == 1000.0
    assert result["growth"] == 0

    with pytest.raises(ValidationException):
        service.single_metric(analytics, "profit")
