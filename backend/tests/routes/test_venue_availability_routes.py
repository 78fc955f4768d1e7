from datetime import date

from farewelly.models.venue_availability import VenueAvailability
from tests.helpers import auth_headers, hourly_slots, make_availability

URL = "/api/venue/availability"


def test_list_availability_with_stats(client, db, venue, other_venue):
    slots = hourly_slots(9, 13)
    slots[1] = {**slots[1], "is_available": False, "booking_id": "01JBOOKING"}
    make_availability(db, venue, date(2026, 11, 20), slots)
    make_availability(db, venue, date(2026, 12, 1), hourly_slots(9, 11))
    make_availability(db, other_venue, date(2026, 11, 20), hourly_slots(9, 17))

    response = client.get(
        URL,
        params={"start_date": "2026-11-01", "end_date": "2026-11-30", "view": "week"},
        headers=auth_headers(venue),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Availability retrieved successfully"
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    data = body["data"]
    assert [day["date"] for day in data["availability"]] == ["2026-11-20"]
    assert data["stats"] == {
        "total_slots": 4,
        "available_slots": 3,
        "booked_slots": 1,
        "utilization_rate": 25,
        "availability_rate": 75,
    }
    assert data["view"] == "week"
    assert data["period"] == {"start": "2026-11-01", "end": "2026-11-30"}


def test_malformed_dates_are_ignored(client, db, venue):
    make_availability(db, venue, date(2026, 11, 20), hourly_slots(9, 10))
    response = client.get(URL, params={"start_date": "20-11-2026"}, headers=auth_headers(venue))
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 1
    assert response.json()["data"]["period"] == {"start": None, "end": None}


def test_post_creates_day(client, db, venue):
    response = client.post(
        URL,
        json={
            "date": "2026-11-21",
            "time_slots": [
                {"start_time": "09:00", "end_time": "10:30", "price": 175},
                {"start_time": "11:00:00", "end_time": "12:00:00", "is_available": False},
            ],
        },
        headers=auth_headers(venue),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Availability updated successfully"
    assert body["data"]["time_slots"] == [
        {
            "start_time": "09:00",
            "end_time": "10:30",
            "is_available": True,
            "price": 175.0,
            "booking_id": None,
        },
        {
            "start_time": "11:00",
            "end_time": "12:00",
            "is_available": False,
            "price": 0.0,
            "booking_id": None,
        },
    ]
    assert db.query(VenueAvailability).filter_by(venue_id=venue.id).count() == 1


def test_post_rejects_inverted_slot(client, venue):
    response = client.post(
        URL,
        json={"date": "2026-11-21", "time_slots": [{"start_time": "12:00", "end_time": "09:00"}]},
        headers=auth_headers(venue),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "End time must be after start time for all slots"


def test_post_rejects_malformed_date(client, venue):
    response = client.post(
        URL,
        json={"date": "2026-13-40", "time_slots": []},
        headers=auth_headers(venue),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "validation_error"


def test_block_and_unblock_day(client, venue):
    blocked = client.put(
        URL,
        json={"date": "2026-12-24", "action": "block", "reason": "Kerstavond"},
        headers=auth_headers(venue),
    )
    assert blocked.status_code == 200
    assert blocked.json()["message"] == "Day blocked successfully"
    data = blocked.json()["data"]
    assert data["notes"] == "Kerstavond"
    assert data["time_slots"] == [
        {
            "start_time": "00:00",
            "end_time": "23:59",
            "is_available": False,
            "price": 0.0,
            "booking_id": None,
        }
    ]

    reopened = client.put(
        URL, json={"date": "2026-12-24", "action": "unblock"}, headers=auth_headers(venue)
    )
    assert reopened.status_code == 200
    assert reopened.json()["message"] == "Day unblocked successfully"
    data = reopened.json()["data"]
    assert data["notes"] == "Available"
    assert data["time_slots"][0]["start_time"] == "09:00"
    assert data["time_slots"][-1]["end_time"] == "18:00"
    assert all(slot["price"] == 150.0 for slot in data["time_slots"])
    assert data["version"] == 2


def test_invalid_day_action(client, venue):
    response = client.put(
        URL, json={"date": "2026-12-24", "action": "close"}, headers=auth_headers(venue)
    )
    assert response.status_code == 400
