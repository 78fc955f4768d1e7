from farewelly.models.notification import Notification
from tests.helpers import auth_headers


def _notification(db, profile, title, is_read=False):
    row = Notification(
        user_id=profile.id,
        type="booking",
        title=title,
        message=f"{title} bericht",
        data={"booking_id": "01JBOOKING"},
        is_read=is_read,
    )
    db.add(row)
    db.commit()
    return row


def test_list_notifications(client, db, family, other_family):
    _notification(db, family, "Booking Status Updated")
    _notification(db, family, "Refund Processed", is_read=True)
    _notification(db, other_family, "Payment Received")

    response = client.get("/api/notifications", headers=auth_headers(family))

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Notifications retrieved successfully"
    assert body["pagination"]["total"] == 2
    assert body["data"]["unread_count"] == 1
    titles = {n["title"] for n in body["data"]["notifications"]}
    assert titles == {"Booking Status Updated", "Refund Processed"}

    unread = client.get(
        "/api/notifications", params={"unread_only": True}, headers=auth_headers(family)
    )
    assert [n["title"] for n in unread.json()["data"]["notifications"]] == [
        "Booking Status Updated"
    ]


def test_mark_read(client, db, family, other_family):
    row = _notification(db, family, "Venue Available")

    response = client.post(f"/api/notifications/{row.id}/read", headers=auth_headers(family))
    assert response.status_code == 200
    assert response.json()["message"] == "Notification marked as read"
    db.refresh(row)
    assert row.is_read is True

    foreign = client.post(f"/api/notifications/{row.id}/read", headers=auth_headers(other_family))
    assert foreign.status_code == 404
