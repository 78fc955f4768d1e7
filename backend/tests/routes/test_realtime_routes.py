from tests.helpers import auth_headers, make_booking

URL = "/api/realtime/events"


def test_relay_event(client, db, family, venue, publisher):
    booking = make_booking(db, family, venue=venue)
    channel = f"private-booking-{booking.id}"

    response = client.post(
        URL,
        json={"channel": channel, "event": "typing", "data": {"typing": True}},
        headers={**auth_headers(venue), "X-Session-ID": "sess-42"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Event sent successfully"
    assert body["data"]["channel"] == channel
    assert body["data"]["event"] == "typing"
    [(published_channel, message)] = publisher.published
    assert published_channel == channel
    assert message["data"]["user_id"] == venue.id
    assert message["data"]["session_id"] == "sess-42"


def test_relay_denies_other_users_channel(client, family, other_family, publisher):
    response = client.post(
        URL,
        json={"channel": f"private-user-{other_family.id}", "event": "ping", "data": {}},
        headers=auth_headers(family),
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Access denied to channel"
    assert publisher.published == []


def test_relay_rate_limit(client, family):
    payload = {"channel": "presence-condoleance", "event": "ping", "data": {}}
    for _ in range(60):
        assert client.post(URL, json=payload, headers=auth_headers(family)).status_code == 200

    response = client.post(URL, json=payload, headers=auth_headers(family))

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert int(response.headers["Retry-After"]) >= 1


def test_relay_requires_auth(client):
    response = client.post(URL, json={"channel": "presence-x", "event": "ping", "data": {}})
    assert response.status_code == 401
