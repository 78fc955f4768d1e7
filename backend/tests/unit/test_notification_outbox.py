from farewelly.models.event_outbox import EventOutbox, EventOutboxStatus
from farewelly.models.notification import Notification
from farewelly.services.notification_dispatcher import (
    BACKOFF_SECONDS,
    OutboxDispatcher,
    next_backoff,
)
from farewelly.services.notification_service import NotificationService


class FailingProvider:
    def send(self, session, event_type, payload=None, idempotency_key=None):
        raise RuntimeError("inbox unavailable")


def test_notify_writes_outbox_row(db, family):
    service = NotificationService(db)

    assert service.notify(family.id, "booking", "Hello", "World", {"booking_id": "b1"})
    db.commit()

    rows = db.query(EventOutbox).all()
    assert len(rows) == 1
    assert rows[0].status == EventOutboxStatus.PENDING.value
    assert rows[0].payload["title"] == "Hello"
    assert rows[0].payload["data"] == {"booking_id": "b1"}


def test_notify_without_recipient_is_a_noop(db):
    assert NotificationService(db).notify(None, "booking", "t", "m") is False
    assert db.query(EventOutbox).count() == 0


def test_dispatch_delivers_to_inbox_once(db, session_factory, family):
    NotificationService(db).notify(family.id, "payment", "Payment Received", "Paid")
    db.commit()

    dispatcher = OutboxDispatcher(session_factory)
    outcomes = dispatcher.dispatch_pending()

    assert [o.status for o in outcomes] == ["sent"]
    assert dispatcher.dispatch_pending() == []

    db.expire_all()
    inbox = db.query(Notification).filter_by(user_id=family.id).all()
    assert len(inbox) == 1
    assert inbox[0].title == "Payment Received"
    assert db.query(EventOutbox).one().status == EventOutboxStatus.SENT.value


def test_failed_delivery_is_rescheduled_then_marked_failed(db, session_factory, family):
    NotificationService(db).notify(family.id, "payment", "t", "m")
    db.commit()
    event_id = db.query(EventOutbox).one().id
    db.commit()

    dispatcher = OutboxDispatcher(session_factory, provider=FailingProvider(), max_attempts=2)

    first = dispatcher.deliver(event_id)
    assert first.status == "retry"
    assert first.backoff_seconds == BACKOFF_SECONDS[0]

    second = dispatcher.deliver(event_id)
    assert second.status == "failed"

    db.expire_all()
    row = db.get(EventOutbox, event_id)
    assert row.status == EventOutboxStatus.FAILED.value
    assert row.attempt_count == 2
    assert row.last_error == "inbox unavailable"


def test_backoff_caps_at_last_step():
    assert next_backoff(1) == 30
    assert next_backoff(99) == BACKOFF_SECONDS[-1]
