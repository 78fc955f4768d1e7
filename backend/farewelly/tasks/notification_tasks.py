# backend/farewelly/tasks/notification_tasks.py
"""
Celery tasks for dispatching notification outbox events.

Two-step workflow:
1. `outbox.dispatch_pending` periodically enqueues delivery tasks.
2. `outbox.deliver_event` delivers one event; retries are scheduled in the
   outbox row itself, so the task never re-raises.
"""

from __future__ import annotations

from typing import Optional

from celery.utils.log import get_task_logger

from farewelly.database import SessionLocal, with_db_retry
from farewelly.services.notification_dispatcher import OutboxDispatcher
from farewelly.tasks.celery_app import celery_app

logger = get_task_logger(__name__)


def _dispatcher() -> OutboxDispatcher:
    return OutboxDispatcher(SessionLocal)


@celery_app.task(name="outbox.dispatch_pending", max_retries=0, queue="notifications")
def dispatch_pending() -> int:
    """
    Fetch due outbox events and enqueue delivery tasks.

    Returns the number of events scheduled.
    """
    event_ids = with_db_retry("outbox_pending", _dispatcher().pending_event_ids)
    for event_id in event_ids:
        deliver_event.apply_async((event_id,), queue="notifications")
    if event_ids:
        logger.info("Scheduled %s outbox events for delivery", len(event_ids))
    return len(event_ids)


@celery_app.task(name="outbox.deliver_event", max_retries=0, queue="notifications")
def deliver_event(event_id: str) -> Optional[str]:
    """Deliver a single outbox event."""
    outcome = _dispatcher().deliver(event_id)
    return outcome.event_id if outcome.status == "sent" else None
