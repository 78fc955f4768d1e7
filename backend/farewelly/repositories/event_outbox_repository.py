# backend/farewelly/repositories/event_outbox_repository.py
"""
Repository for the notification outbox.

Rows are added inside the caller's transaction and later claimed one by one
by the dispatcher. On PostgreSQL claimed rows are locked with SKIP LOCKED so
several workers can drain the outbox without delivering an event twice.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

from sqlalchemy.orm import Query, Session
import ulid

from ..models.event_outbox import EventOutbox, EventOutboxStatus
from .base_repository import BaseRepository


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EventOutboxRepository(BaseRepository[EventOutbox]):
    def __init__(self, db: Session):
        super().__init__(db, EventOutbox)

    def _locking(self, query: Query) -> Query:
        bind = self.db.get_bind()
        if bind is not None and bind.dialect.name == "postgresql":
            return query.with_for_update(skip_locked=True)
        return query

    def enqueue(
        self,
        *,
        event_type: str,
        aggregate_id: str,
        payload: Optional[dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> EventOutbox:
        """
        Add a pending event.

        A row that already carries ``idempotency_key`` is returned unchanged.
        Without a key every call produces a new event.
        """
        if idempotency_key:
            existing = self.find_one_by(idempotency_key=idempotency_key)
            if existing is not None:
                return existing

        event_id = str(ulid.ULID())
        return self.create(
            id=event_id,
            event_type=event_type,
            aggregate_id=aggregate_id,
            payload=payload or {},
            idempotency_key=idempotency_key or f"{event_type}:{aggregate_id}:{event_id}",
            status=EventOutboxStatus.PENDING.value,
            attempt_count=0,
            next_attempt_at=_now_utc(),
        )

    def fetch_pending(self, limit: int = 200) -> List[EventOutbox]:
        """Pending events whose next attempt is due, oldest first."""
        query = (
            self._build_query()
            .filter(
                EventOutbox.status == EventOutboxStatus.PENDING.value,
                EventOutbox.next_attempt_at <= _now_utc(),
            )
            .order_by(EventOutbox.next_attempt_at.asc(), EventOutbox.id.asc())
            .limit(limit)
        )
        return self._execute_query(self._locking(query))

    def claim(self, event_id: str) -> Optional[EventOutbox]:
        query = self._build_query().filter(EventOutbox.id == event_id)
        return self._locking(query).first()

    def mark_sent(self, event: EventOutbox, attempt_count: int) -> EventOutbox:
        return self.update(
            event,
            status=EventOutboxStatus.SENT.value,
            attempt_count=attempt_count,
            last_error=None,
        )

    def schedule_retry(
        self, event: EventOutbox, attempt_count: int, delay_seconds: int, error: str
    ) -> EventOutbox:
        return self.update(
            event,
            status=EventOutboxStatus.PENDING.value,
            attempt_count=attempt_count,
            next_attempt_at=_now_utc() + timedelta(seconds=max(delay_seconds, 1)),
            last_error=error[:1000],
        )

    def mark_failed(self, event: EventOutbox, attempt_count: int, error: str) -> EventOutbox:
        return self.update(
            event,
            status=EventOutboxStatus.FAILED.value,
            attempt_count=attempt_count,
            last_error=error[:1000],
        )
