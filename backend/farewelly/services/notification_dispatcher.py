# backend/farewelly/services/notification_dispatcher.py
"""
Outbox dispatcher.

Delivers pending outbox rows through the in-app provider. A failed delivery
is rescheduled with exponential-style backoff and marked FAILED once the
attempt budget is exhausted, so operators can see it in the outbox table,
the logs and the metrics.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from time import monotonic
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.event_outbox import EventOutbox, EventOutboxStatus
from ..monitoring.prometheus_metrics import PrometheusMetrics
from ..repositories.event_outbox_repository import EventOutboxRepository
from .notification_provider import InAppNotificationProvider

logger = logging.getLogger(__name__)

BACKOFF_SECONDS = [30, 120, 600, 1800, 7200]


def next_backoff(attempt_number: int) -> int:
    """Return backoff delay for the given attempt (1-indexed)."""
    index = max(0, min(attempt_number - 1, len(BACKOFF_SECONDS) - 1))
    return BACKOFF_SECONDS[index]


@dataclass
class DeliveryOutcome:
    event_id: str
    status: str  # sent | retry | failed | missing | skipped
    attempt: int = 0
    backoff_seconds: Optional[int] = None
    error: Optional[str] = None


class OutboxDispatcher:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        provider: Optional[InAppNotificationProvider] = None,
        max_attempts: Optional[int] = None,
    ) -> None:
        self._session_factory = session_factory
        self.provider = provider or InAppNotificationProvider()
        self.max_attempts = max_attempts or settings.outbox_max_attempts

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def pending_event_ids(self, limit: Optional[int] = None) -> list[str]:
        with self._session_scope() as session:
            rows = EventOutboxRepository(session).fetch_pending(
                limit=limit or settings.outbox_batch_size
            )
            return [row.id for row in rows]

    def dispatch_pending(self, limit: Optional[int] = None) -> list[DeliveryOutcome]:
        """Deliver every due event in-process. Used by tests and one-off runs."""
        return [self.deliver(event_id) for event_id in self.pending_event_ids(limit)]

    def deliver(self, event_id: str) -> DeliveryOutcome:
        with self._session_scope() as session:
            repo = EventOutboxRepository(session)
            event = repo.claim(event_id)
            if event is None:
                logger.warning("Outbox event %s missing or locked; skipping", event_id)
                return DeliveryOutcome(event_id=event_id, status="missing")
            if event.status != EventOutboxStatus.PENDING.value:
                return DeliveryOutcome(event_id=event_id, status="skipped")

            event_type = event.event_type
            attempt = event.attempt_count + 1
            PrometheusMetrics.record_notification_attempt(event_type)
            start = monotonic()
            try:
                with session.begin_nested():
                    self.provider.send(
                        session,
                        event_type=event_type,
                        payload=dict(event.payload or {}),
                        idempotency_key=event.idempotency_key,
                    )
            except Exception as exc:
                PrometheusMetrics.observe_notification_dispatch(event_type, monotonic() - start)
                return self._record_failure(repo, event, attempt, exc)

            repo.mark_sent(event, attempt)
            PrometheusMetrics.observe_notification_dispatch(event_type, monotonic() - start)
            PrometheusMetrics.record_notification_outcome(event_type, "sent")
            logger.info("Delivered outbox event %s type=%s attempts=%s", event_id, event_type, attempt)
            return DeliveryOutcome(event_id=event_id, status="sent", attempt=attempt)

    def _record_failure(
        self,
        repo: EventOutboxRepository,
        event: EventOutbox,
        attempt: int,
        exc: Exception,
    ) -> DeliveryOutcome:
        error = str(exc)
        if attempt >= self.max_attempts:
            repo.mark_failed(event, attempt, error)
            PrometheusMetrics.record_notification_outcome(event.event_type, "failed")
            logger.error(
                "Outbox event %s failed permanently after %s attempts: %s", event.id, attempt, error
            )
            return DeliveryOutcome(event_id=event.id, status="failed", attempt=attempt, error=error)

        backoff = next_backoff(attempt)
        repo.schedule_retry(event, attempt, backoff, error)
        PrometheusMetrics.record_notification_outcome(event.event_type, "retry")
        logger.warning(
            "Retrying outbox event %s attempt=%s backoff=%ss: %s", event.id, attempt, backoff, error
        )
        return DeliveryOutcome(
            event_id=event.id,
            status="retry",
            attempt=attempt,
            backoff_seconds=backoff,
            error=error,
        )
