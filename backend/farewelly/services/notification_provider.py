# backend/farewelly/services/notification_provider.py
"""
In-app notification provider used by the outbox dispatcher.

Delivery writes a row into the recipient's notification inbox. The outbox
idempotency key is stored on that row so a redelivered event does not
create a duplicate notification.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..repositories.factory import RepositoryFactory

logger = logging.getLogger(__name__)


class NotificationProviderTemporaryError(RuntimeError):
    """Raised when delivery should be retried later."""


@dataclass(slots=True)
class NotificationDispatchResult:
    idempotency_key: str
    event_type: str
    notification_id: str


class InAppNotificationProvider:
    """Writes outbox events into the notifications table."""

    def send(
        self,
        session: Session,
        event_type: str,
        payload: Optional[Dict[str, Any]] = None,
        idempotency_key: Optional[str] = None,
    ) -> NotificationDispatchResult:
        if not idempotency_key:
            raise ValueError("idempotency_key is required for notification dispatch")
        payload = payload or {}
        user_id = payload.get("user_id")
        if not user_id:
            raise ValueError(f"Outbox payload for {idempotency_key} has no user_id")

        repo = RepositoryFactory.create_notification_repository(session)
        notification = repo.create_from_event(
            source_key=idempotency_key,
            user_id=user_id,
            type=str(payload.get("type") or "general"),
            title=str(payload.get("title") or ""),
            message=str(payload.get("message") or ""),
            data=payload.get("data") or {},
        )
        logger.debug("Notification %s delivered for key=%s", notification.id, idempotency_key)
        return NotificationDispatchResult(
            idempotency_key=idempotency_key,
            event_type=event_type,
            notification_id=notification.id,
        )
