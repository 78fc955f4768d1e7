# backend/farewelly/services/notification_service.py
"""
Notification side channel.

Mutating services call ``notify`` inside their own transaction. The event is
written to the outbox under a savepoint, so a failure to enqueue is logged
and counted but never rolls back or fails the booking/payment mutation. The
outbox dispatcher delivers the event to the recipient's in-app inbox later.
"""

from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundException
from ..models.notification import Notification
from ..monitoring.prometheus_metrics import PrometheusMetrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

IN_APP_EVENT = "notification.in_app"


class NotificationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.outbox_repository = RepositoryFactory.create_event_outbox_repository(db)
        self.notification_repository = RepositoryFactory.create_notification_repository(db)

    def notify(
        self,
        user_id: Optional[str],
        type: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> bool:
        """
        Queue an in-app notification for ``user_id``.

        Returns True when the event reached the outbox. Never raises.
        """
        if not user_id:
            return False
        payload = {
            "user_id": user_id,
            "type": type,
            "title": title,
            "message": message,
            "data": jsonable_encoder(data or {}),
        }
        try:
            with self.db.begin_nested():
                self.outbox_repository.enqueue(
                    event_type=IN_APP_EVENT,
                    aggregate_id=user_id,
                    payload=payload,
                )
            return True
        except Exception as exc:
            PrometheusMetrics.record_notification_enqueue_failure(IN_APP_EVENT)
            self.logger.error(
                "Failed to enqueue notification for %s (%s): %s",
                user_id,
                title,
                exc,
                extra={"event": "notification_enqueue_failed", "user_id": user_id},
            )
            return False

    # Inbox reads

    @BaseService.measure_operation("list_notifications")
    def list_notifications(
        self, user_id: str, *, unread_only: bool, offset: int, limit: int
    ) -> tuple[List[Notification], int, int]:
        rows, total = self.notification_repository.list_for_user(
            user_id, unread_only=unread_only, offset=offset, limit=limit
        )
        return rows, total, self.notification_repository.unread_count(user_id)

    @BaseService.measure_operation("mark_notification_read")
    def mark_as_read(self, user_id: str, notification_id: str) -> None:
        with self.transaction():
            if not self.notification_repository.mark_read(user_id, notification_id):
                raise NotFoundException("Notification not found")
