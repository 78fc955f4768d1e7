from typing import Any, List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ..models.notification import Notification
from .base_repository import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    def __init__(self, db: Session):
        super().__init__(db, Notification)

    def list_for_user(
        self, user_id: str, *, unread_only: bool, offset: int, limit: int
    ) -> tuple[List[Notification], int]:
        query = self._build_query().filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc())
        return self._paginate(query, offset=offset, limit=limit)

    def unread_count(self, user_id: str) -> int:
        return int(
            self._execute_scalar(
                self.db.query(func.count(Notification.id)).filter(
                    Notification.user_id == user_id, Notification.is_read.is_(False)
                )
            )
            or 0
        )

    def mark_read(self, user_id: str, notification_id: str) -> bool:
        result = self.db.execute(
            update(Notification)
            .where(Notification.id == notification_id, Notification.user_id == user_id)
            .values(is_read=True)
        )
        self.db.flush()
        return bool(getattr(result, "rowcount", 0))

    def get_by_source_key(self, source_key: str) -> Optional[Notification]:
        return self.find_one_by(source_key=source_key)

    def create_from_event(
        self,
        *,
        source_key: str,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        """Insert an inbox row once per outbox key; repeated deliveries return the existing row."""
        existing = self.get_by_source_key(source_key)
        if existing is not None:
            return existing
        return self.create(
            source_key=source_key,
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data or {},
            is_read=False,
        )
