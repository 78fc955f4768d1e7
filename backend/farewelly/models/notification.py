"""In-app notification inbox rows written by the outbox dispatcher."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    user_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=False)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    # Outbox key of the event that produced this row; guards against duplicate delivery
    source_key = Column(String(255), nullable=True, unique=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )

    __table_args__ = (Index("ix_notifications_user_read", "user_id", "is_read"),)

    def __repr__(self) -> str:
        return f"<Notification {self.id} user={self.user_id} {self.title!r}>"
