from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
import ulid

from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class VenueReview(Base):
    """Family or director review of a venue. Read by venue analytics."""

    __tablename__ = "venue_reviews"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    venue_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=False, index=True)
    reviewer_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )

    __table_args__ = (CheckConstraint("rating BETWEEN 1 AND 5", name="ck_venue_reviews_rating"),)
