# backend/farewelly/models/venue_availability.py
"""
Venue availability ledger.

One row per (venue, date) holding the ordered list of time slots for that
day. Each slot is a JSON object::

    {"start_time": "09:00", "end_time": "10:00", "is_available": true,
     "price": 150.0, "booking_id": null}

The ``version`` column is SQLAlchemy's optimistic-concurrency counter: a
writer that read a stale slot array fails with StaleDataError instead of
overwriting a concurrent change.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
import ulid

from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class VenueAvailability(Base):
    __tablename__ = "venue_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    venue_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    time_slots = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=False,
        default=list,
    )
    special_pricing = Column(
        JSONB(astext_type=Text()).with_variant(JSON(), "sqlite"),
        nullable=True,
    )
    notes = Column(Text, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_now_utc, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_now_utc,
        server_default=func.now(),
        onupdate=_now_utc,
    )

    __table_args__ = (UniqueConstraint("venue_id", "date", name="uq_venue_availability_day"),)
    __mapper_args__ = {"version_id_col": version}

    def slot_counts(self) -> tuple[int, int]:
        """Return (available, unavailable) slot counts."""
        slots: list[dict[str, Any]] = list(self.time_slots or [])
        available = sum(1 for slot in slots if slot.get("is_available"))
        return available, len(slots) - available

    def __repr__(self) -> str:
        return f"<VenueAvailability {self.venue_id} {self.date} slots={len(self.time_slots or [])}>"
