# backend/farewelly/models/booking.py
"""
Booking model for the Farewelly platform.

A booking ties a family to a funeral director and/or a venue for a service
on a given date and time. Bookings are created by a family or director and
move through the venue-driven status lifecycle; they are never hard-deleted.
"""

from datetime import datetime, timezone
import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import BookingStatus
from ..database import Base

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """Service booking between a family and its director and venue."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    family_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=False, index=True)
    director_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=True, index=True)
    venue_id = Column(String(26), ForeignKey("user_profiles.id"), nullable=True, index=True)

    service_type = Column(String(100), nullable=False, default="funeral_service")
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    duration_minutes = Column(Integer, nullable=False, default=60)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    price = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)
    venue_notes = Column(Text, nullable=True)

    # Burial or cremation must happen within six working days of death registration
    death_registration_date = Column(Date, nullable=True)
    legal_deadline = Column(Date, nullable=True, index=True)
    compliance_status = Column(String(20), nullable=True)
    compliance_checked_at = Column(DateTime(timezone=True), nullable=True)

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

    family = relationship("UserProfile", foreign_keys=[family_id])
    director = relationship("UserProfile", foreign_keys=[director_id])
    venue = relationship("UserProfile", foreign_keys=[venue_id])
    payments = relationship(
        "Payment",
        back_populates="booking",
        order_by="Payment.created_at",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_bookings_venue_date_status", "venue_id", "booking_date", "status"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id} venue={self.venue_id} "
            f"{self.booking_date} {self.start_time} status={self.status}>"
        )

    @property
    def party_ids(self) -> set[str]:
        """Profile ids allowed to act on this booking's payments."""
        return {pid for pid in (self.family_id, self.director_id, self.venue_id) if pid}

    def is_party(self, profile_id: str) -> bool:
        return profile_id in self.party_ids
