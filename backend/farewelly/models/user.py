# backend/farewelly/models/user.py
"""
User profile model.

Authentication is delegated to an external provider; this table holds the
marketplace profile resolved from the authenticated e-mail address.
"""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Numeric, String
from sqlalchemy.sql import func
import ulid

from ..core.enums import UserType
from ..database import Base


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(Base):
    """Marketplace participant: family, funeral director, venue owner or admin."""

    __tablename__ = "user_profiles"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    user_type = Column(String(20), nullable=False, default=UserType.FAMILY.value, index=True)
    phone = Column(String(50), nullable=True)

    # Directors
    company = Column(String(255), nullable=True)

    # Venues
    venue_name = Column(String(255), nullable=True)
    price_per_hour = Column(Numeric(10, 2), nullable=True)

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

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('family', 'director', 'venue', 'admin')",
            name="ck_user_profiles_user_type",
        ),
    )

    @property
    def display_name(self) -> str:
        """Name shown to counter-parties; venues prefer their venue name."""
        return self.venue_name or self.name

    def __repr__(self) -> str:
        return f"<UserProfile {self.id} {self.user_type} {self.email}>"
