"""Test doubles and record builders shared by unit and route tests."""

from datetime import date, datetime, timezone
from decimal import Decimal
import random
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from farewelly.auth import create_access_token
from farewelly.core.enums import BookingStatus, UserType
from farewelly.models.booking import Booking
from farewelly.models.user import UserProfile
from farewelly.models.venue_availability import VenueAvailability
from farewelly.services.payment_provider import MockPaymentProvider


class DummyRedis:
    """In-memory stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self) -> None:
        self.store: Dict[str, int] = {}
        self.ttls: Dict[str, int] = {}

    def pipeline(self) -> "DummyPipeline":
        return DummyPipeline(self)


class DummyPipeline:
    def __init__(self, redis: DummyRedis) -> None:
        self.redis = redis
        self.ops: List[tuple] = []

    def incr(self, key: str) -> "DummyPipeline":
        self.ops.append(("incr", key))
        return self

    def expire(self, key: str, seconds: int) -> "DummyPipeline":
        self.ops.append(("expire", key, seconds))
        return self

    def execute(self) -> List[Any]:
        results: List[Any] = []
        for op in self.ops:
            if op[0] == "incr":
                self.redis.store[op[1]] = self.redis.store.get(op[1], 0) + 1
                results.append(self.redis.store[op[1]])
            else:
                self.redis.ttls[op[1]] = op[2]
                results.append(True)
        self.ops = []
        return results


class FakePublisher:
    def __init__(self) -> None:
        self.published: List[tuple] = []

    async def publish(self, channel: str, message: Dict[str, Any]) -> None:
        self.published.append((channel, message))


def deterministic_provider(**overrides: Any) -> MockPaymentProvider:
    options: Dict[str, Any] = {
        "success_rate": 1.0,
        "refund_success_rate": 1.0,
        "latency_seconds": 0,
        "rng": random.Random(7),
    }
    options.update(overrides)
    return MockPaymentProvider(**options)


def make_profile(db: Session, user_type: UserType, email: str, **fields: Any) -> UserProfile:
    profile = UserProfile(email=email, user_type=user_type.value, **fields)
    db.add(profile)
    db.commit()
    return profile


def make_booking(
    db: Session,
    family: UserProfile,
    *,
    director: Optional[UserProfile] = None,
    venue: Optional[UserProfile] = None,
    status: BookingStatus = BookingStatus.PENDING,
    booking_date: date = date(2026, 11, 20),
    start_time: str = "10:00",
    duration_minutes: int = 120,
    price: Decimal = Decimal("1000.00"),
    created_at: Optional[datetime] = None,
) -> Booking:
    booking = Booking(
        family_id=family.id,
        director_id=director.id if director else None,
        venue_id=venue.id if venue else None,
        booking_date=booking_date,
        start_time=start_time,
        duration_minutes=duration_minutes,
        status=status.value,
        price=price,
    )
    if created_at is not None:
        booking.created_at = created_at
    db.add(booking)
    db.commit()
    return booking


def make_availability(
    db: Session,
    venue: UserProfile,
    day: date,
    slots: List[Dict[str, Any]],
) -> VenueAvailability:
    record = VenueAvailability(venue_id=venue.id, date=day, time_slots=slots)
    db.add(record)
    db.commit()
    return record


def hourly_slots(start_hour: int, end_hour: int, price: float = 150.0) -> List[Dict[str, Any]]:
    return [
        {
            "start_time": f"{hour:02d}:00",
            "end_time": f"{hour + 1:02d}:00",
            "is_available": True,
            "price": price,
            "booking_id": None,
        }
        for hour in range(start_hour, end_hour)
    ]


def auth_headers(profile: UserProfile) -> Dict[str, str]:
    token = create_access_token(data={"sub": profile.email})
    return {"Authorization": f"Bearer {token}"}


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)
