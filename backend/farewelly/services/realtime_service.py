# backend/farewelly/services/realtime_service.py
"""
Realtime event relay.

Signed-in clients push small events (typing indicators, presence, chat
pings) to a channel; the relay checks the caller's per-minute budget and
channel access, stamps the event, and publishes it over the shared
Broadcaster connection.
"""

import asyncio
from datetime import datetime, timezone
import json
from typing import Any, Dict, Optional, Protocol

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..core.broadcast import get_broadcast
from ..core.constants import (
    PRESENCE_CHANNEL_PREFIX,
    PRIVATE_BOOKING_CHANNEL_PREFIX,
    PRIVATE_USER_CHANNEL_PREFIX,
)
from ..core.exceptions import ForbiddenException, RateLimitException
from ..models.user import UserProfile
from ..ratelimit.config import get_policy
from ..ratelimit.fixed_window import FixedWindowRateLimiter
from ..repositories.factory import RepositoryFactory
from .base import BaseService

RELAY_BUCKET = "relay"


class EventPublisher(Protocol):
    async def publish(self, channel: str, message: Dict[str, Any]) -> None: ...


class BroadcastPublisher:
    """Publishes relay events through the process-wide Broadcaster."""

    async def publish(self, channel: str, message: Dict[str, Any]) -> None:
        await get_broadcast().publish(channel=channel, message=json.dumps(message))


class RealtimeRelayService(BaseService):
    def __init__(self, db: Session, publisher: EventPublisher, limiter: FixedWindowRateLimiter):
        super().__init__(db)
        self.publisher = publisher
        self.limiter = limiter
        self.booking_repository = RepositoryFactory.create_booking_repository(db)

    def check_budget(self, profile: UserProfile) -> None:
        policy = get_policy(RELAY_BUCKET)
        decision = self.limiter.hit(
            RELAY_BUCKET,
            f"user:{profile.id}",
            policy.limit,
            policy.window_s,
        )
        if not decision.allowed:
            raise RateLimitException(retry_after=decision.retry_after_s)

    def can_access(self, profile: UserProfile, channel: str) -> bool:
        """
        Channel rules:
        - private-user-<id>: only that profile
        - private-booking-<id>: parties on the booking
        - presence-*: any signed-in profile
        Everything else is denied.
        """
        if channel.startswith(PRIVATE_USER_CHANNEL_PREFIX):
            return channel[len(PRIVATE_USER_CHANNEL_PREFIX) :] == profile.id
        if channel.startswith(PRIVATE_BOOKING_CHANNEL_PREFIX):
            booking_id = channel[len(PRIVATE_BOOKING_CHANNEL_PREFIX) :]
            booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
            return booking is not None and booking.is_party(profile.id)
        if channel.startswith(PRESENCE_CHANNEL_PREFIX):
            return len(channel) > len(PRESENCE_CHANNEL_PREFIX)
        return False

    @BaseService.measure_operation("relay_event")
    async def relay(
        self,
        profile: UserProfile,
        *,
        channel: str,
        event: str,
        data: Dict[str, Any],
        socket_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        self.check_budget(profile)

        allowed = await asyncio.to_thread(self.can_access, profile, channel)
        if not allowed:
            raise ForbiddenException("Access denied to channel")

        timestamp = datetime.now(timezone.utc).isoformat()
        payload = {
            **jsonable_encoder(data),
            "timestamp": timestamp,
            "user_id": profile.id,
            "session_id": session_id,
        }
        await self.publisher.publish(
            channel, {"event": event, "data": payload, "socket_id": socket_id}
        )
        self.logger.debug("Relayed %s on %s for %s", event, channel, profile.id)
        return {"channel": channel, "event": event, "timestamp": timestamp}
