# backend/farewelly/core/broadcast.py
"""
Process-wide Broadcaster for the realtime relay.

Each worker opens one Redis pub/sub connection at startup and every relayed
event is published through it, so subscribers on any worker receive it.
"""
import logging
from typing import Optional

from broadcaster import Broadcast

from .config import settings

logger = logging.getLogger(__name__)

_broadcast: Optional[Broadcast] = None


def get_broadcast() -> Broadcast:
    if _broadcast is None:
        raise RuntimeError("Realtime relay is not connected; connect_broadcast() runs at startup")
    return _broadcast


async def connect_broadcast(url: Optional[str] = None) -> Broadcast:
    global _broadcast

    if _broadcast is None:
        target = url or settings.redis_url or "redis://localhost:6379"
        instance = Broadcast(target)
        await instance.connect()
        _broadcast = instance
        logger.info("Realtime relay connected to %s", target)
    return _broadcast


async def disconnect_broadcast() -> None:
    global _broadcast

    instance, _broadcast = _broadcast, None
    if instance is not None:
        await instance.disconnect()
        logger.info("Realtime relay disconnected")
