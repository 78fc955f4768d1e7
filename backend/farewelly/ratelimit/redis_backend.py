import redis

from ..core.config import settings


def get_redis() -> "redis.Redis":
    return redis.Redis.from_url(settings.redis_url, decode_responses=True)


__all__ = ["get_redis"]
