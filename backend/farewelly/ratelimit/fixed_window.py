"""
Fixed-window request counter.

Each (bucket, identity) pair gets one Redis key per window, named
``<namespace>:<bucket>:<identity>:<window-index>``. The key is bumped with
INCR and given a TTL of one window, so every process behind the load
balancer shares the same count and stale windows expire on their own.
"""

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    allowed: bool
    limit: int
    remaining: int
    retry_after_s: int
    reset_epoch_s: int


class FixedWindowRateLimiter:
    def __init__(
        self,
        redis_client: Any,
        namespace: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.redis = redis_client
        self.namespace = namespace
        self._clock = clock

    def key_for(self, bucket: str, identity: str, window_index: int) -> str:
        return f"{self.namespace}:{bucket}:{identity}:{window_index}"

    def hit(self, bucket: str, identity: str, limit: int, window_s: int = 60) -> Decision:
        """Count one request and decide whether it fits in the current window."""
        now = self._clock()
        window_index = int(now // window_s)
        reset_epoch_s = (window_index + 1) * window_s
        key = self.key_for(bucket, identity, window_index)

        try:
            pipe = self.redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, window_s)
            count = int(pipe.execute()[0])
        except Exception as exc:
            # Fail open when Redis is unreachable
            logger.warning("Rate-limit counter unavailable for %s: %s", bucket, exc)
            prometheus_metrics.record_rate_limit_decision(bucket, "error")
            return Decision(True, limit, limit, 0, reset_epoch_s)

        if count > limit:
            prometheus_metrics.record_rate_limit_decision(bucket, "block")
            retry_after = max(1, int(reset_epoch_s - now))
            return Decision(False, limit, 0, retry_after, reset_epoch_s)

        prometheus_metrics.record_rate_limit_decision(bucket, "allow")
        return Decision(True, limit, limit - count, 0, reset_epoch_s)
