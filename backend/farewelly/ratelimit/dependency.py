from __future__ import annotations

from fastapi import Depends, Request, Response

from ..api.dependencies.auth import get_current_profile
from ..core.config import settings
from ..core.exceptions import RateLimitException
from ..models.user import UserProfile
from .config import get_policy
from .fixed_window import FixedWindowRateLimiter
from .headers import set_rate_headers
from .identity import resolve_identity
from .redis_backend import get_redis


def get_rate_limiter() -> FixedWindowRateLimiter:
    return FixedWindowRateLimiter(get_redis(), settings.rate_limit_namespace)


def rate_limit(bucket: str):
    # FastAPI dependency to attach on routes; the profile dependency is shared
    # with the endpoint and stamps request.state.user_id for resolve_identity
    policy = get_policy(bucket)

    def dep(
        request: Request,
        response: Response,
        _profile: UserProfile = Depends(get_current_profile),
    ) -> None:
        if settings.is_testing or not settings.rate_limit_enabled:
            return

        decision = get_rate_limiter().hit(
            bucket, resolve_identity(request), policy.limit, policy.window_s
        )
        set_rate_headers(response, decision)
        if not decision.allowed:
            raise RateLimitException(retry_after=decision.retry_after_s)

    return dep
