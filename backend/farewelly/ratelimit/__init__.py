"""Fixed-window rate limiting with a shared Redis counter."""

from .dependency import rate_limit
from .fixed_window import Decision, FixedWindowRateLimiter

__all__ = [
    "Decision",
    "FixedWindowRateLimiter",
    "rate_limit",
]
