# backend/farewelly/routes/v1/__init__.py
"""
API v1 Routes

Endpoints mounted under /api.
"""

from . import (
    analytics,
    bookings,
    compliance,
    health,
    notifications,
    payments,
    prometheus,
    realtime,
    venue_availability,
    venue_bookings,
)

__all__ = [
    "analytics",
    "bookings",
    "compliance",
    "health",
    "notifications",
    "payments",
    "prometheus",
    "realtime",
    "venue_availability",
    "venue_bookings",
]
