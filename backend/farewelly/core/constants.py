"""Application-wide constants for the Farewelly platform."""

from __future__ import annotations

BRAND_NAME = "Farewelly"
API_VERSION = "1.0.0"
CURRENCY = "EUR"

# Pagination
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Availability
ALL_DAY_START = "00:00"
ALL_DAY_END = "23:59"
DEFAULT_VIEW = "month"

# Money
MONEY_TOLERANCE = "0.01"
PLATFORM_RECIPIENT_ID = "platform"

# Canned Dutch-language fallbacks shown to end users when the backend is degraded
FALLBACK_MESSAGE_UNAVAILABLE = "De dienst is tijdelijk niet beschikbaar. Probeer het later opnieuw."
FALLBACK_MESSAGE_UNEXPECTED = "Er is een onverwachte fout opgetreden. Probeer het later opnieuw."

# Realtime channel prefixes
PRIVATE_USER_CHANNEL_PREFIX = "private-user-"
PRIVATE_BOOKING_CHANNEL_PREFIX = "private-booking-"
PRESENCE_CHANNEL_PREFIX = "presence-"
