from __future__ import annotations

from datetime import datetime
import re
from typing import Any, Iterable, Mapping

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")
DAY_MINUTES = 24 * 60


def parse_time_str(value: str) -> int:
    """
    Convert an "HH:MM" or "HH:MM:SS" string to minutes since midnight.

    "24:00" is accepted as the end of the day (1440).

    Raises:
        ValueError: If the string is not a valid wall-clock time.
    """
    match = _TIME_RE.match(str(value).strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours == 24 and minutes == 0 and seconds == 0:
        return DAY_MINUTES
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError(f"Invalid time value: {value!r}")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """
    Convert minutes since midnight to HH:MM.

    1440 is rendered as "24:00".
    """
    if not 0 <= minutes <= DAY_MINUTES:
        raise ValueError(f"minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str) -> str:
    return minutes_to_time_str(parse_time_str(value))


def windows_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap: [start_a, end_a) intersects [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def slot_window(slot: Mapping[str, Any]) -> tuple[int, int]:
    return parse_time_str(slot["start_time"]), parse_time_str(slot["end_time"])


def booking_window(start_time: str, duration_minutes: int) -> tuple[int, int]:
    start = parse_time_str(start_time)
    return start, start + int(duration_minutes)


def covers(slots: Iterable[Mapping[str, Any]], time_str: str) -> bool:
    """True when an available slot satisfies start <= time < end."""
    minute = parse_time_str(time_str)
    for slot in slots:
        if not slot.get("is_available"):
            continue
        start, end = slot_window(slot)
        if start <= minute < end:
            return True
    return False


def window_available(slots: Iterable[Mapping[str, Any]], start: int, end: int) -> bool:
    """True when available slots cover every minute of [start, end) without a gap."""
    cursor = start
    for slot_start, slot_end in sorted(slot_window(s) for s in slots if s.get("is_available")):
        if slot_start > cursor:
            break
        cursor = max(cursor, slot_end)
        if cursor >= end:
            return True
    return cursor >= end


def hourly_grid(open_hour: int, close_hour: int, price: float) -> list[dict[str, Any]]:
    """Available one-hour slots from open_hour up to close_hour."""
    return [
        {
            "start_time": f"{hour:02d}:00",
            "end_time": f"{hour + 1:02d}:00",
            "is_available": True,
            "price": price,
            "booking_id": None,
        }
        for hour in range(open_hour, close_hour)
    ]


def parse_iso_date(value: str | None):
    """Parse YYYY-MM-DD, returning None for empty or malformed input."""
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None
