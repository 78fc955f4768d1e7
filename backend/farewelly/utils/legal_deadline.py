"""
Dutch burial and cremation deadline arithmetic.

Dutch law requires burial or cremation within six working days after the
death is registered. Weekends and national public holidays do not count.
"""

from __future__ import annotations

from datetime import date, timedelta
from functools import lru_cache

from ..core.enums import ComplianceStatus

LEGAL_WORKING_DAYS = 6

ALERT_LEVELS = {
    ComplianceStatus.PENDING.value: "info",
    ComplianceStatus.IN_PROGRESS.value: "warning",
    ComplianceStatus.AT_RISK.value: "critical",
    ComplianceStatus.EMERGENCY.value: "emergency",
}


def easter_sunday(year: int) -> date:
    """Gregorian Easter (anonymous Meeus/Jones/Butcher algorithm)."""
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    n = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * n) // 451
    month, day = divmod(h + n - 7 * m + 114, 31)
    return date(year, month, day + 1)


@lru_cache(maxsize=32)
def dutch_public_holidays(year: int) -> frozenset[date]:
    easter = easter_sunday(year)
    kings_day = date(year, 4, 27)
    if kings_day.weekday() == 6:
        kings_day = date(year, 4, 26)
    return frozenset(
        {
            date(year, 1, 1),
            easter - timedelta(days=2),
            easter,
            easter + timedelta(days=1),
            kings_day,
            date(year, 5, 5),
            easter + timedelta(days=39),
            easter + timedelta(days=49),
            easter + timedelta(days=50),
            date(year, 12, 25),
            date(year, 12, 26),
        }
    )


def is_working_day(day: date) -> bool:
    return day.weekday() < 5 and day not in dutch_public_holidays(day.year)


def legal_deadline(death_registration_date: date) -> date:
    """The sixth working day after the registration date."""
    current = death_registration_date
    added = 0
    while added < LEGAL_WORKING_DAYS:
        current += timedelta(days=1)
        if is_working_day(current):
            added += 1
    return current


def days_remaining(deadline: date, today: date) -> int:
    """Calendar days until the deadline; negative once it has passed."""
    return (deadline - today).days


def compliance_status(remaining: int) -> str:
    if remaining <= 0:
        return ComplianceStatus.EMERGENCY.value
    if remaining <= 1:
        return ComplianceStatus.AT_RISK.value
    if remaining <= 2:
        return ComplianceStatus.IN_PROGRESS.value
    return ComplianceStatus.PENDING.value
