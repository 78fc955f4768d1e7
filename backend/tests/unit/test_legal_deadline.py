from datetime import date

import pytest

from farewelly.utils.legal_deadline import (
    compliance_status,
    days_remaining,
    dutch_public_holidays,
    easter_sunday,
    is_working_day,
    legal_deadline,
)


@pytest.mark.parametrize(
    "year, expected",
    [(2024, date(2024, 3, 31)), (2025, date(2025, 4, 20)), (2026, date(2026, 4, 5))],
)
def test_easter_sunday(year, expected):
    assert easter_sunday(year) == expected


def test_public_holidays_2026():
    holidays = dutch_public_holidays(2026)
    assert date(2026, 4, 3) in holidays  # Good Friday
    assert date(2026, 4, 6) in holidays  # Easter Monday
    assert date(2026, 4, 27) in holidays
    assert date(2026, 5, 14) in holidays  # Ascension Day
    assert date(2026, 5, 25) in holidays  # Whit Monday
    assert date(2026, 12, 26) in holidays


def test_kings_day_moves_to_saturday_when_on_sunday():
    assert date(2025, 4, 26) in dutch_public_holidays(2025)
    assert date(2025, 4, 27) not in dutch_public_holidays(2025)


def test_weekends_and_holidays_are_not_working_days():
    assert is_working_day(date(2026, 11, 16))
    assert not is_working_day(date(2026, 11, 21))
    assert not is_working_day(date(2026, 12, 25))


@pytest.mark.parametrize(
    "registered, deadline",
    [
        (date(2026, 11, 16), date(2026, 11, 24)),
        # King's Day and Liberation Day both fall inside the window
        (date(2026, 4, 24), date(2026, 5, 6)),
        (date(2026, 12, 23), date(2027, 1, 4)),
    ],
)
def test_legal_deadline_is_sixth_working_day(registered, deadline):
    assert legal_deadline(registered) == deadline


@pytest.mark.parametrize(
    "today, status",
    [
        (date(2026, 11, 20), "pending"),
        (date(2026, 11, 22), "in_progress"),
        (date(2026, 11, 23), "at_risk"),
        (date(2026, 11, 24), "emergency"),
        (date(2026, 11, 26), "emergency"),
    ],
)
def test_status_tightens_as_deadline_nears(today, status):
    assert compliance_status(days_remaining(date(2026, 11, 24), today)) == status
