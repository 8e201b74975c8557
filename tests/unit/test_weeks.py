"""Unit tests for prize-week arithmetic."""

from datetime import date, datetime

import pytest

from ladder.weeks import week_end, week_start


@pytest.mark.parametrize(
    "instant, expected",
    [
        # Sunday maps to itself, even at the very start and end of the day
        (datetime(2026, 10, 11, 0, 0, 0), date(2026, 10, 11)),
        (datetime(2026, 10, 11, 23, 59, 59), date(2026, 10, 11)),
        # Mid-week
        (datetime(2026, 10, 14, 17, 30), date(2026, 10, 11)),
        # Saturday night is still the same week
        (datetime(2026, 10, 17, 23, 59, 59), date(2026, 10, 11)),
        # Rollover to the next Sunday
        (datetime(2026, 10, 18, 0, 0, 1), date(2026, 10, 18)),
        # Across a month and a year boundary
        (datetime(2026, 11, 3, 9, 0), date(2026, 11, 1)),
        (datetime(2027, 1, 1, 9, 0), date(2026, 12, 27)),
    ],
)
def test_week_start(instant, expected):
    assert week_start(instant) == expected


def test_week_start_accepts_plain_date():
    assert week_start(date(2026, 10, 16)) == date(2026, 10, 11)


def test_week_start_is_always_sunday():
    for day in range(1, 29):
        # weekday() == 6 is Sunday
        assert week_start(date(2026, 2, day)).weekday() == 6


def test_week_end_is_saturday():
    assert week_end(date(2026, 10, 11)) == date(2026, 10, 17)
