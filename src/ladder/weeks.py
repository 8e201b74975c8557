"""
Prize-week arithmetic.

Prize windows run Sunday to Saturday in office-local time. A week is
identified by its start date: the most recent Sunday at or before the
given instant (Sunday itself maps to the same day).

Python's ``weekday()`` numbers Monday as 0, so days since Sunday is
``(weekday() + 1) % 7``.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Union

# Injectable "now" used by the services so tests can pin the clock
Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current office-local time (naive)."""
    return datetime.now()


def week_start(instant: Union[datetime, date]) -> date:
    """
    Return the Sunday that starts the prize week containing ``instant``.

    Args:
        instant: Any datetime or date. Time of day is discarded.

    Returns:
        The start date of the week (always a Sunday)

    Example:
        >>> week_start(datetime(2026, 10, 14, 17, 30))  # a Wednesday
        datetime.date(2026, 10, 11)
    """
    day = instant.date() if isinstance(instant, datetime) else instant
    days_since_sunday = (day.weekday() + 1) % 7
    return day - timedelta(days=days_since_sunday)


def week_end(start: date) -> date:
    """Last day (Saturday) of the week beginning at ``start``."""
    return start + timedelta(days=6)
