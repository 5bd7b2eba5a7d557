"""
Calendar-date helpers

Every streak and log rule works on calendar dates, never timestamps.
Callers may pass an explicit `today` so rollover logic stays testable.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def today_local(today: Optional[date] = None) -> date:
    """Return `today` if given, else the current local calendar date"""
    return today if today is not None else date.today()


def yesterday_of(day: date) -> date:
    return day - timedelta(days=1)


def now_utc() -> datetime:
    """Current datetime in UTC (timezone-aware)"""
    return datetime.now(timezone.utc)


def last_n_days(today: date, days: int) -> list[date]:
    """
    Oldest-first list of the `days` calendar dates ending at `today`

    Example:
        last_n_days(date(2024, 7, 3), 3) -> [Jul 1, Jul 2, Jul 3]
    """
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
