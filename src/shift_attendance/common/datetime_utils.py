from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

import pytz


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def to_local_naive(value: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime into naive wall-clock time of `tz_name`.

    Naive values are assumed to already be business-local.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.timezone(tz_name)).replace(tzinfo=None)


def parse_timestamp(value, tz_name: str = "UTC") -> Optional[datetime]:
    """Parse a stored `created_at` value (datetime or ISO string)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_local_naive(value, tz_name)
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_local_naive(parsed, tz_name)


def iter_dates(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def month_range(today: date) -> tuple[date, date]:
    """First and last day of the month containing `today`."""
    start = today.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return start, next_month - timedelta(days=1)


def week_range(today: date) -> tuple[date, date]:
    """Sunday..Saturday week containing `today`."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def week_ending_friday(day: date) -> date:
    return day + timedelta(days=(4 - day.weekday()) % 7)


def slash_date(value: Optional[date]) -> Optional[str]:
    return value.strftime("%Y/%m/%d") if value else None
