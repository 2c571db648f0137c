"""Time-of-day parsing at the system boundary.

Internally a time of day is always a `datetime.time` and an instant a naive
business-local `datetime`. Stored records carry several textual formats
("09:05 AM", "9:05pm", "13:00", "13:00:00", full ISO timestamps); they are
converted here and nowhere else. Unparseable input yields None so callers can
fall back to the stored timestamp.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

from .datetime_utils import parse_timestamp

_TWELVE_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([ap])\.?m\.?$", re.IGNORECASE)
_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time_of_day(text) -> Optional[time]:
    if isinstance(text, time):
        return text
    if text is None:
        return None
    value = str(text).strip()
    if not value:
        return None

    m = _TWELVE_HOUR.match(value)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        seconds = int(m.group(3) or 0)
        if not 1 <= hours <= 12 or minutes > 59 or seconds > 59:
            return None
        period = m.group(4).lower()
        if period == "p" and hours != 12:
            hours += 12
        if period == "a" and hours == 12:
            hours = 0
        return time(hours, minutes, seconds)

    m = _TWENTY_FOUR_HOUR.match(value)
    if m:
        hours, minutes = int(m.group(1)), int(m.group(2))
        seconds = int(m.group(3) or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            return None
        return time(hours, minutes, seconds)

    return None


def resolve_instant(text, on_date: date, tz_name: str = "UTC") -> Optional[datetime]:
    """Resolve a stored time string to an instant on `on_date`.

    Full timestamps are taken as-is; times of day are combined with the date.
    """
    if text is None:
        return None
    value = str(text).strip()
    if not value:
        return None
    if "T" in value or "-" in value:
        return parse_timestamp(value, tz_name)
    tod = parse_time_of_day(value)
    if tod is None:
        return None
    return datetime.combine(on_date, tod)


def format_time_12h(value) -> str:
    """Render `09:05 AM` style text used by clock records and webhook payloads."""
    return value.strftime("%I:%M %p")


def to_12h_lower(value: Optional[time]) -> Optional[str]:
    """Template payloads use lower-case am/pm ("09:00 am")."""
    if value is None:
        return None
    return value.strftime("%I:%M %p").lower()


def to_24h(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else ""
