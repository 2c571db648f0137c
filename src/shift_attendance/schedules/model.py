from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Iterable, Optional, Sequence

from ..common.timeparse import parse_time_of_day

WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_WEEKDAY_INDEX = {name.lower(): i for i, name in enumerate(WEEKDAY_NAMES)}
_RANGE_SEPARATOR = re.compile(r"\s*[-–—]\s*")


def parse_days(value) -> frozenset[int]:
    """Parse the `days` column into weekday numbers (Mon=0).

    Accepts a JSON array of names, a list, or a comma-separated string. Names
    are matched on their first three letters; unknown names are ignored.
    """
    if not value:
        return frozenset()
    items: Iterable
    if isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        text = str(value).strip()
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        items = parsed if isinstance(parsed, list) else text.split(",")

    days = set()
    for item in items:
        if isinstance(item, int) and 0 <= item <= 6:
            days.add(item)
            continue
        idx = _WEEKDAY_INDEX.get(str(item).strip()[:3].lower())
        if idx is not None:
            days.add(idx)
    return frozenset(days)


def parse_break_time(value) -> tuple[Optional[time], Optional[time]]:
    """`"12:00 pm - 01:00 pm"` or `"12:00-13:00"` -> (start, end)."""
    if not value:
        return None, None
    parts = _RANGE_SEPARATOR.split(" ".join(str(value).split()).strip())
    if len(parts) < 2:
        return None, None
    return parse_time_of_day(parts[0]), parse_time_of_day(parts[1])


def parse_day(value) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()[:10].replace("/", "-")
    try:
        return datetime.strptime(text, "%Y-%m-%d").date()
    except ValueError:
        return None


def weekday_names(days: Iterable[int]) -> list[str]:
    return [WEEKDAY_NAMES[d] for d in sorted(days)]


@dataclass(frozen=True)
class ShiftTemplate:
    template_id: Optional[str]
    shift_name: str
    project: str = ""
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    break_start: Optional[time] = None
    break_end: Optional[time] = None
    weekdays: frozenset = field(default_factory=frozenset)

    def is_workday(self, day: date) -> bool:
        return day.weekday() in self.weekdays


@dataclass(frozen=True)
class ScheduleAssignment:
    schedule_id: Optional[str]
    user_name: str
    shift_name: str
    employee_name: str = ""
    project: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    def covers(self, day: date) -> bool:
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True

    def overlaps(self, start: date, end: date) -> bool:
        if self.start_date and end < self.start_date:
            return False
        if self.end_date and start > self.end_date:
            return False
        return True


def active_assignment(
    assignments: Sequence[ScheduleAssignment], user_name: str, day: date
) -> Optional[ScheduleAssignment]:
    """Most recent assignment of the user covering `day` (list order is creation order)."""
    found = None
    for a in assignments:
        if a.user_name == user_name and a.covers(day):
            found = a
    return found


def match_template(
    assignment: Optional[ScheduleAssignment], templates: Sequence[ShiftTemplate]
) -> Optional[ShiftTemplate]:
    """Template with the assignment's shift name, preferring the same project."""
    if assignment is None:
        return None
    candidates = [t for t in templates if t.shift_name == assignment.shift_name]
    for t in candidates:
        if assignment.project and t.project == assignment.project:
            return t
    return candidates[0] if candidates else None
