from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.constants import LATE_FLAG


@dataclass(frozen=True)
class AttendanceEntry:
    """One work session derived from a clock-in and its paired clock-out.

    Never stored; recomputed from the raw clock events on every read.
    """

    entry_id: Optional[str]
    user_name: str
    work_date: date
    clock_in: str
    clock_out: Optional[str]
    clock_in_at: datetime
    clock_out_at: Optional[datetime]
    worked_minutes: int = 0
    break_minutes: int = 0
    late_minutes: int = 0
    flags: tuple = ()
    clock_in_id: Optional[str] = None
    clock_in_image: Optional[str] = None
    clock_in_location: Optional[str] = None
    clock_out_image: Optional[str] = None
    clock_out_location: Optional[str] = None

    @property
    def is_late(self) -> bool:
        return LATE_FLAG in self.flags

    @property
    def is_open(self) -> bool:
        return self.clock_out_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "userName": self.user_name,
            "date": self.work_date.isoformat(),
            "clockIn": self.clock_in,
            "clockOut": self.clock_out,
            "workedMinutes": self.worked_minutes,
            "breakMinutes": self.break_minutes,
            "lateMinutes": self.late_minutes,
            "flags": list(self.flags),
            "clockInId": self.clock_in_id,
            "clockInImage": self.clock_in_image,
            "clockInLocation": self.clock_in_location,
            "clockOutImage": self.clock_out_image,
            "clockOutLocation": self.clock_out_location,
        }


@dataclass(frozen=True)
class WeeklySummary:
    total_worked: int = 0
    total_break: int = 0
    total_late: int = 0

    def to_dict(self) -> dict:
        return {
            "totalWorkedMinutes": self.total_worked,
            "totalBreakMinutes": self.total_break,
            "totalLateMinutes": self.total_late,
        }
