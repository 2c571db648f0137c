from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AttendanceEntry
from ..users.model import UserAccount


@dataclass(frozen=True)
class ReportRow:
    user_id: str
    user_name: str
    employee: str
    project: str
    days_worked: int = 0
    total_hours: float = 0.0
    late_count: int = 0
    absences: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "userName": self.user_name,
            "employee": self.employee,
            "project": self.project,
            "daysWorked": self.days_worked,
            "totalHours": self.total_hours,
            "lateCount": self.late_count,
            "absences": self.absences,
        }


@dataclass(frozen=True)
class Report:
    start: date
    end: date
    rows: Sequence[ReportRow]
    entries: Sequence[AttendanceEntry] = field(default=(), repr=False)


@dataclass(frozen=True)
class UserDetail:
    user: UserAccount
    start: date
    end: date
    entries: Sequence[AttendanceEntry]
    project: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "user": {"id": self.user.user_id, "name": self.user.name, "userName": self.user.user_name},
            "project": self.project,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "entries": [e.to_dict() for e in self.entries],
        }
