"""Live "who is working now" view for admins.

Today's clock-ins that no clock-out has paired with, each with its running
duration (an open break is subtracted) and lateness against 09:00.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional, Sequence

import structlog

from ..attendance.reconciler import pair_events
from ..attendance.service import TimesheetService
from ..common.datetime_utils import now_local
from ..common.timeparse import resolve_instant
from ..core.constants import PLACEHOLDER
from ..users.repository import UserRepository

log = structlog.get_logger(__name__)

WORKING = "working"
ON_BREAK = "break"


def format_minutes(minutes: int) -> str:
    hours, rest = divmod(max(0, minutes), 60)
    if hours == 0:
        return f"{rest}m"
    if rest == 0:
        return f"{hours}h"
    return f"{hours}h {rest}m"


def _minutes(later: datetime, earlier: datetime) -> int:
    return max(0, int((later - earlier).total_seconds() // 60))


@dataclass(frozen=True)
class PresentEmployee:
    entry_id: Optional[str]
    user_name: str
    name: str
    clock_in: str
    status: str
    location: str
    worked_minutes: int
    late_minutes: int = 0
    avatar: Optional[str] = None

    @property
    def is_late(self) -> bool:
        return self.late_minutes > 0

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "userName": self.user_name,
            "name": self.name,
            "clockIn": self.clock_in,
            "status": self.status,
            "location": self.location,
            "duration": format_minutes(self.worked_minutes),
            "workedMinutes": self.worked_minutes,
            "lateBy": self.late_minutes or None,
            "avatar": self.avatar,
        }


@dataclass(frozen=True)
class Dashboard:
    day: date
    employees: Sequence[PresentEmployee]

    @property
    def present(self) -> int:
        return len(self.employees)

    @property
    def late(self) -> int:
        return sum(1 for e in self.employees if e.is_late)

    @property
    def on_break(self) -> int:
        return sum(1 for e in self.employees if e.status == ON_BREAK)

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "stats": {"present": self.present, "late": self.late, "onBreak": self.on_break},
            "employees": [e.to_dict() for e in self.employees],
        }


class DashboardService:
    def __init__(
        self,
        users: UserRepository,
        timesheets: TimesheetService,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._users = users
        self._timesheets = timesheets
        self._clock = clock

    def live(self, employee_query: str = "") -> Dashboard:
        now = self._clock()
        today = now.date()
        tz_name = self._timesheets.tz_name

        ins, outs = self._timesheets.load_events(today, today)
        by_id = {e.event_id: e for e in ins if e.event_id is not None}
        accounts = {u.user_name: u for u in self._users.list_all()}
        query = (employee_query or "").strip().lower()

        employees = []
        for entry in pair_events(ins, outs, tz_name=tz_name):
            if not entry.is_open or entry.work_date != today:
                continue
            event = by_id.get(entry.entry_id)
            account = accounts.get(entry.user_name)
            name = (account.name if account else "") or entry.user_name
            if query and query not in name.lower():
                continue

            worked = _minutes(now, entry.clock_in_at)
            status = WORKING
            if event is not None and event.break_start and not event.break_end:
                status = ON_BREAK
                started = resolve_instant(event.break_start, event.work_date, tz_name)
                if started is not None:
                    worked = max(0, worked - _minutes(now, started))

            employees.append(
                PresentEmployee(
                    entry_id=entry.entry_id,
                    user_name=entry.user_name,
                    name=name,
                    clock_in=entry.clock_in,
                    status=status,
                    location=entry.clock_in_location or PLACEHOLDER,
                    worked_minutes=worked,
                    late_minutes=entry.late_minutes,
                    avatar=(account.avatar if account else None) or entry.clock_in_image,
                )
            )

        log.debug("dashboard_built", day=today.isoformat(), present=len(employees))
        return Dashboard(day=today, employees=employees)
