from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Optional, Sequence

import structlog

from ..attendance.service import Baselines, TimesheetService
from ..common.datetime_utils import iter_dates, month_range, now_local
from ..core.constants import PLACEHOLDER
from ..core.exceptions import ValidationError
from ..schedules.model import active_assignment, match_template
from ..users.repository import UserRepository
from .model import Report, ReportRow, UserDetail

log = structlog.get_logger(__name__)


def round_half_up(value: float, places: int = 1) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _name_matches(name: str, query: str) -> bool:
    query = (query or "").strip().lower()
    return not query or query in (name or "").lower()


def displayed_rows(rows: Iterable[ReportRow], employee_query: str = "") -> list[ReportRow]:
    """Rows shown and exported: someone who did nothing in the window is left out."""
    return [
        r
        for r in rows
        if not (r.days_worked == 0 and r.total_hours == 0) and _name_matches(r.employee, employee_query)
    ]


def _is_scheduled_workday(baselines: Baselines, user_name: str, day: date) -> bool:
    assignment = active_assignment(baselines.schedules, user_name, day)
    template = match_template(assignment, baselines.templates)
    return template is not None and template.is_workday(day)


class ReportService:
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

    def default_range(self, today: Optional[date] = None) -> tuple[date, date]:
        return month_range(today or self._clock().date())

    def build_report(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        employee_query: str = "",
        today: Optional[date] = None,
    ) -> Report:
        today = today or self._clock().date()
        if start is None or end is None:
            start, end = self.default_range(today)
        if end < start:
            raise ValidationError("End date must not be before start date", field="end")

        baselines = self._timesheets.load_baselines()
        ins, outs = self._timesheets.load_events(start, end)
        entries = [e for e in self._timesheets.reconcile(ins, outs, baselines) if start <= e.work_date <= end]

        active = {a.user_name for a in baselines.schedules if a.user_name and a.overlaps(start, end)}
        active.update(e.user_name for e in ins)
        active.update(e.user_name for e in outs if e.work_date <= end)

        by_day: dict[tuple[str, date], list] = defaultdict(list)
        for e in entries:
            by_day[(e.user_name, e.work_date)].append(e)

        rows: list[ReportRow] = []
        for user in self._users.list_all():
            if user.user_name not in active or not _name_matches(user.name or user.user_name, employee_query):
                continue

            days_worked = minutes = late_count = absences = 0
            for day in iter_dates(start, end):
                if day > today:
                    continue
                day_entries = by_day.get((user.user_name, day))
                if day_entries:
                    days_worked += 1
                    minutes += sum(e.worked_minutes for e in day_entries)
                    if any(e.is_late for e in day_entries):
                        late_count += 1
                elif _is_scheduled_workday(baselines, user.user_name, day):
                    absences += 1

            own = [a for a in baselines.schedules if a.user_name == user.user_name]
            rows.append(
                ReportRow(
                    user_id=user.user_id,
                    user_name=user.user_name,
                    employee=user.name or user.user_name,
                    project=(own[-1].project if own else "") or PLACEHOLDER,
                    days_worked=days_worked,
                    total_hours=round_half_up(minutes / 60, 1),
                    late_count=late_count,
                    absences=absences,
                )
            )

        log.debug("report_built", start=start.isoformat(), end=end.isoformat(), rows=len(rows))
        return Report(start=start, end=end, rows=rows, entries=entries)

    def user_detail(self, user_name: str, start: Optional[date] = None, end: Optional[date] = None) -> UserDetail:
        user = self._users.get_by_user_name(user_name)
        if user is None:
            raise ValidationError("Employee not found", field="userName")
        if start is None or end is None:
            start, end = self.default_range()

        baselines = self._timesheets.load_baselines()
        entries = self._timesheets.entries_between(start, end, user_name=user_name, baselines=baselines)
        own: Sequence = [a for a in baselines.schedules if a.user_name == user_name]
        return UserDetail(
            user=user,
            start=start,
            end=end,
            entries=sorted(entries, key=lambda e: e.clock_in_at),
            project=own[-1].project if own else None,
        )
