from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

import structlog

from ..clock.repository import ClockEventRepository
from ..common.datetime_utils import now_local, week_range
from ..core.constants import PAIRING_WINDOW_HOURS
from ..core.enums import ClockKind
from ..core.exceptions import BackendError
from ..schedules.model import ScheduleAssignment, ShiftTemplate
from ..schedules.repository import ScheduleRepository
from .model import AttendanceEntry, WeeklySummary
from .reconciler import pair_events, summarize

log = structlog.get_logger(__name__)

# Clock-outs are read past the range end so a late clock-in still finds its pair.
_OUT_LOOKAHEAD = timedelta(days=PAIRING_WINDOW_HOURS // 24 + 1)


@dataclass(frozen=True)
class Baselines:
    schedules: Sequence[ScheduleAssignment] = ()
    templates: Sequence[ShiftTemplate] = ()
    lateness_enabled: bool = True


@dataclass(frozen=True)
class Timesheet:
    start: date
    end: date
    entries: Sequence[AttendanceEntry]
    summary: WeeklySummary
    lateness_enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "entries": [e.to_dict() for e in self.entries],
            "summary": self.summary.to_dict(),
            "latenessEnabled": self.lateness_enabled,
        }


class TimesheetService:
    """Reads raw clock events and reconciles them into entries."""

    def __init__(
        self,
        clock_events: ClockEventRepository,
        schedules: ScheduleRepository,
        *,
        tz_name: str = "UTC",
        clock: Callable[[], datetime] = now_local,
    ):
        self._events = clock_events
        self._schedules = schedules
        self._tz_name = tz_name
        self._clock = clock

    @property
    def tz_name(self) -> str:
        return self._tz_name

    def load_baselines(self) -> Baselines:
        try:
            return Baselines(
                schedules=tuple(self._schedules.list_assignments()),
                templates=tuple(self._schedules.list_templates()),
            )
        except BackendError as e:
            log.warning("baselines_unavailable", error=str(e))
            return Baselines(lateness_enabled=False)

    def load_events(self, start: date, end: date, *, user_name: Optional[str] = None):
        """Clock-ins dated in [start, end] and the clock-outs that may pair with them."""
        ins = self._events.list_between(ClockKind.CLOCK_IN, start=start, end=end, user_name=user_name)
        outs = self._events.list_between(ClockKind.CLOCK_OUT, start=start, end=end + _OUT_LOOKAHEAD, user_name=user_name)
        return ins, outs

    def reconcile(self, ins, outs, baselines: Baselines) -> list[AttendanceEntry]:
        return pair_events(
            ins,
            outs,
            schedules=baselines.schedules,
            templates=baselines.templates,
            lateness_enabled=baselines.lateness_enabled,
            tz_name=self._tz_name,
        )

    def entries_between(
        self,
        start: date,
        end: date,
        *,
        user_name: Optional[str] = None,
        baselines: Optional[Baselines] = None,
    ) -> list[AttendanceEntry]:
        baselines = baselines or self.load_baselines()
        ins, outs = self.load_events(start, end, user_name=user_name)
        entries = self.reconcile(ins, outs, baselines)
        return [e for e in entries if start <= e.work_date <= end]

    def timesheet(self, user_name: str, start: date, end: date) -> Timesheet:
        baselines = self.load_baselines()
        entries = self.entries_between(start, end, user_name=user_name, baselines=baselines)
        # Newest first for display.
        entries = sorted(entries, key=lambda e: e.clock_in_at, reverse=True)
        return Timesheet(
            start=start,
            end=end,
            entries=entries,
            summary=summarize(entries),
            lateness_enabled=baselines.lateness_enabled,
        )

    def current_week(self, user_name: str, today: Optional[date] = None) -> Timesheet:
        start, end = week_range(today or self._clock().date())
        return self.timesheet(user_name, start, end)
