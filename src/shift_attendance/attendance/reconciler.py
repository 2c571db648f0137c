"""Pair raw clock-in/clock-out events into attendance entries.

Each clock-in (oldest first) takes the earliest clock-out of the same user that
is strictly later, at most `PAIRING_WINDOW_HOURS` later, and not already taken
by an earlier clock-in. Unmatched clock-ins become open entries; unmatched
clock-outs are dropped. The function is pure: same events in, same entries out.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from ..clock.model import ClockEvent
from ..common.timeparse import format_time_12h, resolve_instant
from ..core.constants import DEFAULT_SHIFT_START, LATE_FLAG, PAIRING_WINDOW_HOURS
from ..schedules.model import ScheduleAssignment, ShiftTemplate, active_assignment, match_template
from .model import AttendanceEntry, WeeklySummary

PAIRING_WINDOW = timedelta(hours=PAIRING_WINDOW_HOURS)


def _floor_minutes(delta: timedelta) -> int:
    return int(delta.total_seconds() // 60)


def _event_instant(event: ClockEvent, tz_name: str) -> datetime:
    return resolve_instant(event.time_text, event.work_date, tz_name) or event.created_at


def _break_minutes(clock_in: ClockEvent, in_at: datetime, out_at: datetime, tz_name: str) -> int:
    start = resolve_instant(clock_in.break_start, clock_in.work_date, tz_name)
    end = resolve_instant(clock_in.break_end, clock_in.work_date, tz_name)
    if start is None or end is None:
        return 0
    if not (in_at <= start < end <= out_at):
        return 0
    return _floor_minutes(end - start)


def _baseline(
    clock_in: ClockEvent,
    schedules: Sequence[ScheduleAssignment],
    templates: Sequence[ShiftTemplate],
    default_start: time,
) -> datetime:
    assignment = active_assignment(schedules, clock_in.user_name, clock_in.work_date)
    template = match_template(assignment, templates)
    start = template.start_time if template and template.start_time else default_start
    return datetime.combine(clock_in.work_date, start)


def pair_events(
    clock_ins: Iterable[ClockEvent],
    clock_outs: Iterable[ClockEvent],
    *,
    schedules: Sequence[ScheduleAssignment] = (),
    templates: Sequence[ShiftTemplate] = (),
    default_start: time = DEFAULT_SHIFT_START,
    lateness_enabled: bool = True,
    tz_name: str = "UTC",
) -> list[AttendanceEntry]:
    ins = sorted(clock_ins, key=lambda e: (e.created_at, str(e.event_id or "")))

    outs_by_user: dict[str, list[ClockEvent]] = defaultdict(list)
    for co in sorted(clock_outs, key=lambda e: (e.created_at, str(e.event_id or ""))):
        outs_by_user[co.user_name].append(co)
    consumed: set[tuple[str, int]] = set()

    entries = []
    for ci in ins:
        match = None
        for idx, co in enumerate(outs_by_user.get(ci.user_name, ())):
            delta = co.created_at - ci.created_at
            if delta > PAIRING_WINDOW:
                break
            if delta <= timedelta(0) or (ci.user_name, idx) in consumed:
                continue
            consumed.add((ci.user_name, idx))
            match = co
            break

        in_at = _event_instant(ci, tz_name)
        out_at: Optional[datetime] = _event_instant(match, tz_name) if match else None

        worked = brk = 0
        if out_at is not None and out_at > in_at:
            brk = _break_minutes(ci, in_at, out_at, tz_name)
            worked = max(0, _floor_minutes(out_at - in_at) - brk)

        late = 0
        if lateness_enabled:
            late = max(0, _floor_minutes(in_at - _baseline(ci, schedules, templates, default_start)))

        entries.append(
            AttendanceEntry(
                entry_id=ci.event_id,
                user_name=ci.user_name,
                work_date=ci.work_date,
                clock_in=format_time_12h(in_at),
                clock_out=format_time_12h(out_at) if out_at else None,
                clock_in_at=in_at,
                clock_out_at=out_at,
                worked_minutes=worked,
                break_minutes=brk,
                late_minutes=late,
                flags=(LATE_FLAG,) if late > 0 else (),
                clock_in_id=ci.clock_in_id,
                clock_in_image=ci.image,
                clock_in_location=ci.location,
                clock_out_image=match.image if match else None,
                clock_out_location=match.location if match else None,
            )
        )
    return entries


def summarize(entries: Iterable[AttendanceEntry]) -> WeeklySummary:
    worked = brk = late = 0
    for e in entries:
        worked += e.worked_minutes
        brk += e.break_minutes
        late += e.late_minutes
    return WeeklySummary(total_worked=worked, total_break=brk, total_late=late)
