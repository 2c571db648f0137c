from __future__ import annotations

import json
from typing import Optional, Sequence

from ..common.timeparse import parse_time_of_day, to_12h_lower
from ..database.record_store import Filter, RecordStore
from .model import (
    ScheduleAssignment,
    ShiftTemplate,
    parse_break_time,
    parse_day,
    parse_days,
    weekday_names,
)
from .repository import ScheduleRepository


def _to_template(r: dict) -> ShiftTemplate:
    break_start, break_end = parse_break_time(r.get("break_time"))
    return ShiftTemplate(
        template_id=str(r["id"]) if r.get("id") is not None else None,
        shift_name=r.get("shift_name") or "",
        project=r.get("project") or "",
        start_time=parse_time_of_day(r.get("start_time")),
        end_time=parse_time_of_day(r.get("end_time")),
        break_start=break_start,
        break_end=break_end,
        weekdays=parse_days(r.get("days")),
    )


def _to_assignment(r: dict) -> ScheduleAssignment:
    return ScheduleAssignment(
        schedule_id=str(r["id"]) if r.get("id") is not None else None,
        user_name=r.get("user_name") or "",
        employee_name=r.get("employee_name") or "",
        shift_name=r.get("shift_name") or "",
        project=r.get("project") or "",
        start_date=parse_day(r.get("start_date")),
        end_date=parse_day(r.get("end_date")),
    )


def break_time_text(template: ShiftTemplate) -> str:
    return f"{to_12h_lower(template.break_start) or ''} - {to_12h_lower(template.break_end) or ''}"


def template_row(template: ShiftTemplate) -> dict:
    return {
        "shift_name": template.shift_name,
        "project": template.project or "",
        "start_time": to_12h_lower(template.start_time),
        "end_time": to_12h_lower(template.end_time),
        "break_time": break_time_text(template),
        "days": json.dumps(weekday_names(template.weekdays)),
    }


class StoreScheduleRepository(ScheduleRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def list_assignments(self, *, user_name: Optional[str] = None) -> Sequence[ScheduleAssignment]:
        filters = [Filter.eq("user_name", user_name)] if user_name else []
        rows = self._store.select("schedule", filters=filters, order_by="id")
        return [_to_assignment(r) for r in rows]

    def delete_assignment(self, *, schedule_id: str) -> bool:
        return self._store.delete("schedule", filters=[Filter.eq("id", _id_value(schedule_id))]) > 0

    def list_templates(self) -> Sequence[ShiftTemplate]:
        return [_to_template(r) for r in self._store.select("template", order_by="id")]

    def get_template(self, *, template_id: str) -> Optional[ShiftTemplate]:
        rows = self._store.select("template", filters=[Filter.eq("id", _id_value(template_id))])
        return _to_template(rows[0]) if rows else None

    def update_template(self, template: ShiftTemplate) -> bool:
        filters = [Filter.eq("id", _id_value(template.template_id))]
        return self._store.update("template", template_row(template), filters=filters) > 0

    def delete_template(self, *, template_id: str) -> bool:
        return self._store.delete("template", filters=[Filter.eq("id", _id_value(template_id))]) > 0


def _id_value(value):
    """Row ids are integers in both adapters; keep non-numeric ids as given."""
    text = str(value)
    return int(text) if text.isdigit() else text
