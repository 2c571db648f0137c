from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

import structlog

from ..common.datetime_utils import parse_timestamp
from ..core.enums import ClockKind
from ..database.record_store import Filter, RecordStore
from .model import ClockEvent
from .repository import ClockEventRepository

log = structlog.get_logger(__name__)

_TIME_COLUMN = {ClockKind.CLOCK_IN: "clockIn", ClockKind.CLOCK_OUT: "clockOut"}

# Covers any UTC offset between stored timestamps and business-local days.
_OFFSET_SLACK = timedelta(days=1)


def to_event(kind: ClockKind, r: dict, tz_name: str = "UTC") -> Optional[ClockEvent]:
    created_at = parse_timestamp(r.get("created_at"), tz_name)
    if created_at is None or not r.get("user_name"):
        log.warning("clock_row_skipped", kind=kind.value, row_id=r.get("id"))
        return None
    return ClockEvent(
        kind=kind,
        event_id=str(r["id"]) if r.get("id") is not None else None,
        user_name=str(r["user_name"]),
        created_at=created_at,
        time_text=r.get(_TIME_COLUMN[kind]) or None,
        image=r.get("image") or None,
        location=r.get("location") or None,
        break_start=r.get("startBreak") or None,
        break_end=r.get("endBreak") or None,
        clock_in_id=r.get("clockIn_id") or None,
    )


class StoreClockEventRepository(ClockEventRepository):
    def __init__(self, store: RecordStore, *, tz_name: str = "UTC"):
        self._store = store
        self._tz_name = tz_name

    def list_between(self, kind, *, start: date, end: date, user_name: Optional[str] = None) -> Sequence[ClockEvent]:
        """Events whose business-local `created_at` falls on a day in [start, end].

        Stored timestamps may be UTC, so the store read is widened and the
        bounds are applied after conversion to `tz_name`.
        """
        lower = datetime.combine(start, time.min)
        upper = datetime.combine(end, time.max)
        filters = [
            Filter.gte("created_at", lower - _OFFSET_SLACK),
            Filter.lte("created_at", upper + _OFFSET_SLACK),
        ]
        if user_name is not None:
            filters.append(Filter.eq("user_name", user_name))

        rows = self._store.select(kind.value, filters=filters, order_by="created_at")
        events = [to_event(kind, r, self._tz_name) for r in rows]
        return [e for e in events if e is not None and lower <= e.created_at <= upper]
