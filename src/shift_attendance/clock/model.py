from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import ClockKind


@dataclass(frozen=True)
class ClockEvent:
    """Raw clock-in or clock-out record as written by the clock workflow.

    `created_at` is business-local wall-clock time. `time_text` is the
    locally formatted time of day captured at the moment of the action
    ("09:05 AM"). Break boundaries only travel on clock-in records.
    """

    kind: ClockKind
    event_id: Optional[str]
    user_name: str
    created_at: datetime
    time_text: Optional[str] = None
    image: Optional[str] = None
    location: Optional[str] = None
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    clock_in_id: Optional[str] = None

    @property
    def work_date(self) -> date:
        return self.created_at.date()
