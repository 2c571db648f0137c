from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ClockKind
from .model import ClockEvent


class ClockEventRepository(Protocol):
    def list_between(
        self,
        kind: ClockKind,
        *,
        start: date,
        end: date,
        user_name: Optional[str] = None,
    ) -> Sequence[ClockEvent]:
        """Events whose `created_at` falls on a date in [start, end], oldest first."""

        raise NotImplementedError
