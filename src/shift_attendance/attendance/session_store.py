"""Client-local attendance session state.

    NoSession --clock_in--> ActiveWorking --start_break--> ActiveOnBreak
    ActiveOnBreak --end_break--> ActiveWorking
    ActiveWorking / ActiveOnBreak --clock_out--> NoSession

The state lives in the client's key/value storage under `attendanceStateV1`
and is written after every transition. It is presentation state only; the
authoritative records are the clock events written by the webhooks.

HTTP clients read elapsed time from `/employee/status`. `ElapsedTicker` is the
in-process API for long-lived callers (kiosk or CLI front ends) that want the
running HH:MM:SS pushed to them once a second.
"""

from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from ..common.datetime_utils import now_local
from ..core.constants import SESSION_STATE_KEY
from ..core.enums import SessionPhase
from ..core.exceptions import SessionStateError
from ..storage.local_storage import KeyValueStorage

log = structlog.get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _revive(value) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class OpenSession:
    session_id: str
    started_at: datetime
    location: Optional[str] = None


@dataclass(frozen=True)
class BreakPeriod:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return max(self.end - self.start, timedelta(0))


@dataclass(frozen=True)
class LocalSessionState:
    session: Optional[OpenSession] = None
    on_break: bool = False
    break_periods: tuple = ()
    current_break_start: Optional[datetime] = None

    @property
    def phase(self) -> SessionPhase:
        if self.session is None:
            return SessionPhase.NO_SESSION
        return SessionPhase.ACTIVE_ON_BREAK if self.on_break else SessionPhase.ACTIVE_WORKING

    def to_dict(self) -> dict:
        return {
            "currentSession": (
                {
                    "id": self.session.session_id,
                    "type": "clock_in",
                    "timestamp": _iso(self.session.started_at),
                    "location": self.session.location,
                }
                if self.session
                else None
            ),
            "isOnBreak": self.on_break,
            "breakPeriods": [{"startTime": _iso(p.start), "endTime": _iso(p.end)} for p in self.break_periods],
            "currentBreakStart": _iso(self.current_break_start),
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "LocalSessionState":
        current = raw.get("currentSession")
        session = None
        if current:
            session = OpenSession(
                session_id=str(current["id"]),
                started_at=_revive(current["timestamp"]),
                location=current.get("location"),
            )
        periods = tuple(
            BreakPeriod(start=_revive(p["startTime"]), end=_revive(p["endTime"]))
            for p in raw.get("breakPeriods") or []
            if p.get("startTime") and p.get("endTime")
        )
        return cls(
            session=session,
            on_break=bool(raw.get("isOnBreak")) and session is not None,
            break_periods=periods,
            current_break_start=_revive(raw.get("currentBreakStart")),
        )


class AttendanceSessionStore:
    def __init__(self, storage: KeyValueStorage, *, clock: Callable[[], datetime] = now_local):
        self._storage = storage
        self._clock = clock
        self._state = self._load()

    def _load(self) -> LocalSessionState:
        raw = self._storage.get(SESSION_STATE_KEY)
        if not raw:
            return LocalSessionState()
        try:
            return LocalSessionState.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("session_state_corrupt", error=str(e))
            return LocalSessionState()

    def _persist(self, state: LocalSessionState) -> LocalSessionState:
        self._state = state
        self._storage.set(SESSION_STATE_KEY, json.dumps(state.to_dict()))
        return state

    @property
    def state(self) -> LocalSessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    def _expect(self, *allowed: SessionPhase) -> None:
        if self.phase not in allowed:
            raise SessionStateError(f"Cannot perform this action while {self.phase.value}")

    def clock_in(self, location: Optional[str] = None, *, session_id: Optional[str] = None) -> LocalSessionState:
        self._expect(SessionPhase.NO_SESSION)
        session = OpenSession(session_id=session_id or str(uuid.uuid4()), started_at=self._clock(), location=location)
        return self._persist(LocalSessionState(session=session))

    def start_break(self) -> LocalSessionState:
        self._expect(SessionPhase.ACTIVE_WORKING)
        return self._persist(replace(self._state, on_break=True, current_break_start=self._clock()))

    def end_break(self) -> LocalSessionState:
        self._expect(SessionPhase.ACTIVE_ON_BREAK)
        state = self._state
        periods = state.break_periods
        if state.current_break_start is not None:
            periods = periods + (BreakPeriod(start=state.current_break_start, end=self._clock()),)
        return self._persist(replace(state, on_break=False, break_periods=periods, current_break_start=None))

    def clock_out(self) -> LocalSessionState:
        self._expect(SessionPhase.ACTIVE_WORKING, SessionPhase.ACTIVE_ON_BREAK)
        return self._persist(LocalSessionState())

    def total_break(self, now: Optional[datetime] = None) -> timedelta:
        """Completed break periods plus the running break, if any."""
        now = now or self._clock()
        state = self._state
        total = sum((p.duration for p in state.break_periods), timedelta(0))
        if state.on_break and state.current_break_start is not None:
            total += max(now - state.current_break_start, timedelta(0))
        return total

    def elapsed_working(self, now: Optional[datetime] = None) -> timedelta:
        now = now or self._clock()
        if self._state.session is None:
            return timedelta(0)
        elapsed = now - self._state.session.started_at - self.total_break(now)
        return max(elapsed, timedelta(0))


def format_elapsed(value: timedelta) -> str:
    """HH:MM:SS, hours not wrapped at 24."""
    seconds = max(0, int(value.total_seconds()))
    return f"{seconds // 3600:02d}:{seconds % 3600 // 60:02d}:{seconds % 60:02d}"


class ElapsedTicker:
    """Calls `callback(formatted_elapsed)` every `interval` seconds until cancelled."""

    def __init__(self, store: AttendanceSessionStore, callback: Callable[[str], None], *, interval: float = 1.0):
        self._store = store
        self._callback = callback
        self._interval = interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _run(self) -> None:
        while not self._stopped.wait(self._interval):
            self._callback(format_elapsed(self._store.elapsed_working()))

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="elapsed-ticker", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout=self._interval * 2)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
