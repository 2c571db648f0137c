from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used by the route guard."""

    ADMIN = "admin"
    EMPLOYEE = "employee"

    @classmethod
    def from_stored(cls, value) -> "Role":
        """Anything that is not literally 'admin' is an employee."""
        return cls.ADMIN if str(value or "").strip().lower() == "admin" else cls.EMPLOYEE


class ClockKind(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class ClockAction(str, Enum):
    """Actions an employee can trigger from the home screen."""

    CLOCK_IN = "clockIn"
    START_BREAK = "startBreak"
    END_BREAK = "endBreak"
    CLOCK_OUT = "clockOut"

    @property
    def needs_selfie(self) -> bool:
        return self in (ClockAction.CLOCK_IN, ClockAction.CLOCK_OUT)


class SessionPhase(str, Enum):
    NO_SESSION = "NoSession"
    ACTIVE_WORKING = "ActiveWorking"
    ACTIVE_ON_BREAK = "ActiveOnBreak"


class WebhookOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    TIMEOUT = "TIMEOUT"
