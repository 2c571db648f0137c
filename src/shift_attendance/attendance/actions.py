"""Clock actions for one client.

Breaks go straight to the clock-in webhook, tagged with the session id from
the clock-in. Clock-in and clock-out first park a pending action, then complete
through the selfie/location capture. Local session state only moves once the
workflow confirms with "done"; otherwise the pending action is kept for retry.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import structlog

from ..common.datetime_utils import now_local
from ..common.timeparse import format_time_12h
from ..core.constants import (
    BREAK_COMPLETED_KEY,
    CLOCK_IN_ID_KEY,
    LAST_ADDRESS_KEY,
    LAST_GEO_KEY,
    PENDING_ACTION_KEY,
    SELFIE_KEY,
)
from ..core.enums import ClockAction, Role, SessionPhase, WebhookOutcome
from ..core.exceptions import AuthorizationError, BackendError, SessionStateError, ValidationError
from ..geofence.gate import SelfieGate
from ..geofence.geo import Geofence, LocationProvider
from ..geofence.geocode import PlaceNameResolver
from ..schedules.service import ScheduleService
from ..storage.local_storage import KeyValueStorage
from ..users.model import SessionUser
from ..webhooks.client import WebhookClient, WebhookCommand, WebhookResult
from .session_store import AttendanceSessionStore, format_elapsed

log = structlog.get_logger(__name__)

NO_CLOCK_IN = "No active clock-in session found. Please clock in first."
BREAK_FAILED = "Failed to process break action. Please try again."
AWAITING_CONFIRMATION = "Waiting for server confirmation... Please try again if this persists."
NETWORK_ERROR = "Network error. Please check your connection and try again."

_ALLOWED_FROM = {
    ClockAction.CLOCK_IN: (SessionPhase.NO_SESSION,),
    ClockAction.START_BREAK: (SessionPhase.ACTIVE_WORKING,),
    ClockAction.END_BREAK: (SessionPhase.ACTIVE_ON_BREAK,),
    ClockAction.CLOCK_OUT: (SessionPhase.ACTIVE_WORKING, SessionPhase.ACTIVE_ON_BREAK),
}
_PENDING_KEYS = (PENDING_ACTION_KEY, SELFIE_KEY, LAST_GEO_KEY, LAST_ADDRESS_KEY)


@dataclass(frozen=True)
class ActionOutcome:
    action: ClockAction
    status: str  # "done", "capture_required" or "failed"
    message: Optional[str] = None
    warning: Optional[str] = None
    place: Optional[str] = None
    result: Optional[WebhookResult] = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    def to_dict(self) -> dict:
        return {
            "success": self.ok,
            "action": self.action.value,
            "status": self.status,
            "message": self.message,
            "warning": self.warning,
            "place": self.place,
        }


def _failure_message(result: WebhookResult) -> str:
    if result.outcome == WebhookOutcome.TIMEOUT or result.status_code is None:
        return NETWORK_ERROR
    return AWAITING_CONFIRMATION


class ClockActionService:
    def __init__(
        self,
        storage: KeyValueStorage,
        webhooks: WebhookClient,
        schedules: ScheduleService,
        places: PlaceNameResolver,
        *,
        gate: Optional[SelfieGate] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._storage = storage
        self._webhooks = webhooks
        self._schedules = schedules
        self._places = places
        self._gate = gate or SelfieGate()
        self._clock = clock
        self.session = AttendanceSessionStore(storage, clock=clock)

    def _check(self, user: SessionUser, action: ClockAction) -> None:
        if user.role != Role.EMPLOYEE:
            raise AuthorizationError("Only employees can perform this action.")
        if self.session.phase not in _ALLOWED_FROM[action]:
            raise SessionStateError(f"Cannot {action.value} while {self.session.phase.value}")

    def status(self) -> dict:
        state = self.session.state
        return {
            "phase": state.phase.value,
            "sessionId": state.session.session_id if state.session else None,
            "startedAt": state.session.started_at.isoformat() if state.session else None,
            "elapsed": format_elapsed(self.session.elapsed_working()),
            "breakMinutes": int(self.session.total_break().total_seconds() // 60),
            "breakCompleted": self._storage.get(BREAK_COMPLETED_KEY) == "1",
            "pendingAction": self._storage.get(PENDING_ACTION_KEY),
            "currentClockInId": self._storage.get(CLOCK_IN_ID_KEY),
        }

    def request(self, user: SessionUser, action: ClockAction) -> ActionOutcome:
        self._check(user, action)

        if action.needs_selfie:
            self._storage.set(PENDING_ACTION_KEY, action.value)
            return ActionOutcome(action=action, status="capture_required")

        clock_in_id = self._storage.get(CLOCK_IN_ID_KEY)
        if not clock_in_id:
            raise ValidationError(NO_CLOCK_IN)

        payload = {
            "clockIn_id": clock_in_id,
            "action": action.value,
            "time": format_time_12h(self._clock()),
            "employee": {"name": user.name, "username": user.user_name},
        }
        result = self._webhooks.send(
            WebhookCommand(endpoint="clock_in", payload=payload, idempotency_key=f"{clock_in_id}:{action.value}")
        )
        if not result.ok:
            log.warning("break_action_failed", action=action.value, outcome=result.outcome.value)
            return ActionOutcome(action=action, status="failed", message=BREAK_FAILED, result=result)

        if action == ClockAction.START_BREAK:
            self.session.start_break()
        else:
            self.session.end_break()
            self._storage.set(BREAK_COMPLETED_KEY, "1")
        return ActionOutcome(action=action, status="done", result=result)

    def cancel_pending(self) -> None:
        for key in _PENDING_KEYS:
            self._storage.remove(key)

    def _shift_details(self, user: SessionUser, now: datetime) -> Optional[dict]:
        try:
            return self._schedules.shift_details(user.user_name, now.date())
        except BackendError as e:
            log.warning("shift_details_unavailable", user_name=user.user_name, error=str(e))
            return None

    def submit_capture(
        self,
        user: SessionUser,
        provider: LocationProvider,
        fence: Geofence,
        selfie: Optional[str] = None,
    ) -> ActionOutcome:
        pending = self._storage.get(PENDING_ACTION_KEY)
        if not pending:
            raise ValidationError("No clock action is waiting for a selfie")
        try:
            action = ClockAction(pending)
        except ValueError:
            self.cancel_pending()
            raise ValidationError("No clock action is waiting for a selfie")
        self._check(user, action)

        decision = self._gate.evaluate(provider, fence, selfie)
        place = self._places.label_for(decision.fix)
        self._storage.set(LAST_GEO_KEY, json.dumps(decision.fix.to_dict()))
        self._storage.set(LAST_ADDRESS_KEY, place)

        now = self._clock()
        clock_in_id = None
        if action == ClockAction.CLOCK_IN:
            # Reused on retry so the workflow can drop duplicates.
            clock_in_id = self._storage.get(CLOCK_IN_ID_KEY) or str(uuid.uuid4())
            self._storage.set(CLOCK_IN_ID_KEY, clock_in_id)

        payload = {
            "name": place,
            "time": format_time_12h(now),
            "image": decision.selfie,
            "location": decision.fix.to_dict(),
            "employee": {"name": user.name, "username": user.user_name, "user_name": user.user_name},
            "shift": self._shift_details(user, now),
            "action": action.value,
        }
        if clock_in_id:
            payload["clockIn_id"] = clock_in_id

        endpoint = "clock_out" if action == ClockAction.CLOCK_OUT else "clock_in"
        key = clock_in_id or f"{self._storage.get(CLOCK_IN_ID_KEY) or ''}:{action.value}"
        result = self._webhooks.send(WebhookCommand(endpoint=endpoint, payload=payload, idempotency_key=key))

        if not result.ok:
            log.warning("clock_action_failed", action=action.value, outcome=result.outcome.value)
            return ActionOutcome(
                action=action,
                status="failed",
                message=_failure_message(result),
                warning=decision.warning,
                place=place,
                result=result,
            )

        if action == ClockAction.CLOCK_IN:
            self.session.clock_in(location=place, session_id=clock_in_id)
            self._storage.remove(BREAK_COMPLETED_KEY)
        else:
            self.session.clock_out()
            self._storage.remove(BREAK_COMPLETED_KEY)
            self._storage.remove(CLOCK_IN_ID_KEY)
        self.cancel_pending()
        return ActionOutcome(action=action, status="done", warning=decision.warning, place=place, result=result)
