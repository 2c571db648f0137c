from __future__ import annotations

import httpx
import pytest

from shift_attendance.attendance.actions import (
    AWAITING_CONFIRMATION,
    BREAK_FAILED,
    NETWORK_ERROR,
    NO_CLOCK_IN,
    ClockActionService,
)
from shift_attendance.core.constants import BREAK_COMPLETED_KEY, CLOCK_IN_ID_KEY, LAST_GEO_KEY, PENDING_ACTION_KEY
from shift_attendance.core.enums import ClockAction, Role, SessionPhase
from shift_attendance.core.exceptions import (
    AuthorizationError,
    GeolocationUnavailable,
    SessionStateError,
    ValidationError,
)
from shift_attendance.geofence.gate import OUTSIDE_WARNING
from shift_attendance.geofence.geo import Geofence, LocationFix, ReportedLocationProvider
from shift_attendance.geofence.geocode import PlaceNameResolver
from shift_attendance.schedules.service import ScheduleService
from shift_attendance.schedules.store_repository import StoreScheduleRepository
from shift_attendance.storage.local_storage import DictStorage
from shift_attendance.users.model import SessionUser
from shift_attendance.users.store_repository import StoreUserRepository
from shift_attendance.webhooks.client import WebhookClient


ANA = SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE)
WEBHOOK_BASE = "http://webhooks.test/webhook"
BOSS = SessionUser(user_id="5", name="Boss", user_name="boss", role=Role.ADMIN)
FENCE = Geofence(lat=10.0, lng=106.0, radius_m=100.0)
AT_OFFICE = ReportedLocationProvider(LocationFix(lat=10.0, lng=106.0))


@pytest.fixture
def storage():
    return DictStorage()


@pytest.fixture
def actions(store, storage, webhook_client, clock):
    schedules = ScheduleService(StoreScheduleRepository(store), StoreUserRepository(store), webhook_client, clock=clock)
    return ClockActionService(storage, webhook_client, schedules, PlaceNameResolver(""), clock=clock)


def clock_in(actions, selfie=None):
    actions.request(ANA, ClockAction.CLOCK_IN)
    return actions.submit_capture(ANA, AT_OFFICE, FENCE, selfie)


def test_clock_in_parks_action_until_capture(actions, storage, webhook):
    outcome = actions.request(ANA, ClockAction.CLOCK_IN)

    assert outcome.status == "capture_required"
    assert storage.get(PENDING_ACTION_KEY) == "clockIn"
    assert webhook.calls == []
    assert actions.session.phase == SessionPhase.NO_SESSION


def test_clock_in_capture_sends_webhook_and_opens_session(actions, storage, webhook, selfie):
    outcome = clock_in(actions, selfie)

    assert outcome.status == "done"
    assert outcome.warning is None
    assert outcome.place == "10.00000, 106.00000"
    assert webhook.path() == "/webhook/clockIn"

    payload = webhook.payload()
    assert payload["action"] == "clockIn"
    assert payload["time"] == "10:00 AM"
    assert payload["image"] == selfie
    assert payload["location"] == {"lat": 10.0, "lng": 106.0}
    assert payload["employee"] == {"name": "Ana", "username": "ana", "user_name": "ana"}
    assert payload["shift"]["shiftName"] == "Day"
    assert payload["shift"]["projectName"] == "HQ"
    assert payload["shift"]["startTime"] == "09:00 am"
    assert payload["clockIn_id"] == storage.get(CLOCK_IN_ID_KEY)

    assert actions.session.phase == SessionPhase.ACTIVE_WORKING
    assert actions.session.state.session.session_id == payload["clockIn_id"]
    assert storage.get(PENDING_ACTION_KEY) is None
    assert storage.get(LAST_GEO_KEY) is None


def test_unconfirmed_clock_in_keeps_pending_and_retry_reuses_id(actions, storage, webhook):
    webhook.body = "processing"
    actions.request(ANA, ClockAction.CLOCK_IN)

    first = actions.submit_capture(ANA, AT_OFFICE, FENCE)

    assert first.status == "failed"
    assert first.message == AWAITING_CONFIRMATION
    assert actions.session.phase == SessionPhase.NO_SESSION
    assert storage.get(PENDING_ACTION_KEY) == "clockIn"
    first_id = webhook.payload()["clockIn_id"]

    webhook.body = "Done"
    second = actions.submit_capture(ANA, AT_OFFICE, FENCE)

    assert second.status == "done"
    assert webhook.payload()["clockIn_id"] == first_id
    assert webhook.calls[-1].headers["Idempotency-Key"] == first_id


def test_network_failure_reports_connection_problem(store, storage, clock):
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    client = WebhookClient(WEBHOOK_BASE, transport=httpx.MockTransport(handler), max_retries=0)
    schedules = ScheduleService(StoreScheduleRepository(store), StoreUserRepository(store), client, clock=clock)
    actions = ClockActionService(storage, client, schedules, PlaceNameResolver(""), clock=clock)

    outcome = clock_in(actions)

    assert outcome.status == "failed"
    assert outcome.message == NETWORK_ERROR
    assert actions.session.phase == SessionPhase.NO_SESSION


def test_outside_geofence_is_allowed_with_warning(actions, webhook):
    actions.request(ANA, ClockAction.CLOCK_IN)
    far = ReportedLocationProvider(LocationFix(lat=10.00135, lng=106.0))

    outcome = actions.submit_capture(ANA, far, FENCE)

    assert outcome.status == "done"
    assert outcome.warning == OUTSIDE_WARNING
    assert len(webhook.calls) == 1


def test_missing_location_blocks_action(actions, storage, webhook):
    actions.request(ANA, ClockAction.CLOCK_IN)

    with pytest.raises(GeolocationUnavailable):
        actions.submit_capture(ANA, ReportedLocationProvider(None), FENCE)

    assert webhook.calls == []
    assert storage.get(PENDING_ACTION_KEY) == "clockIn"


def test_unreadable_selfie_is_rejected(actions, webhook):
    actions.request(ANA, ClockAction.CLOCK_IN)

    with pytest.raises(ValidationError) as exc:
        actions.submit_capture(ANA, AT_OFFICE, FENCE, "data:image/png;base64,bm90IGFuIGltYWdl")

    assert exc.value.field == "image"
    assert webhook.calls == []


def test_capture_without_pending_action(actions):
    with pytest.raises(ValidationError):
        actions.submit_capture(ANA, AT_OFFICE, FENCE)


def test_admins_cannot_clock(actions):
    with pytest.raises(AuthorizationError):
        actions.request(BOSS, ClockAction.CLOCK_IN)


def test_break_requires_clock_in_id(actions, webhook):
    actions.session.clock_in()

    with pytest.raises(ValidationError) as exc:
        actions.request(ANA, ClockAction.START_BREAK)

    assert str(exc.value) == NO_CLOCK_IN
    assert webhook.calls == []


def test_break_cycle(actions, storage, webhook, clock):
    clock_in(actions)
    session_id = storage.get(CLOCK_IN_ID_KEY)
    clock.advance(hours=2)

    started = actions.request(ANA, ClockAction.START_BREAK)

    assert started.status == "done"
    assert actions.session.phase == SessionPhase.ACTIVE_ON_BREAK
    assert webhook.path() == "/webhook/clockIn"
    assert webhook.payload() == {
        "clockIn_id": session_id,
        "action": "startBreak",
        "time": "12:00 PM",
        "employee": {"name": "Ana", "username": "ana"},
    }
    assert webhook.calls[-1].headers["Idempotency-Key"] == f"{session_id}:startBreak"

    clock.advance(minutes=30)
    actions.request(ANA, ClockAction.END_BREAK)

    assert actions.session.phase == SessionPhase.ACTIVE_WORKING
    assert storage.get(BREAK_COMPLETED_KEY) == "1"
    assert actions.status()["breakMinutes"] == 30


def test_failed_break_leaves_state(actions, webhook):
    clock_in(actions)
    webhook.status = 500

    outcome = actions.request(ANA, ClockAction.START_BREAK)

    assert outcome.status == "failed"
    assert outcome.message == BREAK_FAILED
    assert actions.session.phase == SessionPhase.ACTIVE_WORKING


def test_break_not_allowed_before_clock_in(actions):
    with pytest.raises(SessionStateError):
        actions.request(ANA, ClockAction.START_BREAK)


def test_clock_out_goes_to_clock_out_endpoint(actions, storage, webhook, clock):
    clock_in(actions)
    clock.advance(hours=8)
    actions.request(ANA, ClockAction.CLOCK_OUT)

    outcome = actions.submit_capture(ANA, AT_OFFICE, FENCE)

    assert outcome.status == "done"
    assert webhook.path() == "/webhook/ClockOut"
    assert webhook.payload()["action"] == "clockOut"
    assert webhook.payload()["time"] == "06:00 PM"
    assert "clockIn_id" not in webhook.payload()
    assert actions.session.phase == SessionPhase.NO_SESSION
    assert storage.get(CLOCK_IN_ID_KEY) is None


def test_status_reports_running_session(actions, clock):
    clock_in(actions)
    clock.advance(hours=1, minutes=2, seconds=3)

    status = actions.status()

    assert status["phase"] == "ActiveWorking"
    assert status["elapsed"] == "01:02:03"
    assert status["pendingAction"] is None
