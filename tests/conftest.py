from __future__ import annotations

import base64
import io
import json
from datetime import date, datetime, timedelta

import httpx
import pytest
from PIL import Image
from werkzeug.security import generate_password_hash

from shift_attendance.attendance.service import TimesheetService
from shift_attendance.clock.store_repository import StoreClockEventRepository
from shift_attendance.database.record_store import InMemoryRecordStore
from shift_attendance.schedules.store_repository import StoreScheduleRepository
from shift_attendance.webhooks.client import WebhookClient

WEBHOOK_BASE = "http://webhooks.test/webhook"


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class WebhookRecorder:
    """MockTransport handler that records requests and answers with a fixed reply."""

    def __init__(self, body: str = "Done", status: int = 200):
        self.body = body
        self.status = status
        self.calls: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return httpx.Response(self.status, text=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def payload(self, index: int = -1) -> dict:
        return json.loads(self.calls[index].content)

    def path(self, index: int = -1) -> str:
        return self.calls[index].url.path


@pytest.fixture
def fixed_now():
    return datetime(2025, 10, 16, 10, 0, 0)


@pytest.fixture
def clock(fixed_now):
    return FixedClock(fixed_now)


@pytest.fixture
def webhook():
    return WebhookRecorder()


@pytest.fixture
def webhook_client(webhook):
    return WebhookClient(WEBHOOK_BASE, transport=webhook.transport, max_retries=0)


def seed_rows() -> dict:
    """Week of 2025-10-13 (Mon) .. 2025-10-19 (Sun).

    ana works Mon and Tue (late on Tue) on a Mon-Fri schedule, ben has one
    unscheduled day, dan is scheduled but never clocks in, cara is inactive.
    """
    return {
        "user": [
            {"id": 1, "name": "Ana", "user_name": "ana", "password": "secret123", "role": "employee"},
            {"id": 2, "name": "Ben", "user_name": "ben", "password": "secret123", "role": "employee"},
            {"id": 3, "name": "Cara", "user_name": "cara", "password": "secret123", "role": "employee"},
            {"id": 4, "name": "Dan", "user_name": "dan", "password": "secret123", "role": "employee"},
            {
                "id": 5,
                "name": "Boss",
                "user_name": "boss",
                "password": generate_password_hash("admin-pass"),
                "role": "admin",
            },
        ],
        "template": [
            {
                "id": 1,
                "shift_name": "Day",
                "project": "HQ",
                "start_time": "09:00 am",
                "end_time": "06:00 pm",
                "break_time": "12:00 pm - 01:00 pm",
                "days": json.dumps(["Mon", "Tue", "Wed", "Thu", "Fri"]),
            },
        ],
        "schedule": [
            {
                "id": 1,
                "user_name": "ana",
                "employee_name": "Ana",
                "shift_name": "Day",
                "project": "HQ",
                "start_date": "2025-10-01",
                "end_date": None,
            },
            {
                "id": 2,
                "user_name": "dan",
                "employee_name": "Dan",
                "shift_name": "Day",
                "project": "HQ",
                "start_date": "2025-10-13",
                "end_date": "2025-10-31",
            },
        ],
        "clock_in": [
            {
                "id": 1,
                "clockIn_id": "s-1",
                "user_name": "ana",
                "created_at": datetime(2025, 10, 13, 9, 0),
                "clockIn": "09:00 AM",
                "startBreak": "12:00 PM",
                "endBreak": "01:00 PM",
            },
            {
                "id": 2,
                "clockIn_id": "s-2",
                "user_name": "ana",
                "created_at": datetime(2025, 10, 14, 9, 15),
                "clockIn": "09:15 AM",
            },
            {
                "id": 3,
                "clockIn_id": "s-3",
                "user_name": "ben",
                "created_at": datetime(2025, 10, 14, 9, 0),
                "clockIn": "09:00 AM",
            },
        ],
        "clock_out": [
            {"id": 1, "clockIn_id": "s-1", "user_name": "ana", "created_at": datetime(2025, 10, 13, 18, 0), "clockOut": "06:00 PM"},
            {"id": 2, "clockIn_id": "s-2", "user_name": "ana", "created_at": datetime(2025, 10, 14, 17, 15), "clockOut": "05:15 PM"},
            {"id": 3, "clockIn_id": "s-3", "user_name": "ben", "created_at": datetime(2025, 10, 14, 17, 0), "clockOut": "05:00 PM"},
        ],
    }


@pytest.fixture
def seed():
    return seed_rows()


@pytest.fixture
def store(seed):
    return InMemoryRecordStore(seed)


@pytest.fixture
def week():
    return date(2025, 10, 13), date(2025, 10, 19)


@pytest.fixture
def selfie():
    """Small PNG selfie as the camera page posts it."""
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), (200, 150, 120)).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


@pytest.fixture
def timesheets(store, clock):
    return TimesheetService(StoreClockEventRepository(store), StoreScheduleRepository(store), clock=clock)
