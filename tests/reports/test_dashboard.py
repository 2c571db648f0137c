from __future__ import annotations

from datetime import date, datetime

import pytest

from shift_attendance.reports.dashboard import DashboardService, format_minutes
from shift_attendance.users.store_repository import StoreUserRepository


@pytest.fixture
def today_store(store):
    """2025-10-16, clock reads 10:00."""
    store.insert(
        "clock_in",
        {
            "id": 10,
            "user_name": "ana",
            "created_at": datetime(2025, 10, 16, 8, 50),
            "clockIn": "08:50 AM",
            "location": "HQ Lobby",
        },
    )
    store.insert(
        "clock_in",
        {
            "id": 11,
            "user_name": "ben",
            "created_at": datetime(2025, 10, 16, 9, 20),
            "clockIn": "09:20 AM",
            "startBreak": "09:40 AM",
            "image": "https://img.test/ben.png",
        },
    )
    store.insert("clock_in", {"id": 12, "user_name": "dan", "created_at": datetime(2025, 10, 16, 9, 0), "clockIn": "09:00 AM"})
    store.insert("clock_out", {"id": 12, "user_name": "dan", "created_at": datetime(2025, 10, 16, 9, 30), "clockOut": "09:30 AM"})
    store.insert("clock_in", {"id": 13, "user_name": "cara", "created_at": datetime(2025, 10, 15, 22, 0), "clockIn": "10:00 PM"})
    return store


@pytest.fixture
def dashboard(today_store, timesheets, clock):
    return DashboardService(StoreUserRepository(today_store), timesheets, clock=clock)


def test_lists_only_people_still_clocked_in_today(dashboard):
    board = dashboard.live()

    assert board.day == date(2025, 10, 16)
    assert [e.user_name for e in board.employees] == ["ana", "ben"]


def test_running_duration_and_status(dashboard):
    ana, ben = dashboard.live().employees

    assert ana.status == "working"
    assert ana.worked_minutes == 70
    assert ana.late_minutes == 0
    assert ana.location == "HQ Lobby"
    assert ana.name == "Ana"

    assert ben.status == "break"
    assert ben.worked_minutes == 20
    assert ben.late_minutes == 20
    assert ben.location == "—"
    assert ben.avatar == "https://img.test/ben.png"


def test_stats(dashboard):
    stats = dashboard.live().to_dict()["stats"]

    assert stats == {"present": 2, "late": 1, "onBreak": 1}


def test_name_filter(dashboard):
    board = dashboard.live("BE")

    assert [e.user_name for e in board.employees] == ["ben"]
    assert board.to_dict()["employees"][0]["duration"] == "20m"


def test_format_minutes():
    assert format_minutes(45) == "45m"
    assert format_minutes(120) == "2h"
    assert format_minutes(135) == "2h 15m"
