from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import httpx

from .attendance.actions import ClockActionService
from .attendance.service import TimesheetService
from .clock.store_repository import StoreClockEventRepository
from .common.datetime_utils import now_local
from .database.connection import DBConfig, DatabaseConnection
from .database.mysql_record_store import MySQLRecordStore
from .database.record_store import InMemoryRecordStore, RecordStore
from .geofence.geo import Geofence
from .geofence.geocode import PlaceNameResolver
from .reports.dashboard import DashboardService
from .reports.service import ReportService
from .schedules.service import ScheduleService
from .schedules.store_repository import StoreScheduleRepository
from .storage.local_storage import KeyValueStorage
from .users.service import AuthService, UserService
from .users.store_repository import StoreUserRepository
from .webhooks.client import WebhookClient


@dataclass(frozen=True)
class Container:
    store: RecordStore
    conn: Optional[DatabaseConnection]

    users_repo: StoreUserRepository
    clock_repo: StoreClockEventRepository
    schedules_repo: StoreScheduleRepository

    webhooks: WebhookClient
    places: PlaceNameResolver
    geofence: Geofence

    auth_service: AuthService
    user_service: UserService
    schedule_service: ScheduleService
    timesheet_service: TimesheetService
    report_service: ReportService
    dashboard_service: DashboardService

    clock: Callable[[], datetime] = now_local

    def clock_actions(self, storage: KeyValueStorage) -> ClockActionService:
        """Clock actions bound to one client's storage."""
        return ClockActionService(storage, self.webhooks, self.schedule_service, self.places, clock=self.clock)


def build_container(
    settings,
    *,
    store: Optional[RecordStore] = None,
    webhook_transport: Optional[httpx.BaseTransport] = None,
    geocode_transport: Optional[httpx.BaseTransport] = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    conn = None
    if store is None:
        if getattr(settings, "STORE_BACKEND", "mysql") == "memory":
            store = InMemoryRecordStore()
        else:
            conn = DatabaseConnection.get_instance(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))
            store = MySQLRecordStore(conn)

    tz_name = getattr(settings, "TIMEZONE", "UTC")

    users_repo = StoreUserRepository(store)
    clock_repo = StoreClockEventRepository(store, tz_name=tz_name)
    schedules_repo = StoreScheduleRepository(store)

    webhooks = WebhookClient(
        getattr(settings, "WEBHOOK_BASE_URL"),
        endpoints=getattr(settings, "WEBHOOK_ENDPOINTS", None),
        timeout=float(getattr(settings, "WEBHOOK_TIMEOUT", 15.0)),
        max_retries=int(getattr(settings, "WEBHOOK_MAX_RETRIES", 1)),
        transport=webhook_transport,
    )
    places = PlaceNameResolver(getattr(settings, "REVERSE_GEOCODE_URL", ""), transport=geocode_transport)

    auth_service = AuthService(users_repo)
    user_service = UserService(users_repo, webhooks)
    schedule_service = ScheduleService(schedules_repo, users_repo, webhooks, clock=clock)
    timesheet_service = TimesheetService(clock_repo, schedules_repo, tz_name=tz_name, clock=clock)
    report_service = ReportService(users_repo, timesheet_service, clock=clock)
    dashboard_service = DashboardService(users_repo, timesheet_service, clock=clock)

    return Container(
        store=store,
        conn=conn,
        users_repo=users_repo,
        clock_repo=clock_repo,
        schedules_repo=schedules_repo,
        webhooks=webhooks,
        places=places,
        geofence=Geofence.from_settings(getattr(settings, "GEOFENCE")),
        auth_service=auth_service,
        user_service=user_service,
        schedule_service=schedule_service,
        timesheet_service=timesheet_service,
        report_service=report_service,
        dashboard_service=dashboard_service,
        clock=clock,
    )
