from __future__ import annotations

import importlib
from typing import Optional

import httpx
import structlog
from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import build_container
from .database.bootstrap import apply_schema
from .database.connection import DBConfig, DatabaseConnection
from .database.record_store import RecordStore
from .logging_config import setup_logging
from .reports.controller import register as register_reports
from .schedules.controller import register as register_schedules
from .users.controller import register as register_users

log = structlog.get_logger(__name__)


def create_app(
    *,
    store: Optional[RecordStore] = None,
    webhook_transport: Optional[httpx.BaseTransport] = None,
    geocode_transport: Optional[httpx.BaseTransport] = None,
    clock=None,
) -> Flask:
    load_dotenv(override=False)
    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(getattr(settings, "LOG_LEVEL", None))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    db_config = getattr(settings, "DB_CONFIG")
    backend = getattr(settings, "STORE_BACKEND", "mysql")
    log.info(
        "app_starting",
        settings=settings_module,
        backend=backend,
        db=f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
    )

    # Schema bootstrap is idempotent (CREATE TABLE IF NOT EXISTS).
    if store is None and backend == "mysql" and bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)), db_config["database"])

    extra = {"clock": clock} if clock is not None else {}
    container = build_container(
        settings,
        store=store,
        webhook_transport=webhook_transport,
        geocode_transport=geocode_transport,
        **extra,
    )
    app.extensions["shift_attendance"] = container

    register_users(app, container)
    register_attendance(app, container)
    register_schedules(app, container)
    register_reports(app, container)

    return app
