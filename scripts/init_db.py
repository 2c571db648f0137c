from __future__ import annotations

import importlib

from dotenv import load_dotenv

from shift_attendance.config import get_settings_module
from shift_attendance.database.bootstrap import apply_schema, list_tables
from shift_attendance.database.connection import DBConfig, DatabaseConnection
from shift_attendance.logging_config import setup_logging


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    setup_logging(getattr(settings, "LOG_LEVEL", None))
    db_config = dict(settings.DB_CONFIG)

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    apply_schema(conn, db_config["database"])
    tables = list_tables(conn)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
