from __future__ import annotations

import re
from contextlib import contextmanager
from typing import Any, Dict, List

from .connection import DatabaseConnection

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def quote_identifier(name: str) -> str:
    """Backtick-quote a table/column name (`user` is a reserved word in MySQL)."""
    if not _IDENTIFIER.match(name or ""):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f"`{name}`"
