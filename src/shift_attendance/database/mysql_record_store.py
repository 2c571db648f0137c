from __future__ import annotations

from typing import Optional, Sequence

import mysql.connector

from ..core.exceptions import BackendError
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, quote_identifier
from .record_store import COLLECTIONS, Filter

_OPERATORS = {"eq": "=", "gte": ">=", "lte": "<="}


def _where(filters: Sequence[Filter]) -> tuple[str, list]:
    clauses: list[str] = []
    params: list[object] = []
    for f in filters:
        if f.op not in _OPERATORS:
            raise ValueError(f"Unsupported filter op: {f.op!r}")
        clauses.append(f"{quote_identifier(f.column)} {_OPERATORS[f.op]} %s")
        params.append(f.value)
    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params


class MySQLRecordStore:
    """RecordStore adapter over MySQL tables named after the collections."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _table(collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection!r}")
        return quote_identifier(collection)

    def select(self, collection, *, filters=(), order_by: Optional[str] = None, descending: bool = False) -> list[dict]:
        where, params = _where(filters)
        sql = f"SELECT * FROM {self._table(collection)}{where}"
        if order_by:
            sql += f" ORDER BY {quote_identifier(order_by)} {'DESC' if descending else 'ASC'}"
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(sql, tuple(params))
                return fetchall(cur)
        except mysql.connector.Error as e:
            raise BackendError(f"select {collection} failed: {e}") from e

    def insert(self, collection, values) -> dict:
        columns = ", ".join(quote_identifier(c) for c in values)
        placeholders = ", ".join(["%s"] * len(values))
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO {self._table(collection)} ({columns}) VALUES ({placeholders})",
                    tuple(values.values()),
                )
                row = dict(values)
                if cur.lastrowid:
                    row["id"] = int(cur.lastrowid)
                return row
        except mysql.connector.Error as e:
            raise BackendError(f"insert {collection} failed: {e}") from e

    def update(self, collection, values, *, filters) -> int:
        assignments = ", ".join(f"{quote_identifier(c)}=%s" for c in values)
        where, params = _where(filters)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"UPDATE {self._table(collection)} SET {assignments}{where}",
                    tuple(values.values()) + tuple(params),
                )
                return cur.rowcount
        except mysql.connector.Error as e:
            raise BackendError(f"update {collection} failed: {e}") from e

    def delete(self, collection, *, filters) -> int:
        where, params = _where(filters)
        if not where:
            raise ValueError("Refusing to delete without filters")
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(f"DELETE FROM {self._table(collection)}{where}", tuple(params))
                return cur.rowcount
        except mysql.connector.Error as e:
            raise BackendError(f"delete {collection} failed: {e}") from e
