"""Record-store port.

The reconciliation and report code only needs row-filtered reads and writes
against a handful of named collections (`user`, `clock_in`, `clock_out`,
`schedule`, `template`). Adapters implement `RecordStore`; services never see a
transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Protocol, Sequence

COLLECTIONS = ("user", "clock_in", "clock_out", "schedule", "template")


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    @classmethod
    def eq(cls, column: str, value: Any) -> "Filter":
        return cls(column, "eq", value)

    @classmethod
    def gte(cls, column: str, value: Any) -> "Filter":
        return cls(column, "gte", value)

    @classmethod
    def lte(cls, column: str, value: Any) -> "Filter":
        return cls(column, "lte", value)


class RecordStore(Protocol):
    def select(
        self,
        collection: str,
        *,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
    ) -> list[dict]:
        raise NotImplementedError

    def insert(self, collection: str, values: dict) -> dict:
        raise NotImplementedError

    def update(self, collection: str, values: dict, *, filters: Sequence[Filter]) -> int:
        raise NotImplementedError

    def delete(self, collection: str, *, filters: Sequence[Filter]) -> int:
        raise NotImplementedError


def _comparable(value: Any) -> Any:
    """Normalize dates/timestamps (objects or ISO strings) for range filters."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _comparable(datetime.fromisoformat(text))
        except ValueError:
            return value
    return value


def _sort_key(value: Any) -> tuple:
    # None sorts last
    if value is None:
        return (1, 0)
    return (0, _comparable(value))


def _matches(row: dict, flt: Filter) -> bool:
    if flt.column not in row or row[flt.column] is None:
        return False
    left = row[flt.column]
    if flt.op == "eq":
        return left == flt.value
    left, right = _comparable(left), _comparable(flt.value)
    try:
        if flt.op == "gte":
            return left >= right
        if flt.op == "lte":
            return left <= right
    except TypeError:
        return False
    raise ValueError(f"Unsupported filter op: {flt.op!r}")


class InMemoryRecordStore:
    """Dict-backed store used in tests and the `memory` backend."""

    def __init__(self, seed: Optional[dict[str, Iterable[dict]]] = None):
        self._rows: dict[str, list[dict]] = {name: [] for name in COLLECTIONS}
        self._next_id = 1
        for name, rows in (seed or {}).items():
            for row in rows:
                self.insert(name, row)

    def _table(self, collection: str) -> list[dict]:
        if collection not in self._rows:
            raise ValueError(f"Unknown collection: {collection!r}")
        return self._rows[collection]

    def select(self, collection, *, filters=(), order_by=None, descending=False) -> list[dict]:
        rows = [dict(r) for r in self._table(collection) if all(_matches(r, f) for f in filters)]
        if order_by:
            rows.sort(key=lambda r: _sort_key(r.get(order_by)), reverse=descending)
        return rows

    def insert(self, collection, values) -> dict:
        row = dict(values)
        if row.get("id") is None:
            row["id"] = self._next_id
        if isinstance(row["id"], int):
            self._next_id = max(self._next_id, row["id"] + 1)
        self._table(collection).append(row)
        return dict(row)

    def update(self, collection, values, *, filters) -> int:
        count = 0
        for row in self._table(collection):
            if all(_matches(row, f) for f in filters):
                row.update(values)
                count += 1
        return count

    def delete(self, collection, *, filters) -> int:
        table = self._table(collection)
        keep = [r for r in table if not all(_matches(r, f) for f in filters)]
        removed = len(table) - len(keep)
        table[:] = keep
        return removed
