from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.record_store import Filter, RecordStore
from .model import UserAccount
from .repository import UserRepository


def _to_account(r: dict) -> UserAccount:
    return UserAccount(
        user_id=str(r.get("id")),
        name=r.get("name") or r.get("user_name") or "",
        user_name=r.get("user_name") or "",
        # Some rows carry a capitalized `Role` column.
        role=Role.from_stored(r.get("role") if r.get("role") is not None else r.get("Role")),
        password=r.get("password") or "",
        email=r.get("email"),
        phone=r.get("phone"),
        avatar=r.get("avatar"),
    )


class StoreUserRepository(UserRepository):
    def __init__(self, store: RecordStore):
        self._store = store

    def get_by_user_name(self, user_name: str) -> Optional[UserAccount]:
        rows = self._store.select("user", filters=[Filter.eq("user_name", user_name)])
        return _to_account(rows[0]) if rows else None

    def list_all(self) -> Sequence[UserAccount]:
        return [_to_account(r) for r in self._store.select("user", order_by="id")]
