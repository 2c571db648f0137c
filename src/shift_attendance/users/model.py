from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class UserAccount:
    """Row of the `user` collection."""

    user_id: str
    name: str
    user_name: str
    role: Role
    password: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None


@dataclass(frozen=True)
class SessionUser:
    """What we keep in client storage after login (never the credential)."""

    user_id: str
    name: str
    user_name: str
    role: Role
    email: Optional[str] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None

    def to_dict(self) -> dict:
        data = asdict(self)
        data["role"] = self.role.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SessionUser":
        return cls(
            user_id=str(data["user_id"]),
            name=str(data.get("name") or ""),
            user_name=str(data["user_name"]),
            role=Role.from_stored(data.get("role")),
            email=data.get("email"),
            phone=data.get("phone"),
            avatar=data.get("avatar"),
        )

    @classmethod
    def from_account(cls, account: UserAccount) -> "SessionUser":
        return cls(
            user_id=account.user_id,
            name=account.name or account.user_name,
            user_name=account.user_name,
            role=account.role,
            email=account.email,
            phone=account.phone,
            avatar=account.avatar,
        )
