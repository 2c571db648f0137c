from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import UserAccount


class UserRepository(Protocol):
    """Read access to the `user` collection.

    Writes (registration, profile saves) go through webhooks, not here.
    """

    def get_by_user_name(self, user_name: str) -> Optional[UserAccount]:
        raise NotImplementedError

    def list_all(self) -> Sequence[UserAccount]:
        raise NotImplementedError
