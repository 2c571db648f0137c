"""Client-local persisted keys.

Each client (browser) keeps a few named string values between requests: the
authenticated identity, the attendance session state, a pending clock action,
the captured selfie/geo payload awaiting pickup, and a device identifier. The
values are plain strings; JSON encoding is the caller's business.
"""

from __future__ import annotations

import uuid
from typing import MutableMapping, Optional, Protocol

from ..core.constants import DEVICE_ID_KEY


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class DictStorage:
    """In-process storage (tests, CLI use)."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class FlaskSessionStorage:
    """Storage backed by the signed Flask session cookie of the current request."""

    def __init__(self, session: MutableMapping, *, namespace: str = "local"):
        self._session = session
        self._namespace = namespace

    def _bucket(self) -> dict:
        return dict(self._session.get(self._namespace) or {})

    def get(self, key: str) -> Optional[str]:
        return self._bucket().get(key)

    def set(self, key: str, value: str) -> None:
        bucket = self._bucket()
        bucket[key] = str(value)
        self._session[self._namespace] = bucket

    def remove(self, key: str) -> None:
        bucket = self._bucket()
        if key in bucket:
            del bucket[key]
            self._session[self._namespace] = bucket


def get_or_create_device_id(storage: KeyValueStorage) -> str:
    device_id = storage.get(DEVICE_ID_KEY)
    if not device_id:
        device_id = str(uuid.uuid4())
        storage.set(DEVICE_ID_KEY, device_id)
    return device_id
