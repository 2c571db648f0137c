from __future__ import annotations

import hmac
import json
from dataclasses import replace
from datetime import datetime
from typing import Optional

import structlog
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_local
from ..common.validators import is_valid_phone, require_min_length
from ..core.constants import AUTH_USER_KEY
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, BackendError, ValidationError
from ..storage.local_storage import KeyValueStorage
from ..webhooks.client import WebhookClient, WebhookCommand, WebhookResult
from .model import SessionUser
from .repository import UserRepository

log = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"
_HASH_PREFIXES = ("pbkdf2:", "scrypt:")


def verify_password(stored: str, given: str) -> bool:
    """Check a stored credential: werkzeug hashes or legacy plain values."""
    if not stored:
        return False
    if stored.startswith(_HASH_PREFIXES):
        try:
            return check_password_hash(stored, given)
        except ValueError:
            return False
    return hmac.compare_digest(stored.encode("utf-8"), given.encode("utf-8"))


class AuthSession:
    """Current identity for one client, persisted under `authUser`."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    @property
    def current_user(self) -> Optional[SessionUser]:
        raw = self._storage.get(AUTH_USER_KEY)
        if not raw:
            return None
        try:
            return SessionUser.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            log.warning("auth_user_corrupt")
            self._storage.remove(AUTH_USER_KEY)
            return None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def login(self, user: SessionUser) -> None:
        self._storage.set(AUTH_USER_KEY, json.dumps(user.to_dict()))

    def logout(self) -> None:
        self._storage.remove(AUTH_USER_KEY)

    def update_user(self, **changes) -> Optional[SessionUser]:
        user = self.current_user
        if not user:
            return None
        allowed = {k: v for k, v in changes.items() if k in {"name", "email", "avatar", "phone"}}
        user = replace(user, **allowed)
        self.login(user)
        return user


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str, role: Role = Role.EMPLOYEE) -> SessionUser:
        username = (username or "").strip()
        require_min_length(username, "username", 3, "Please enter a valid username (min 3 characters)")
        require_min_length(password or "", "password", 6, "Please enter your password (min 6 characters)")

        account = self._users.get_by_user_name(username)
        if not account or not verify_password(account.password, password):
            raise AuthenticationError(INVALID_CREDENTIALS)

        # The selected login mode must match the stored role; same generic message.
        if account.role != role:
            raise AuthenticationError(INVALID_CREDENTIALS)

        return SessionUser.from_account(account)


class UserService:
    """Use cases: employee registration and profile saves (both via webhooks)."""

    def __init__(self, users: UserRepository, webhooks: WebhookClient):
        self._users = users
        self._webhooks = webhooks

    def register(
        self,
        *,
        full_name: str,
        username: str,
        phone: str,
        password: str,
        confirm_password: str,
        now: Optional[datetime] = None,
    ) -> WebhookResult:
        errors: dict[str, str] = {}
        if not (full_name or "").strip():
            errors["fullName"] = "Full name is required"
        if len((username or "").strip()) < 3:
            errors["username"] = "Username must be at least 3 characters"
        if not is_valid_phone(phone):
            errors["phone"] = "Please enter a valid phone number"
        if len((password or "").strip()) < 8:
            errors["password"] = "Password must be at least 8 characters"
        if password != confirm_password:
            errors["confirmPassword"] = "Passwords do not match"
        if errors:
            raise ValidationError("Please fix the highlighted fields", errors=errors)

        username = username.strip()
        try:
            existing = self._users.get_by_user_name(username)
        except BackendError as e:
            # A failed uniqueness read does not block registration; the workflow rejects duplicates.
            log.warning("username_check_failed", username=username, error=str(e))
            existing = None
        if existing:
            raise ValidationError("Username already exists", field="username")

        now = now or now_local()
        return self._webhooks.send(
            WebhookCommand(
                endpoint="registration",
                payload={
                    "fullName": full_name.strip(),
                    "username": username,
                    "phone": phone,
                    "password": generate_password_hash(password),
                    "createdAt": now.isoformat(),
                },
            )
        )

    def save_profile(
        self,
        auth: AuthSession,
        *,
        name: str,
        phone: Optional[str] = None,
        avatar: Optional[str] = None,
        password: str = "",
        confirm_password: str = "",
    ) -> WebhookResult:
        user = auth.current_user
        if not user:
            raise AuthenticationError("Not signed in")
        if password or confirm_password:
            if password != confirm_password:
                raise ValidationError("Passwords do not match.", field="confirmPassword")
            if len(password) < 6:
                raise ValidationError("Password must be at least 6 characters.", field="password")

        payload = {"name": name, "username": user.user_name, "phone": phone, "avatar": avatar}
        if password:
            payload["password"] = generate_password_hash(password)

        result = self._webhooks.send(WebhookCommand(endpoint="save", payload=payload))
        if result.ok:
            auth.update_user(name=name, phone=phone, avatar=avatar)
        return result
