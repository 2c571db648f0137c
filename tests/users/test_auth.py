from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash, generate_password_hash

from shift_attendance.core.constants import AUTH_USER_KEY
from shift_attendance.core.enums import Role
from shift_attendance.core.exceptions import AuthenticationError, BackendError, ValidationError
from shift_attendance.storage.local_storage import DictStorage
from shift_attendance.users.model import SessionUser
from shift_attendance.users.service import (
    INVALID_CREDENTIALS,
    AuthService,
    AuthSession,
    UserService,
    verify_password,
)
from shift_attendance.users.store_repository import StoreUserRepository


class UnreachableUsers:
    def get_by_user_name(self, user_name):
        raise BackendError("user table unavailable")


@pytest.fixture
def auth(store):
    return AuthService(StoreUserRepository(store))


@pytest.fixture
def users(store, webhook_client):
    return UserService(StoreUserRepository(store), webhook_client)


def registration(**changes):
    data = dict(
        full_name="Eve Santos",
        username="eve",
        phone="+63 912 345 6789",
        password="long-enough",
        confirm_password="long-enough",
    )
    data.update(changes)
    return data


def test_verify_password_handles_hashes_and_legacy_values():
    assert verify_password(generate_password_hash("pa55word"), "pa55word")
    assert not verify_password(generate_password_hash("pa55word"), "other")
    assert verify_password("plain-text", "plain-text")
    assert not verify_password("", "")


def test_employee_login_with_legacy_password(auth):
    user = auth.authenticate(" ana ", "secret123")

    assert user == SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE)


def test_admin_login_with_hashed_password(auth):
    user = auth.authenticate("boss", "admin-pass", Role.ADMIN)

    assert user.role == Role.ADMIN


@pytest.mark.parametrize(
    "username, password, role",
    [
        ("ana", "wrong-pass", Role.EMPLOYEE),
        ("nobody", "secret123", Role.EMPLOYEE),
        ("ana", "secret123", Role.ADMIN),
        ("boss", "admin-pass", Role.EMPLOYEE),
    ],
)
def test_login_failures_share_one_message(auth, username, password, role):
    with pytest.raises(AuthenticationError) as exc:
        auth.authenticate(username, password, role)

    assert str(exc.value) == INVALID_CREDENTIALS


@pytest.mark.parametrize("username, password, field", [("an", "secret123", "username"), ("ana", "12345", "password")])
def test_login_input_lengths(auth, username, password, field):
    with pytest.raises(ValidationError) as exc:
        auth.authenticate(username, password)

    assert exc.value.field == field


def test_auth_session_round_trip():
    storage = DictStorage()
    session = AuthSession(storage)
    user = SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE)

    session.login(user)
    assert session.current_user == user
    assert "password" not in storage.get(AUTH_USER_KEY)

    session.update_user(name="Ana Cruz", role="admin")
    assert session.current_user.name == "Ana Cruz"
    assert session.current_user.role == Role.EMPLOYEE

    session.logout()
    assert not session.is_authenticated


def test_corrupt_auth_user_is_dropped():
    storage = DictStorage({AUTH_USER_KEY: "{}"})

    assert AuthSession(storage).current_user is None
    assert storage.get(AUTH_USER_KEY) is None


def test_register_sends_hashed_password(users, webhook, clock):
    result = users.register(**registration(), now=clock())

    assert result.ok
    payload = webhook.payload()
    assert webhook.path() == "/webhook/registration"
    assert payload["username"] == "eve"
    assert payload["fullName"] == "Eve Santos"
    assert payload["createdAt"] == "2025-10-16T10:00:00"
    assert payload["password"] != "long-enough"
    assert check_password_hash(payload["password"], "long-enough")


def test_register_collects_field_errors(users, webhook):
    with pytest.raises(ValidationError) as exc:
        users.register(**registration(full_name=" ", phone="123", password="short", confirm_password="other"))

    assert set(exc.value.errors) == {"fullName", "phone", "password", "confirmPassword"}
    assert webhook.calls == []


def test_register_rejects_taken_username(users, webhook):
    with pytest.raises(ValidationError) as exc:
        users.register(**registration(username="ana"))

    assert exc.value.field == "username"
    assert webhook.calls == []


def test_register_continues_when_lookup_fails(webhook_client, webhook):
    service = UserService(UnreachableUsers(), webhook_client)

    assert service.register(**registration()).ok


def test_save_profile_updates_session_on_success(users, webhook):
    session = AuthSession(DictStorage())
    session.login(SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE))

    result = users.save_profile(session, name="Ana Cruz", phone="09123456789", password="newpass", confirm_password="newpass")

    assert result.ok
    assert webhook.path() == "/webhook/save"
    assert webhook.payload()["username"] == "ana"
    assert check_password_hash(webhook.payload()["password"], "newpass")
    assert session.current_user.name == "Ana Cruz"
    assert session.current_user.phone == "09123456789"


def test_save_profile_keeps_session_on_failure(users, webhook):
    webhook.body = "error"
    session = AuthSession(DictStorage())
    session.login(SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE))

    result = users.save_profile(session, name="Ana Cruz")

    assert not result.ok
    assert "password" not in webhook.payload()
    assert session.current_user.name == "Ana"


def test_save_profile_password_checks(users):
    session = AuthSession(DictStorage())
    session.login(SessionUser(user_id="1", name="Ana", user_name="ana", role=Role.EMPLOYEE))

    with pytest.raises(ValidationError):
        users.save_profile(session, name="Ana", password="abc", confirm_password="abd")
    with pytest.raises(ValidationError):
        users.save_profile(session, name="Ana", password="abc", confirm_password="abc")
    with pytest.raises(AuthenticationError):
        users.save_profile(AuthSession(DictStorage()), name="Ana")
