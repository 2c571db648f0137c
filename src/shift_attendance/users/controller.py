from __future__ import annotations

from datetime import timedelta

from flask import Flask, session

from ..common.responses import fail, json_endpoint, ok, request_payload
from ..container import Container
from ..core.enums import Role
from ..storage.local_storage import FlaskSessionStorage, get_or_create_device_id
from .guard import LOGIN_PATH, current_auth, home_for, login_required

CONFIRMATION_PENDING = "Waiting for server confirmation... Please try again if this persists."


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=7)

    @app.route("/login", methods=["POST"], endpoint="login")
    @json_endpoint
    def login():
        data = request_payload()
        role = Role.ADMIN if str(data.get("role") or "").lower() == Role.ADMIN.value else Role.EMPLOYEE
        user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""), role)

        session.permanent = bool(data.get("remember"))
        current_auth().login(user)
        get_or_create_device_id(FlaskSessionStorage(session))
        return ok(user=user.to_dict(), redirect=home_for(user.role))

    @app.route("/logout", methods=["POST"], endpoint="logout")
    def logout():
        current_auth().logout()
        return ok(redirect=LOGIN_PATH)

    @app.route("/api/session", methods=["GET"], endpoint="session_info")
    def session_info():
        user = current_auth().current_user
        if user is None:
            return ok(authenticated=False, user=None, redirect=LOGIN_PATH)
        return ok(authenticated=True, user=user.to_dict(), redirect=home_for(user.role))

    @app.route("/api/device", methods=["GET"], endpoint="device_id")
    def device_id():
        return ok(deviceId=get_or_create_device_id(FlaskSessionStorage(session)))

    @app.route("/register", methods=["POST"], endpoint="register")
    @json_endpoint
    def register_employee():
        data = request_payload()
        result = container.user_service.register(
            full_name=data.get("fullName", ""),
            username=data.get("username", ""),
            phone=data.get("phone", ""),
            password=data.get("password", ""),
            confirm_password=data.get("confirmPassword", ""),
        )
        if not result.ok:
            return fail(CONFIRMATION_PENDING, 502)
        return ok(message="Registration submitted", redirect=LOGIN_PATH)

    @app.route("/profile", methods=["GET"], endpoint="profile")
    @login_required
    def profile():
        return ok(user=current_auth().current_user.to_dict())

    @app.route("/profile", methods=["POST"], endpoint="profile_save")
    @login_required
    @json_endpoint
    def profile_save():
        data = request_payload()
        auth = current_auth()
        result = container.user_service.save_profile(
            auth,
            name=data.get("name", ""),
            phone=data.get("phone"),
            avatar=data.get("avatar"),
            password=data.get("password", ""),
            confirm_password=data.get("confirmPassword", ""),
        )
        if not result.ok:
            return fail(CONFIRMATION_PENDING, 502)
        return ok(message="Profile saved successfully.", user=auth.current_user.to_dict())
