from __future__ import annotations

from flask import Flask, session

from ..common.responses import date_arg, fail, json_endpoint, ok, request_payload
from ..container import Container
from ..core.enums import ClockAction, Role
from ..core.exceptions import ValidationError
from ..geofence.geo import ReportedLocationProvider
from ..storage.local_storage import FlaskSessionStorage
from ..users.guard import current_auth, role_required

SELFIE_PATH = "/employee/selfie"


def register(app: Flask, container: Container) -> None:
    def actions():
        return container.clock_actions(FlaskSessionStorage(session))

    def outcome_response(outcome):
        body = outcome.to_dict()
        if outcome.status == "capture_required":
            body["redirect"] = SELFIE_PATH
        if not outcome.ok:
            return fail(outcome.message or "Action failed", 502, **{k: v for k, v in body.items() if k not in ("success", "message")})
        return ok(**{k: v for k, v in body.items() if k != "success"})

    @app.route("/employee/status", methods=["GET"], endpoint="employee_status")
    @role_required(Role.EMPLOYEE)
    @json_endpoint
    def employee_status():
        user = current_auth().current_user
        shift = container.schedule_service.shift_details(user.user_name, container.clock().date())
        return ok(session=actions().status(), shift=shift)

    @app.route("/employee/actions/<action>", methods=["POST"], endpoint="employee_action")
    @role_required(Role.EMPLOYEE)
    @json_endpoint
    def employee_action(action: str):
        try:
            clock_action = ClockAction(action)
        except ValueError:
            raise ValidationError(f"Unknown action: {action}") from None
        outcome = actions().request(current_auth().current_user, clock_action)
        return outcome_response(outcome)

    @app.route(SELFIE_PATH, methods=["POST"], endpoint="employee_selfie")
    @role_required(Role.EMPLOYEE)
    @json_endpoint
    def employee_selfie():
        data = request_payload()
        provider = ReportedLocationProvider.from_payload(data.get("location"), now=container.clock())
        outcome = actions().submit_capture(
            current_auth().current_user,
            provider,
            container.geofence,
            selfie=data.get("image") or None,
        )
        return outcome_response(outcome)

    @app.route(SELFIE_PATH, methods=["DELETE"], endpoint="employee_selfie_cancel")
    @role_required(Role.EMPLOYEE)
    def employee_selfie_cancel():
        actions().cancel_pending()
        return ok()

    @app.route("/employee/timesheet", methods=["GET"], endpoint="employee_timesheet")
    @role_required(Role.EMPLOYEE)
    @json_endpoint
    def employee_timesheet():
        user = current_auth().current_user
        start, end = date_arg("start"), date_arg("end")
        if start and end:
            sheet = container.timesheet_service.timesheet(user.user_name, start, end)
        else:
            sheet = container.timesheet_service.current_week(user.user_name)
        return ok(timesheet=sheet.to_dict())
