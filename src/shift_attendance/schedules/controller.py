from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_iso_date
from ..common.responses import fail, json_endpoint, ok, request_payload
from ..common.timeparse import to_24h
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..users.guard import current_auth, role_required
from .model import weekday_names

WEBHOOK_FAILED = "Failed to send. Please try again."


def _template_dict(t) -> dict:
    return {
        "id": t.template_id,
        "name": t.shift_name,
        "projectName": t.project,
        "startTime": to_24h(t.start_time),
        "endTime": to_24h(t.end_time),
        "breakStart": to_24h(t.break_start),
        "breakEnd": to_24h(t.break_end),
        "weekdays": weekday_names(t.weekdays),
    }


def _assignment_dict(a) -> dict:
    return {
        "id": a.schedule_id,
        "userName": a.user_name,
        "employeeName": a.employee_name,
        "shiftName": a.shift_name,
        "projectName": a.project,
        "startDate": a.start_date.isoformat() if a.start_date else None,
        "endDate": a.end_date.isoformat() if a.end_date else None,
    }


def _optional_date(data: dict, key: str):
    value = (data.get(key) or "").strip()
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field=key) from None


def register(app: Flask, container: Container) -> None:
    def role() -> Role:
        return current_auth().current_user.role

    @app.route("/admin/templates", methods=["GET"], endpoint="admin_templates")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_templates():
        return ok(templates=[_template_dict(t) for t in container.schedule_service.list_templates()])

    @app.route("/admin/templates", methods=["POST"], endpoint="admin_templates_save")
    @app.route("/admin/templates/<template_id>", methods=["PUT"], endpoint="admin_templates_update")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_templates_save(template_id=None):
        data = request_payload()
        result = container.schedule_service.save_template(
            current_role=role(),
            template_id=template_id,
            name=data.get("name", ""),
            project=data.get("projectName", ""),
            start_time=data.get("startTime"),
            end_time=data.get("endTime"),
            break_start=data.get("breakStart"),
            break_end=data.get("breakEnd"),
            weekdays=data.get("weekdays") or [],
        )
        if not result.ok:
            return fail(WEBHOOK_FAILED, 502)
        return ok(message="Template saved")

    @app.route("/admin/templates/<template_id>", methods=["DELETE"], endpoint="admin_templates_delete")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_templates_delete(template_id):
        container.schedule_service.delete_template(current_role=role(), template_id=template_id)
        return ok(message="Template deleted")

    @app.route("/admin/schedules", methods=["GET"], endpoint="admin_schedules")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_schedules():
        # Newest first, like the admin table.
        assignments = list(container.schedule_service.list_assignments())[::-1]
        return ok(schedules=[_assignment_dict(a) for a in assignments])

    @app.route("/admin/schedules", methods=["POST"], endpoint="admin_schedules_assign")
    @app.route("/admin/schedules/<schedule_id>", methods=["PUT"], endpoint="admin_schedules_update")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_schedules_assign(schedule_id=None):
        data = request_payload()
        result = container.schedule_service.assign(
            current_role=role(),
            schedule_id=schedule_id,
            user_name=data.get("userName", ""),
            project=data.get("projectName", ""),
            template_id=data.get("shiftId", ""),
            start_date=_optional_date(data, "startDate"),
            end_date=_optional_date(data, "endDate"),
        )
        if not result.ok:
            return fail(WEBHOOK_FAILED, 502)
        return ok(message="Schedule assigned")

    @app.route("/admin/schedules/<schedule_id>", methods=["DELETE"], endpoint="admin_schedules_delete")
    @role_required(Role.ADMIN)
    @json_endpoint
    def admin_schedules_delete(schedule_id):
        container.schedule_service.delete_assignment(current_role=role(), schedule_id=schedule_id)
        return ok(message="Schedule deleted")
