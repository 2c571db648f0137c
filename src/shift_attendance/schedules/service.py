from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable, Iterable, Optional, Sequence

import structlog

from ..common.datetime_utils import now_local, slash_date
from ..common.timeparse import parse_time_of_day, to_12h_lower
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.repository import UserRepository
from ..webhooks.client import WebhookClient, WebhookCommand, WebhookResult
from .model import ScheduleAssignment, ShiftTemplate, active_assignment, match_template, parse_days, weekday_names
from .repository import ScheduleRepository
from .store_repository import break_time_text

log = structlog.get_logger(__name__)


def _require_admin(role: Role) -> None:
    if role != Role.ADMIN:
        raise AuthorizationError("You do not have permission to manage schedules")


def _time_field(value, label: str, *, required: bool) -> Optional[time]:
    if value in (None, ""):
        if required:
            raise ValidationError(f"{label} is required", field=label)
        return None
    parsed = parse_time_of_day(value)
    if parsed is None:
        raise ValidationError(f"{label} is not a valid time", field=label)
    return parsed


def template_details(template: ShiftTemplate) -> dict:
    return {
        "startTime": to_12h_lower(template.start_time),
        "endTime": to_12h_lower(template.end_time),
        "breakTime": break_time_text(template),
        "weekdays": weekday_names(template.weekdays),
    }


class ScheduleService:
    """Shift templates and schedule assignments (admin area)."""

    def __init__(
        self,
        schedules: ScheduleRepository,
        users: UserRepository,
        webhooks: WebhookClient,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._schedules = schedules
        self._users = users
        self._webhooks = webhooks
        self._clock = clock

    def list_templates(self) -> Sequence[ShiftTemplate]:
        return self._schedules.list_templates()

    def list_assignments(self, *, user_name: Optional[str] = None) -> Sequence[ScheduleAssignment]:
        return self._schedules.list_assignments(user_name=user_name)

    def active_for(self, user_name: str, day: date) -> Optional[ScheduleAssignment]:
        return active_assignment(self._schedules.list_assignments(user_name=user_name), user_name, day)

    def template_for(self, assignment: Optional[ScheduleAssignment]) -> Optional[ShiftTemplate]:
        return match_template(assignment, self._schedules.list_templates())

    def save_template(
        self,
        *,
        current_role: Role,
        name: str,
        start_time,
        end_time,
        project: str = "",
        break_start=None,
        break_end=None,
        weekdays: Iterable = (),
        template_id: Optional[str] = None,
    ) -> WebhookResult:
        """Create (webhook only) or update (row + webhook) a shift template."""
        _require_admin(current_role)

        name = (name or "").strip()
        if not name:
            raise ValidationError("Shift name is required", field="name")
        template = ShiftTemplate(
            template_id=template_id,
            shift_name=name,
            project=(project or "").strip(),
            start_time=_time_field(start_time, "startTime", required=True),
            end_time=_time_field(end_time, "endTime", required=True),
            break_start=_time_field(break_start, "breakStart", required=False),
            break_end=_time_field(break_end, "breakEnd", required=False),
            weekdays=parse_days(list(weekdays)),
        )

        creating = template_id is None
        if not creating and not self._schedules.update_template(template):
            raise ValidationError("Template not found")

        payload = {
            "id": None if creating else template_id,
            "name": template.shift_name,
            "projectName": template.project,
            **template_details(template),
            "action": "create" if creating else "update",
            "createdAt": self._clock().isoformat(),
        }
        return self._webhooks.send(WebhookCommand(endpoint="template", payload=payload))

    def delete_template(self, *, current_role: Role, template_id: str) -> WebhookResult:
        _require_admin(current_role)

        template = self._schedules.get_template(template_id=template_id)
        if template is None or not self._schedules.delete_template(template_id=template_id):
            raise ValidationError("Template not found")

        payload = {
            "id": template_id,
            "name": template.shift_name,
            "projectName": template.project,
            **template_details(template),
            "action": "delete",
            "createdAt": self._clock().isoformat(),
        }
        result = self._webhooks.send(WebhookCommand(endpoint="template", payload=payload))
        if not result.ok:
            # The row is already gone; the notification is best effort.
            log.warning("template_delete_notify_failed", template_id=template_id, outcome=result.outcome.value)
        return result

    def assign(
        self,
        *,
        current_role: Role,
        user_name: str,
        project: str,
        template_id: str,
        start_date: Optional[date],
        end_date: Optional[date] = None,
        schedule_id: Optional[str] = None,
    ) -> WebhookResult:
        """Bind an employee to a shift template; persisted by the schedule workflow."""
        _require_admin(current_role)

        if not user_name or not (project or "").strip() or not template_id or not start_date:
            raise ValidationError("Please select employee, project, shift, and start date")
        if end_date and end_date < start_date:
            raise ValidationError("End date must not be before start date", field="endDate")

        employee = self._users.get_by_user_name(user_name)
        if employee is None:
            raise ValidationError("Employee not found", field="employee")
        template = self._schedules.get_template(template_id=template_id)
        if template is None:
            raise ValidationError("Shift template not found", field="shift")

        payload = {
            "id": schedule_id,
            "action": "create" if schedule_id is None else "update",
            "employeeName": employee.name,
            "user_name": employee.user_name,
            "projectName": project.strip(),
            "shiftName": template.shift_name,
            "startDate": slash_date(start_date),
            "endDate": slash_date(end_date),
            "details": template_details(template),
            "createdAt": self._clock().isoformat(),
        }
        return self._webhooks.send(WebhookCommand(endpoint="schedule", payload=payload))

    def delete_assignment(self, *, current_role: Role, schedule_id: str) -> None:
        _require_admin(current_role)

        if not self._schedules.delete_assignment(schedule_id=schedule_id):
            raise ValidationError("Failed to delete schedule")

    def shift_details(self, user_name: str, day: date) -> Optional[dict]:
        """Shift snapshot sent with clock actions; None when nothing resolves."""
        assignments = self._schedules.list_assignments(user_name=user_name)
        assignment = active_assignment(assignments, user_name, day) or (assignments[-1] if assignments else None)
        template = self.template_for(assignment)
        if assignment is None or template is None:
            return None
        return {
            "shiftName": assignment.shift_name,
            "projectName": assignment.project or template.project,
            **template_details(template),
        }
