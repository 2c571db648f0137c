from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ScheduleAssignment, ShiftTemplate


class ScheduleRepository(Protocol):
    def list_assignments(self, *, user_name: Optional[str] = None) -> Sequence[ScheduleAssignment]:
        """Assignments in creation order (oldest first)."""

        raise NotImplementedError

    def delete_assignment(self, *, schedule_id: str) -> bool:
        raise NotImplementedError

    def list_templates(self) -> Sequence[ShiftTemplate]:
        raise NotImplementedError

    def get_template(self, *, template_id: str) -> Optional[ShiftTemplate]:
        raise NotImplementedError

    def update_template(self, template: ShiftTemplate) -> bool:
        raise NotImplementedError

    def delete_template(self, *, template_id: str) -> bool:
        raise NotImplementedError
