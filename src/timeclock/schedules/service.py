from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..users.repository import EmployeeRepository
from ..users.service import require_management
from .model import ShiftAssignment
from .repository import ScheduleRepository


class ScheduleService:
    """Use case: assign shift templates to employees per work date."""

    def __init__(self, schedules: ScheduleRepository, shifts: ShiftRepository, employees: EmployeeRepository):
        self._schedules = schedules
        self._shifts = shifts
        self._employees = employees

    def assign(
        self,
        *,
        current_role: Role,
        organization_id: int,
        user_id: int,
        work_date: date,
        shift_id: int,
        note: Optional[str] = None,
    ) -> int:
        require_management(current_role)

        employee = self._employees.get_by_id(int(user_id))
        if not employee or employee.organization_id != int(organization_id):
            raise ValidationError("Empleado no válido")
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift or shift.organization_id != int(organization_id):
            raise ValidationError("Turno no válido")

        note = note.strip() if note else None
        return self._schedules.upsert(
            organization_id=int(organization_id),
            user_id=employee.user_id,
            work_date=work_date,
            shift_id=shift.shift_id,
            note=note,
        )

    def unassign(self, *, current_role: Role, organization_id: int, assignment_id: int) -> None:
        require_management(current_role)

        assignment = self._schedules.get_by_id(int(assignment_id))
        if not assignment or assignment.organization_id != int(organization_id):
            raise NotFoundError("Asignación no encontrada")
        if not self._schedules.delete(assignment_id=assignment.assignment_id):
            raise ValidationError("No se pudo eliminar la asignación")

    def list_assignments(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
    ) -> Sequence[ShiftAssignment]:
        if end < start:
            raise ValidationError("Rango de fechas inválido")
        return self._schedules.list_range(organization_id=int(organization_id), start=start, end=end, user_id=user_id)

    def effective_shift(self, *, user_id: int, work_date: date, fallback_shift_id: Optional[int]) -> Optional[Shift]:
        """Assigned shift of the day, else the employee's default shift."""
        assignment = self._schedules.get_for_user_and_date(user_id=int(user_id), work_date=work_date)
        if assignment:
            return self._shifts.get_by_id(assignment.shift_id)
        if fallback_shift_id:
            return self._shifts.get_by_id(int(fallback_shift_id))
        return None
