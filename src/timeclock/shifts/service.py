from __future__ import annotations

from datetime import time
from typing import Sequence

from ..common.validators import require_bool, require_non_empty, require_range
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.service import require_management
from .model import Shift
from .repository import ShiftRepository


class ShiftService:
    """Use case: manage shift templates of an organization."""

    def __init__(self, shifts: ShiftRepository):
        self._shifts = shifts

    def list_shifts(self, *, organization_id: int) -> Sequence[Shift]:
        return self._shifts.list_for_organization(int(organization_id))

    def get(self, *, organization_id: int, shift_id: int) -> Shift:
        shift = self._shifts.get_by_id(int(shift_id))
        if not shift or shift.organization_id != int(organization_id):
            raise NotFoundError("Turno no encontrado")
        return shift

    def create_shift(
        self,
        *,
        current_role: Role,
        organization_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_minutes: int = 0,
        is_night_shift: bool = False,
    ) -> int:
        require_management(current_role)
        shift_name = require_non_empty(shift_name, "Nombre del turno")
        if start_time == end_time:
            raise ValidationError("La hora de inicio y fin no pueden ser iguales")
        break_minutes = int(require_range(break_minutes, "El descanso", 0, 720))
        if self._shifts.get_by_name(int(organization_id), shift_name):
            raise ValidationError("Ya existe un turno con ese nombre")

        probe = Shift(
            shift_id=0,
            organization_id=int(organization_id),
            shift_name=shift_name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
        )
        if probe.scheduled_minutes() <= 0:
            raise ValidationError("El descanso no puede cubrir todo el turno")

        return self._shifts.create(
            organization_id=int(organization_id),
            shift_name=shift_name,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            is_night_shift=require_bool(is_night_shift, "Turno nocturno") or probe.crosses_midnight,
        )
