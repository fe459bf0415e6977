from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import format_minutes
from ..common.logging import get_logger
from ..common.validators import require_non_empty
from ..core.enums import Role, TimesheetStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..users.service import require_management
from .model import Timesheet
from .repository import TimesheetRepository

logger = get_logger(__name__)

EXPORT_COLUMNS = [
    "work_date",
    "employee_code",
    "employee_name",
    "first_check_in",
    "last_check_out",
    "scheduled_hours",
    "worked_hours",
    "break_minutes",
    "overtime_minutes",
    "night_minutes",
    "late_minutes",
    "early_departure_minutes",
    "status",
    "review_note",
]


def _parse_status(value) -> TimesheetStatus:
    try:
        return TimesheetStatus(value)
    except ValueError:
        raise ValidationError("Estado de timesheet inválido")


class TimesheetService:
    """Use case: review consolidated timesheets (approve, reject, lock)."""

    def __init__(self, timesheets: TimesheetRepository):
        self._timesheets = timesheets

    def list_timesheets(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        status: Optional[str] = None,
        user_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> Sequence[Timesheet]:
        if end < start:
            raise ValidationError("Rango de fechas inválido")
        return self._timesheets.list_range(
            organization_id=int(organization_id),
            start=start,
            end=end,
            status=_parse_status(status) if status else None,
            user_id=user_id,
            branch_id=branch_id,
        )

    def stats(self, *, organization_id: int, start: date, end: date, branch_id: Optional[int] = None) -> dict:
        rows = self.list_timesheets(organization_id=organization_id, start=start, end=end, branch_id=branch_id)
        out = {"total": len(rows)}
        for status in TimesheetStatus:
            out[status.value] = sum(1 for t in rows if t.status == status)
        out["total_net_worked_minutes"] = sum(t.net_worked_minutes for t in rows)
        out["total_overtime_minutes"] = sum(t.overtime_minutes for t in rows)
        out["total_night_minutes"] = sum(t.night_minutes for t in rows)
        out["total_late_minutes"] = sum(t.late_minutes for t in rows)
        return out

    def _get(self, organization_id: int, timesheet_id: int) -> Timesheet:
        timesheet = self._timesheets.get_by_id(int(timesheet_id))
        if not timesheet or timesheet.organization_id != int(organization_id):
            raise NotFoundError("Timesheet no encontrado")
        return timesheet

    def approve(self, *, current_role: Role, organization_id: int, timesheet_id: int, reviewer_id: int) -> None:
        require_management(current_role)
        timesheet = self._get(organization_id, timesheet_id)
        if timesheet.status == TimesheetStatus.LOCKED:
            raise ValidationError("El timesheet está bloqueado")
        self._timesheets.set_status(
            timesheet_id=timesheet.timesheet_id, status=TimesheetStatus.APPROVED, reviewed_by=int(reviewer_id)
        )
        logger.info("Timesheet %s approved by %s", timesheet.timesheet_id, reviewer_id)

    def reject(
        self, *, current_role: Role, organization_id: int, timesheet_id: int, reviewer_id: int, reason: str
    ) -> None:
        require_management(current_role)
        reason = require_non_empty(reason, "El motivo de rechazo")
        timesheet = self._get(organization_id, timesheet_id)
        if timesheet.status == TimesheetStatus.LOCKED:
            raise ValidationError("El timesheet está bloqueado")
        self._timesheets.set_status(
            timesheet_id=timesheet.timesheet_id,
            status=TimesheetStatus.REJECTED,
            reviewed_by=int(reviewer_id),
            review_note=reason,
        )
        logger.info("Timesheet %s rejected by %s", timesheet.timesheet_id, reviewer_id)

    def lock(self, *, current_role: Role, organization_id: int, timesheet_id: int) -> None:
        """Only approved timesheets can be locked; a locked one never changes again."""
        require_management(current_role)
        timesheet = self._get(organization_id, timesheet_id)
        if timesheet.status == TimesheetStatus.LOCKED:
            raise ValidationError("El timesheet ya está bloqueado")
        if timesheet.status != TimesheetStatus.APPROVED:
            raise ValidationError("Solo se pueden bloquear timesheets aprobados")
        self._timesheets.set_status(timesheet_id=timesheet.timesheet_id, status=TimesheetStatus.LOCKED)

    def export_rows(self, **filters) -> list[dict]:
        rows = []
        for t in self.list_timesheets(**filters):
            rows.append(
                {
                    "work_date": t.work_date.strftime("%Y-%m-%d"),
                    "employee_code": t.employee_code or "",
                    "employee_name": t.employee_name or "",
                    "first_check_in": t.first_check_in.strftime("%H:%M") if t.first_check_in else "-",
                    "last_check_out": t.last_check_out.strftime("%H:%M") if t.last_check_out else "-",
                    "scheduled_hours": format_minutes(t.scheduled_minutes),
                    "worked_hours": format_minutes(t.net_worked_minutes),
                    "break_minutes": t.break_minutes,
                    "overtime_minutes": t.overtime_minutes,
                    "night_minutes": t.night_minutes,
                    "late_minutes": t.late_minutes,
                    "early_departure_minutes": t.early_departure_minutes,
                    "status": t.status.value,
                    "review_note": t.review_note or "",
                }
            )
        return rows
