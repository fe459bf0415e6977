"""Turn raw attendance events into per-day timesheets.

Two flavours exist: ``consolidate_day`` measures whatever the clock recorded
against the contractual daily minutes, ``consolidate_day_with_shifts`` measures
against the shift assigned for that date and also flags absences.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, List, Optional, Sequence

from ..attendance.model import AttendanceEvent
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import iter_dates, minutes_between
from ..common.logging import get_logger
from ..core.constants import LATE_TOLERANCE_MINUTES, STANDARD_DAILY_MINUTES, WORKING_DAYS_PER_WEEK
from ..core.enums import AttendanceStatus, ConsolidationStatus, ShiftStatus, TimesheetStatus
from ..core.exceptions import ValidationError
from ..schedules.repository import ScheduleRepository
from ..shifts.model import Shift
from ..shifts.repository import ShiftRepository
from ..users.model import Employee
from ..users.repository import EmployeeRepository
from .calculator.base import WorkedTimeCalculator
from .calculator.standard_calculator import StandardWorkedTimeCalculator, night_minutes
from .model import ConsolidationResult, ConsolidationSummary, ShiftComparison, Timesheet
from .repository import TimesheetRepository

logger = get_logger(__name__)

_SHIFT_STATUS = {
    AttendanceStatus.ON_TIME: ShiftStatus.COMPLETED,
    AttendanceStatus.LATE: ShiftStatus.LATE,
    AttendanceStatus.ABSENT: ShiftStatus.ABSENT,
}


def daily_scheduled_minutes(work_hours_per_week: int) -> int:
    return int(round(work_hours_per_week / WORKING_DAYS_PER_WEEK * 60))


def _group_by_user(events: Sequence[AttendanceEvent]) -> Dict[int, List[AttendanceEvent]]:
    grouped: Dict[int, List[AttendanceEvent]] = defaultdict(list)
    for e in events:
        grouped[e.user_id].append(e)
    return grouped


def _frozen_message(existing: Timesheet) -> str:
    return "Timesheet ya aprobado" if existing.status == TimesheetStatus.APPROVED else "Timesheet ya bloqueado"


class ConsolidationService:
    def __init__(
        self,
        events: AttendanceRepository,
        timesheets: TimesheetRepository,
        employees: EmployeeRepository,
        schedules: ScheduleRepository,
        shifts: ShiftRepository,
        *,
        calculator: Optional[WorkedTimeCalculator] = None,
    ):
        self._events = events
        self._timesheets = timesheets
        self._employees = employees
        self._schedules = schedules
        self._shifts = shifts
        self._calculator = calculator or StandardWorkedTimeCalculator()

    def _employees_by_id(self, organization_id: int) -> Dict[int, Employee]:
        return {e.user_id: e for e in self._employees.list_for_organization(int(organization_id))}

    def _write(self, draft: Timesheet, employee_name: str) -> ConsolidationResult:
        """Create or update the timesheet of (user, date) unless it was already approved or locked."""
        existing = self._timesheets.get_for_user_and_date(user_id=draft.user_id, work_date=draft.work_date)
        if existing and existing.is_frozen:
            return ConsolidationResult(
                user_id=draft.user_id,
                employee_name=employee_name,
                work_date=draft.work_date,
                status=ConsolidationStatus.SKIPPED,
                message=_frozen_message(existing),
                timesheet_id=existing.timesheet_id,
            )

        if existing:
            timesheet_id = self._timesheets.save(replace(draft, timesheet_id=existing.timesheet_id))
            status = ConsolidationStatus.UPDATED
        else:
            timesheet_id = self._timesheets.save(draft)
            status = ConsolidationStatus.CREATED
        return ConsolidationResult(
            user_id=draft.user_id,
            employee_name=employee_name,
            work_date=draft.work_date,
            status=status,
            timesheet_id=timesheet_id,
        )

    def _consolidate_employee(
        self,
        *,
        organization_id: int,
        day: date,
        user_id: int,
        events: Sequence[AttendanceEvent],
        employee: Optional[Employee],
    ) -> ConsolidationResult:
        if employee is None:
            raise ValidationError("Empleado no encontrado")

        measure = self._calculator.measure(events)
        if measure.first_check_in is None:
            return ConsolidationResult(
                user_id=user_id,
                employee_name=employee.full_name,
                work_date=day,
                status=ConsolidationStatus.SKIPPED,
                message="Sin registro de entrada",
            )

        scheduled = daily_scheduled_minutes(employee.work_hours_per_week)
        net = measure.net_worked_minutes
        draft = Timesheet(
            timesheet_id=0,
            organization_id=int(organization_id),
            user_id=user_id,
            work_date=day,
            branch_id=employee.branch_id or events[0].branch_id,
            scheduled_minutes=scheduled,
            worked_minutes=measure.worked_minutes,
            break_minutes=measure.break_minutes,
            net_worked_minutes=net,
            overtime_minutes=max(net - scheduled, 0),
            night_minutes=measure.night_minutes,
            first_check_in=measure.first_check_in,
            last_check_out=measure.last_check_out,
            status=TimesheetStatus.OPEN,
        )
        return self._write(draft, employee.full_name)

    def consolidate_day(
        self, *, organization_id: int, day: date, branch_id: Optional[int] = None
    ) -> ConsolidationSummary:
        events = self._events.events_for_day(int(organization_id), day, branch_id=branch_id)
        grouped = _group_by_user(events)
        employees = self._employees_by_id(organization_id)

        results: List[ConsolidationResult] = []
        for user_id, user_events in grouped.items():
            try:
                results.append(
                    self._consolidate_employee(
                        organization_id=organization_id,
                        day=day,
                        user_id=user_id,
                        events=user_events,
                        employee=employees.get(user_id),
                    )
                )
            except Exception as e:
                logger.exception("Consolidation failed for user %s on %s", user_id, day)
                name = user_events[0].employee_name or "Desconocido"
                results.append(
                    ConsolidationResult(
                        user_id=user_id,
                        employee_name=name,
                        work_date=day,
                        status=ConsolidationStatus.ERROR,
                        message=str(e),
                    )
                )

        summary = ConsolidationSummary(total_employees=len(grouped), results=results)
        logger.info(
            "Consolidated %s for org %s: %s created, %s updated, %s skipped, %s errors",
            day, organization_id, summary.created, summary.updated, summary.skipped, summary.errors,
        )
        return summary

    def consolidate_range(
        self, *, organization_id: int, start: date, end: date, branch_id: Optional[int] = None
    ) -> ConsolidationSummary:
        if end < start:
            raise ValidationError("Rango de fechas inválido")

        results: List[ConsolidationResult] = []
        for day in iter_dates(start, end):
            results.extend(self.consolidate_day(organization_id=organization_id, day=day, branch_id=branch_id).results)
        return ConsolidationSummary(total_employees=len({r.user_id for r in results}), results=results)

    def pending(self, *, organization_id: int, day: date) -> dict:
        with_events = {e.user_id for e in self._events.events_for_day(int(organization_id), day)}
        with_timesheets = self._timesheets.user_ids_for_date(organization_id=int(organization_id), work_date=day)
        return {
            "date": day.isoformat(),
            "employees_with_events": len(with_events),
            "employees_with_timesheets": len(with_timesheets),
            "pending": len(with_events - with_timesheets),
        }

    def compare_with_shifts(
        self, *, organization_id: int, day: date, branch_id: Optional[int] = None
    ) -> List[ShiftComparison]:
        assignments = self._schedules.list_range(
            organization_id=int(organization_id),
            start=day,
            end=day,
            statuses=list(ShiftStatus),
        )
        employees = self._employees_by_id(organization_id)
        if branch_id is not None:
            assignments = [
                a for a in assignments if employees.get(a.user_id) and employees[a.user_id].branch_id == branch_id
            ]

        grouped = _group_by_user(self._events.events_for_day(int(organization_id), day))
        shifts: Dict[int, Optional[Shift]] = {}

        out: List[ShiftComparison] = []
        for a in assignments:
            if a.shift_id not in shifts:
                shifts[a.shift_id] = self._shifts.get_by_id(a.shift_id)
            shift = shifts[a.shift_id]
            employee = employees.get(a.user_id)
            out.append(
                self._compare(
                    user_id=a.user_id,
                    employee_name=employee.full_name if employee else "Sin nombre",
                    day=day,
                    shift_id=a.shift_id,
                    shift=shift,
                    events=grouped.get(a.user_id, []),
                )
            )
        return out

    def _compare(
        self,
        *,
        user_id: int,
        employee_name: str,
        day: date,
        shift_id: int,
        shift: Optional[Shift],
        events: Sequence[AttendanceEvent],
    ) -> ShiftComparison:
        measure = self._calculator.measure(events)
        check_in = measure.first_check_in
        check_out = measure.last_check_out
        scheduled = shift.scheduled_minutes() if shift else STANDARD_DAILY_MINUTES

        worked = late = early = overtime = night = 0
        if check_in is None:
            status = AttendanceStatus.ABSENT
        elif check_out is None or check_out <= check_in:
            status = AttendanceStatus.INCOMPLETE
        else:
            # The template break applies instead of the recorded breaks.
            worked = max(minutes_between(check_in, check_out) - (shift.break_minutes if shift else 0), 0)
            if shift:
                late = max(minutes_between(shift.starts_at(day), check_in), 0)
                early = max(minutes_between(check_out, shift.ends_at(day)), 0)
            overtime = max(worked - scheduled, 0)
            night = night_minutes(check_in, check_out)
            status = AttendanceStatus.LATE if late > LATE_TOLERANCE_MINUTES else AttendanceStatus.ON_TIME

        return ShiftComparison(
            user_id=user_id,
            employee_name=employee_name,
            work_date=day,
            shift_id=shift_id,
            shift_start_time=shift.start_time.strftime("%H:%M") if shift else None,
            shift_end_time=shift.end_time.strftime("%H:%M") if shift else None,
            actual_check_in=check_in,
            actual_check_out=check_out,
            scheduled_minutes=scheduled,
            worked_minutes=worked,
            late_minutes=late,
            early_departure_minutes=early,
            overtime_minutes=overtime,
            night_minutes=night,
            attendance_status=status,
        )

    def consolidate_day_with_shifts(
        self, *, organization_id: int, day: date, branch_id: Optional[int] = None
    ) -> ConsolidationSummary:
        comparisons = self.compare_with_shifts(organization_id=organization_id, day=day, branch_id=branch_id)
        employees = self._employees_by_id(organization_id)

        results: List[ConsolidationResult] = []
        for c in comparisons:
            try:
                employee = employees.get(c.user_id)
                draft = Timesheet(
                    timesheet_id=0,
                    organization_id=int(organization_id),
                    user_id=c.user_id,
                    work_date=day,
                    branch_id=employee.branch_id if employee else None,
                    scheduled_minutes=c.scheduled_minutes,
                    worked_minutes=c.worked_minutes,
                    net_worked_minutes=c.worked_minutes,
                    overtime_minutes=c.overtime_minutes,
                    night_minutes=c.night_minutes,
                    late_minutes=c.late_minutes,
                    early_departure_minutes=c.early_departure_minutes,
                    first_check_in=c.actual_check_in,
                    last_check_out=c.actual_check_out,
                    status=TimesheetStatus.ABSENT if c.attendance_status == AttendanceStatus.ABSENT else TimesheetStatus.OPEN,
                )
                result = self._write(draft, c.employee_name)
                if result.status != ConsolidationStatus.SKIPPED:
                    self._schedules.update_status(
                        user_id=c.user_id,
                        work_date=day,
                        status=_SHIFT_STATUS.get(c.attendance_status, ShiftStatus.SCHEDULED),
                    )
                results.append(result)
            except Exception as e:
                logger.exception("Shift consolidation failed for user %s on %s", c.user_id, day)
                results.append(
                    ConsolidationResult(
                        user_id=c.user_id,
                        employee_name=c.employee_name,
                        work_date=day,
                        status=ConsolidationStatus.ERROR,
                        message=str(e),
                    )
                )

        return ConsolidationSummary(total_employees=len(comparisons), results=results)
