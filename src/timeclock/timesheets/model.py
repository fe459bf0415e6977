from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..common.datetime_utils import format_minutes
from ..core.enums import AttendanceStatus, ConsolidationStatus, TimesheetStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


@dataclass(frozen=True)
class Timesheet:
    """One consolidated work day of one employee.

    Minutes are stored as integers; approved and locked rows are never recalculated.
    """

    timesheet_id: int
    organization_id: int
    user_id: int
    work_date: date
    branch_id: Optional[int] = None
    scheduled_minutes: int = 0
    worked_minutes: int = 0
    break_minutes: int = 0
    net_worked_minutes: int = 0
    overtime_minutes: int = 0
    night_minutes: int = 0
    holiday_minutes: int = 0
    late_minutes: int = 0
    early_departure_minutes: int = 0
    first_check_in: Optional[datetime] = None
    last_check_out: Optional[datetime] = None
    status: TimesheetStatus = TimesheetStatus.OPEN
    reviewed_by: Optional[int] = None
    review_note: Optional[str] = None
    # Filled by listing queries only.
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None

    @property
    def is_frozen(self) -> bool:
        return self.status in (TimesheetStatus.APPROVED, TimesheetStatus.LOCKED)

    def to_dict(self) -> dict:
        return {
            "timesheet_id": self.timesheet_id,
            "user_id": self.user_id,
            "employee_name": self.employee_name,
            "employee_code": self.employee_code,
            "branch_id": self.branch_id,
            "work_date": self.work_date.strftime("%Y-%m-%d"),
            "scheduled_minutes": self.scheduled_minutes,
            "worked_minutes": self.worked_minutes,
            "break_minutes": self.break_minutes,
            "net_worked_minutes": self.net_worked_minutes,
            "overtime_minutes": self.overtime_minutes,
            "night_minutes": self.night_minutes,
            "holiday_minutes": self.holiday_minutes,
            "late_minutes": self.late_minutes,
            "early_departure_minutes": self.early_departure_minutes,
            "worked_hours": format_minutes(self.net_worked_minutes),
            "first_check_in": _iso(self.first_check_in),
            "last_check_out": _iso(self.last_check_out),
            "status": self.status.value,
            "reviewed_by": self.reviewed_by,
            "review_note": self.review_note,
        }


@dataclass(frozen=True)
class DayMeasure:
    """What the calculator extracts from one employee's events of one day."""

    first_check_in: Optional[datetime]
    last_check_out: Optional[datetime]
    worked_minutes: int = 0
    break_minutes: int = 0
    night_minutes: int = 0

    @property
    def net_worked_minutes(self) -> int:
        return self.worked_minutes - self.break_minutes


@dataclass(frozen=True)
class ConsolidationResult:
    user_id: int
    employee_name: str
    work_date: date
    status: ConsolidationStatus
    message: Optional[str] = None
    timesheet_id: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "employee_name": self.employee_name,
            "work_date": self.work_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "message": self.message,
            "timesheet_id": self.timesheet_id,
        }


@dataclass(frozen=True)
class ConsolidationSummary:
    total_employees: int
    results: List[ConsolidationResult] = field(default_factory=list)

    def _count(self, status: ConsolidationStatus) -> int:
        return sum(1 for r in self.results if r.status == status)

    @property
    def created(self) -> int:
        return self._count(ConsolidationStatus.CREATED)

    @property
    def updated(self) -> int:
        return self._count(ConsolidationStatus.UPDATED)

    @property
    def skipped(self) -> int:
        return self._count(ConsolidationStatus.SKIPPED)

    @property
    def errors(self) -> int:
        return self._count(ConsolidationStatus.ERROR)

    def to_dict(self) -> dict:
        return {
            "total_employees": self.total_employees,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass(frozen=True)
class ShiftComparison:
    """Scheduled shift of one employee next to what the clock recorded."""

    user_id: int
    employee_name: str
    work_date: date
    shift_id: int
    shift_start_time: Optional[str]
    shift_end_time: Optional[str]
    actual_check_in: Optional[datetime]
    actual_check_out: Optional[datetime]
    scheduled_minutes: int
    worked_minutes: int
    late_minutes: int
    early_departure_minutes: int
    overtime_minutes: int
    night_minutes: int
    attendance_status: AttendanceStatus

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "employee_name": self.employee_name,
            "work_date": self.work_date.strftime("%Y-%m-%d"),
            "shift_id": self.shift_id,
            "shift_start_time": self.shift_start_time,
            "shift_end_time": self.shift_end_time,
            "actual_check_in": _iso(self.actual_check_in),
            "actual_check_out": _iso(self.actual_check_out),
            "scheduled_minutes": self.scheduled_minutes,
            "worked_minutes": self.worked_minutes,
            "late_minutes": self.late_minutes,
            "early_departure_minutes": self.early_departure_minutes,
            "overtime_minutes": self.overtime_minutes,
            "night_minutes": self.night_minutes,
            "attendance_status": self.attendance_status.value,
        }
