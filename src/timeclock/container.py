from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import (
    DEFAULT_MIN_SECONDS_BETWEEN_SCANS,
    DEFAULT_QR_TOKEN_GRACE_SECONDS,
    DEFAULT_QR_TOKEN_TTL_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .devices.mysql_time_clock_repository import MySQLTimeClockRepository
from .devices.repository import TimeClockRepository
from .devices.service import TimeClockService
from .schedules.mysql_schedule_repository import MySQLScheduleRepository
from .schedules.repository import ScheduleRepository
from .schedules.service import ScheduleService
from .shifts.mysql_shift_repository import MySQLShiftRepository
from .shifts.repository import ShiftRepository
from .shifts.service import ShiftService
from .timesheets.consolidation import ConsolidationService
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.repository import TimesheetRepository
from .timesheets.service import TimesheetService
from .users.mysql_user_repository import MySQLEmployeeRepository
from .users.repository import EmployeeRepository
from .users.service import AuthService, EmployeeService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    shifts_repo: ShiftRepository
    schedules_repo: ScheduleRepository
    devices_repo: TimeClockRepository
    events_repo: AttendanceRepository
    timesheets_repo: TimesheetRepository

    auth_service: AuthService
    employee_service: EmployeeService
    shift_service: ShiftService
    schedule_service: ScheduleService
    time_clock_service: TimeClockService
    attendance_service: AttendanceService
    consolidation_service: ConsolidationService
    timesheet_service: TimesheetService


def _setting(settings: Optional[ModuleType], name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def wire(
    *,
    conn: Optional[DatabaseConnection],
    employees_repo: EmployeeRepository,
    shifts_repo: ShiftRepository,
    schedules_repo: ScheduleRepository,
    devices_repo: TimeClockRepository,
    events_repo: AttendanceRepository,
    timesheets_repo: TimesheetRepository,
    settings: Optional[ModuleType] = None,
) -> Container:
    """Build the services on top of any set of repositories (MySQL or in-memory)."""
    return Container(
        conn=conn,
        employees_repo=employees_repo,
        shifts_repo=shifts_repo,
        schedules_repo=schedules_repo,
        devices_repo=devices_repo,
        events_repo=events_repo,
        timesheets_repo=timesheets_repo,
        auth_service=AuthService(employees_repo),
        employee_service=EmployeeService(employees_repo),
        shift_service=ShiftService(shifts_repo),
        schedule_service=ScheduleService(schedules_repo, shifts_repo, employees_repo),
        time_clock_service=TimeClockService(
            devices_repo,
            default_ttl_seconds=int(_setting(settings, "QR_TOKEN_TTL_SECONDS", DEFAULT_QR_TOKEN_TTL_SECONDS)),
        ),
        attendance_service=AttendanceService(
            events_repo,
            employees_repo,
            devices_repo,
            grace_seconds=int(_setting(settings, "QR_TOKEN_GRACE_SECONDS", DEFAULT_QR_TOKEN_GRACE_SECONDS)),
            min_seconds_between_scans=int(
                _setting(settings, "MIN_SECONDS_BETWEEN_SCANS", DEFAULT_MIN_SECONDS_BETWEEN_SCANS)
            ),
        ),
        consolidation_service=ConsolidationService(
            events_repo, timesheets_repo, employees_repo, schedules_repo, shifts_repo
        ),
        timesheet_service=TimesheetService(timesheets_repo),
    )


def build_container(*, db_config: dict, settings: Optional[ModuleType] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        conn=conn,
        employees_repo=MySQLEmployeeRepository(conn),
        shifts_repo=MySQLShiftRepository(conn),
        schedules_repo=MySQLScheduleRepository(conn),
        devices_repo=MySQLTimeClockRepository(conn),
        events_repo=MySQLAttendanceRepository(conn),
        timesheets_repo=MySQLTimesheetRepository(conn),
        settings=settings,
    )
