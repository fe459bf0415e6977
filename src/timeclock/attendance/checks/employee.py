from __future__ import annotations

from datetime import timedelta

from ...core.enums import EventType
from ...core.exceptions import ScanRejected
from ...users.repository import EmployeeRepository
from ..repository import AttendanceRepository
from .base import ScanCheck, ScanContext

_NEXT_TYPE = {
    None: EventType.CHECK_IN,
    EventType.CHECK_OUT: EventType.CHECK_IN,
    EventType.CHECK_IN: EventType.CHECK_OUT,
    EventType.BREAK_END: EventType.CHECK_OUT,
    EventType.BREAK_START: EventType.BREAK_END,
}


def next_event_type(last_type) -> EventType:
    return _NEXT_TYPE[last_type]


class EmployeeCheck(ScanCheck):
    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def run(self, ctx: ScanContext) -> None:
        employee = self._employees.get_by_id(ctx.request.user_id)
        if not employee or employee.organization_id != ctx.request.organization_id:
            raise ScanRejected("employee_not_found", "Empleado no encontrado")
        if not employee.is_active:
            raise ScanRejected("employee_inactive", "El empleado está inactivo")
        ctx.employee = employee


class NextEventCheck(ScanCheck):
    """Pick check-in or check-out from the employee's last event of the server day."""

    def __init__(self, events: AttendanceRepository):
        self._events = events

    def run(self, ctx: ScanContext) -> None:
        ctx.last_event = self._events.last_event_for_user_on(ctx.employee.user_id, ctx.now.date())
        ctx.next_type = next_event_type(ctx.last_event.event_type if ctx.last_event else None)


class DebounceCheck(ScanCheck):
    def __init__(self, *, min_seconds_between_scans: int):
        self._min_gap = timedelta(seconds=int(min_seconds_between_scans))

    def run(self, ctx: ScanContext) -> None:
        last = ctx.last_event
        if last and ctx.now - last.event_at < self._min_gap:
            raise ScanRejected("duplicate_scan", "Ya registró una marcación hace un momento")
