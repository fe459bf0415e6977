from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

os.environ.setdefault("APP_ENV", "testing")

from timeclock import create_app
from timeclock.attendance.model import AttendanceEvent, EventFilters
from timeclock.common.geo import GeoFence
from timeclock.container import wire
from timeclock.core.enums import DeviceType, Role, ShiftStatus, TimesheetStatus
from timeclock.devices.model import TimeClock
from timeclock.schedules.model import ShiftAssignment
from timeclock.shifts.model import Shift
from timeclock.timesheets.model import Timesheet
from timeclock.users.model import Employee

ORG_ID = 1
OTHER_ORG_ID = 2
NOW = datetime(2026, 3, 2, 8, 0, 0)

# Headquarters fence used by geo-validated devices (Santiago centre).
HQ_LAT = -33.4489
HQ_LNG = -70.6693


class InMemoryEmployees:
    def __init__(self):
        self.by_id: dict[int, Employee] = {}
        self._id = 100

    def add(self, employee: Employee) -> Employee:
        self.by_id[employee.user_id] = employee
        return employee

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        return self.by_id.get(user_id)

    def get_by_username(self, username: str) -> Optional[Employee]:
        return next((e for e in self.by_id.values() if e.username == username), None)

    def list_for_organization(self, organization_id: int, *, search: Optional[str] = None):
        items = [e for e in self.by_id.values() if e.organization_id == organization_id]
        if search:
            items = [e for e in items if search.lower() in e.full_name.lower()]
        return sorted(items, key=lambda e: e.full_name)

    def create(self, **kw) -> int:
        self._id += 1
        self.by_id[self._id] = Employee(user_id=self._id, **kw)
        return self._id

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        self.by_id[user_id] = replace(self.by_id[user_id], is_active=is_active)
        return True

    def delete_by_id(self, user_id: int) -> bool:
        return self.by_id.pop(user_id, None) is not None


class InMemoryShifts:
    def __init__(self):
        self.by_id: dict[int, Shift] = {}

    def add(self, shift: Shift) -> Shift:
        self.by_id[shift.shift_id] = shift
        return shift

    def list_for_organization(self, organization_id: int):
        return [s for s in self.by_id.values() if s.organization_id == organization_id]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        return self.by_id.get(shift_id)

    def get_by_name(self, organization_id: int, shift_name: str) -> Optional[Shift]:
        return next(
            (s for s in self.by_id.values() if s.organization_id == organization_id and s.shift_name == shift_name),
            None,
        )

    def create(self, **kw) -> int:
        shift_id = max(self.by_id, default=0) + 1
        self.by_id[shift_id] = Shift(shift_id=shift_id, **kw)
        return shift_id


class InMemorySchedules:
    def __init__(self):
        self.by_user_date: dict[tuple[int, date], ShiftAssignment] = {}
        self._id = 0

    def get_by_id(self, assignment_id: int) -> Optional[ShiftAssignment]:
        return next((a for a in self.by_user_date.values() if a.assignment_id == assignment_id), None)

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[ShiftAssignment]:
        return self.by_user_date.get((user_id, work_date))

    def upsert(self, *, organization_id: int, user_id: int, work_date: date, shift_id: int, note=None) -> int:
        existing = self.by_user_date.get((user_id, work_date))
        if existing:
            self.by_user_date[(user_id, work_date)] = replace(existing, shift_id=shift_id, note=note)
            return existing.assignment_id
        self._id += 1
        self.by_user_date[(user_id, work_date)] = ShiftAssignment(
            assignment_id=self._id,
            organization_id=organization_id,
            user_id=user_id,
            work_date=work_date,
            shift_id=shift_id,
            note=note,
        )
        return self._id

    def delete(self, *, assignment_id: int) -> bool:
        for key, a in list(self.by_user_date.items()):
            if a.assignment_id == assignment_id:
                del self.by_user_date[key]
                return True
        return False

    def list_range(self, *, organization_id: int, start: date, end: date, user_id=None, statuses=None):
        items = [
            a
            for a in self.by_user_date.values()
            if a.organization_id == organization_id and start <= a.work_date <= end
        ]
        if user_id is not None:
            items = [a for a in items if a.user_id == user_id]
        if statuses is not None:
            items = [a for a in items if a.status in statuses]
        return sorted(items, key=lambda a: (a.work_date, a.user_id))

    def update_status(self, *, user_id: int, work_date: date, status: ShiftStatus) -> bool:
        existing = self.by_user_date.get((user_id, work_date))
        if not existing:
            return False
        self.by_user_date[(user_id, work_date)] = replace(existing, status=status)
        return True


class InMemoryDevices:
    def __init__(self):
        self.by_id: dict[int, TimeClock] = {}

    def add(self, device: TimeClock) -> TimeClock:
        self.by_id[device.device_id] = device
        return device

    def get_by_id(self, device_id: int) -> Optional[TimeClock]:
        return self.by_id.get(device_id)

    def list_for_organization(self, organization_id: int, *, include_inactive=True, search=None, device_type=None):
        items = [d for d in self.by_id.values() if d.organization_id == organization_id]
        if not include_inactive:
            items = [d for d in items if d.is_active]
        if search:
            items = [d for d in items if search.lower() in d.name.lower() or search.upper() in (d.code or "")]
        if device_type is not None:
            items = [d for d in items if d.device_type == device_type]
        return items

    def code_exists(self, organization_id: int, code: str, *, exclude_id=None) -> bool:
        return any(
            d.organization_id == organization_id and d.code == code and d.device_id != exclude_id
            for d in self.by_id.values()
        )

    def create(self, device: TimeClock) -> int:
        device_id = max(self.by_id, default=0) + 1
        self.by_id[device_id] = replace(device, device_id=device_id)
        return device_id

    def update(self, device: TimeClock) -> bool:
        self.by_id[device.device_id] = device
        return True

    def delete(self, device_id: int) -> bool:
        return self.by_id.pop(device_id, None) is not None


class InMemoryEvents:
    def __init__(self, employees: InMemoryEmployees):
        self.items: list[AttendanceEvent] = []
        self._employees = employees

    def _named(self, e: AttendanceEvent) -> AttendanceEvent:
        emp = self._employees.get_by_id(e.user_id)
        if not emp:
            return e
        return replace(e, employee_name=emp.full_name, employee_code=emp.employee_code)

    def last_event_for_user_on(self, user_id: int, day: date) -> Optional[AttendanceEvent]:
        items = [e for e in self.items if e.user_id == user_id and e.event_at.date() == day]
        return max(items, key=lambda e: (e.event_at, e.event_id), default=None)

    def create(self, event: AttendanceEvent) -> int:
        event_id = len(self.items) + 1
        self.items.append(replace(event, event_id=event_id))
        return event_id

    def list_events(self, organization_id: int, filters: EventFilters):
        items = [self._named(e) for e in self.items if e.organization_id == organization_id]
        if filters.start:
            items = [e for e in items if e.event_at >= filters.start]
        if filters.end:
            items = [e for e in items if e.event_at < filters.end]
        if filters.user_id is not None:
            items = [e for e in items if e.user_id == filters.user_id]
        if filters.branch_id is not None:
            items = [e for e in items if e.branch_id == filters.branch_id]
        if filters.event_type is not None:
            items = [e for e in items if e.event_type == filters.event_type]
        if filters.search:
            items = [e for e in items if filters.search.lower() in (e.employee_name or "").lower()]
        items.sort(key=lambda e: (e.event_at, e.event_id), reverse=True)
        return items[: filters.limit]

    def events_for_day(self, organization_id: int, day: date, *, branch_id=None):
        items = [
            self._named(e)
            for e in self.items
            if e.organization_id == organization_id and e.event_at.date() == day
        ]
        if branch_id is not None:
            items = [e for e in items if e.branch_id == branch_id]
        return sorted(items, key=lambda e: (e.event_at, e.event_id))

    def recent_for_user(self, user_id: int, limit: int):
        items = [e for e in self.items if e.user_id == user_id]
        items.sort(key=lambda e: (e.event_at, e.event_id), reverse=True)
        return items[:limit]


class InMemoryTimesheets:
    def __init__(self):
        self.by_id: dict[int, Timesheet] = {}

    def get_by_id(self, timesheet_id: int) -> Optional[Timesheet]:
        return self.by_id.get(timesheet_id)

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[Timesheet]:
        return next(
            (t for t in self.by_id.values() if t.user_id == user_id and t.work_date == work_date),
            None,
        )

    def save(self, timesheet: Timesheet) -> int:
        timesheet_id = timesheet.timesheet_id or max(self.by_id, default=0) + 1
        self.by_id[timesheet_id] = replace(timesheet, timesheet_id=timesheet_id)
        return timesheet_id

    def list_range(self, *, organization_id: int, start: date, end: date, status=None, user_id=None, branch_id=None):
        items = [
            t
            for t in self.by_id.values()
            if t.organization_id == organization_id and start <= t.work_date <= end
        ]
        if status is not None:
            items = [t for t in items if t.status == status]
        if user_id is not None:
            items = [t for t in items if t.user_id == user_id]
        if branch_id is not None:
            items = [t for t in items if t.branch_id == branch_id]
        return sorted(items, key=lambda t: (t.work_date, t.user_id), reverse=True)

    def user_ids_for_date(self, *, organization_id: int, work_date: date) -> set[int]:
        return {t.user_id for t in self.by_id.values() if t.organization_id == organization_id and t.work_date == work_date}

    def set_status(self, *, timesheet_id: int, status: TimesheetStatus, reviewed_by=None, review_note=None) -> bool:
        current = self.by_id[timesheet_id]
        self.by_id[timesheet_id] = replace(
            current,
            status=status,
            reviewed_by=reviewed_by if reviewed_by is not None else current.reviewed_by,
            review_note=review_note if review_note is not None else current.review_note,
        )
        return True


@dataclass
class Repos:
    employees: InMemoryEmployees = field(default_factory=InMemoryEmployees)
    shifts: InMemoryShifts = field(default_factory=InMemoryShifts)
    schedules: InMemorySchedules = field(default_factory=InMemorySchedules)
    devices: InMemoryDevices = field(default_factory=InMemoryDevices)
    events: Optional[InMemoryEvents] = None
    timesheets: InMemoryTimesheets = field(default_factory=InMemoryTimesheets)

    def __post_init__(self):
        if self.events is None:
            self.events = InMemoryEvents(self.employees)


def make_employee(user_id: int, full_name: str, *, role: Role = Role.EMPLOYEE, organization_id: int = ORG_ID, **kw) -> Employee:
    return Employee(
        user_id=user_id,
        organization_id=organization_id,
        full_name=full_name,
        username=kw.pop("username", full_name.split()[0].lower()),
        password_hash=kw.pop("password_hash", generate_password_hash("secret123")),
        role=role,
        **kw,
    )


def make_device(device_id: int = 1, **kw) -> TimeClock:
    defaults = dict(
        device_id=device_id,
        organization_id=ORG_ID,
        name="Entrada principal",
        device_type=DeviceType.QR_DYNAMIC,
        code="ENT-001",
        branch_id=10,
        current_qr_token="tok-current",
        qr_token_expires_at=NOW + timedelta(seconds=60),
    )
    defaults.update(kw)
    return TimeClock(**defaults)


@pytest.fixture
def repos() -> Repos:
    r = Repos()
    r.employees.add(make_employee(1, "Admin Demo", role=Role.ADMIN, username="admin"))
    r.employees.add(make_employee(2, "Gerente Demo", role=Role.MANAGER, username="gerente"))
    r.employees.add(make_employee(3, "Ana Rojas", employee_code="EMP-003", branch_id=10, shift_id=1))
    r.employees.add(make_employee(4, "Bruno Inactivo", is_active=False))
    r.employees.add(make_employee(5, "Carla Otra", organization_id=OTHER_ORG_ID))
    r.shifts.add(Shift(1, ORG_ID, "Diurno", time(8, 0), time(17, 0), break_minutes=60))
    r.shifts.add(Shift(2, ORG_ID, "Nocturno", time(22, 0), time(6, 0), break_minutes=30, is_night_shift=True))
    r.devices.add(make_device())
    return r


@pytest.fixture
def fence() -> GeoFence:
    return GeoFence(lat=HQ_LAT, lng=HQ_LNG, radius_m=100)


@pytest.fixture
def container(repos):
    return wire(
        conn=None,
        employees_repo=repos.employees,
        shifts_repo=repos.shifts,
        schedules_repo=repos.schedules,
        devices_repo=repos.devices,
        events_repo=repos.events,
        timesheets_repo=repos.timesheets,
    )


@pytest.fixture
def app(container):
    app = create_app(container=container)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login_as(client, employee: Employee) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = employee.user_id
        sess["organization_id"] = employee.organization_id
        sess["name"] = employee.full_name
        sess["role"] = employee.role.value
        sess["branch_id"] = employee.branch_id


@pytest.fixture
def login(client, repos):
    """Put employee ``user_id`` into the Flask session."""

    def _login(user_id: int):
        login_as(client, repos.employees.get_by_id(user_id))
        return client

    return _login


@pytest.fixture
def device_factory(repos):
    """Store a time clock built from the default entrance device."""

    def _make(device_id: int, **kw) -> TimeClock:
        return repos.devices.add(make_device(device_id, **kw))

    return _make
