from __future__ import annotations

import csv
import io
from datetime import date, datetime

import pytest

from conftest import ORG_ID, OTHER_ORG_ID
from timeclock.core.enums import Role, TimesheetStatus
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timeclock.timesheets.export import rows_to_csv
from timeclock.timesheets.model import Timesheet
from timeclock.timesheets.service import EXPORT_COLUMNS

DAY = date(2026, 3, 2)


@pytest.fixture
def service(container):
    return container.timesheet_service


@pytest.fixture
def timesheet_id(repos) -> int:
    return repos.timesheets.save(
        Timesheet(
            timesheet_id=0,
            organization_id=ORG_ID,
            user_id=3,
            work_date=DAY,
            branch_id=10,
            scheduled_minutes=480,
            worked_minutes=600,
            break_minutes=30,
            net_worked_minutes=570,
            overtime_minutes=90,
            night_minutes=0,
            late_minutes=5,
            first_check_in=datetime(2026, 3, 2, 8, 0),
            last_check_out=datetime(2026, 3, 2, 18, 0),
            employee_name="Ana Rojas",
            employee_code="EMP-003",
        )
    )


def review(service, action, timesheet_id, **kw):
    params = dict(current_role=Role.MANAGER, organization_id=ORG_ID, timesheet_id=timesheet_id)
    if action in ("approve", "reject"):
        params["reviewer_id"] = 2
    params.update(kw)
    getattr(service, action)(**params)


def test_approve_then_lock(service, repos, timesheet_id):
    review(service, "approve", timesheet_id)
    assert repos.timesheets.get_by_id(timesheet_id).status == TimesheetStatus.APPROVED
    assert repos.timesheets.get_by_id(timesheet_id).reviewed_by == 2

    review(service, "lock", timesheet_id)
    assert repos.timesheets.get_by_id(timesheet_id).status == TimesheetStatus.LOCKED


def test_only_approved_timesheets_can_be_locked(service, timesheet_id):
    with pytest.raises(ValidationError):
        review(service, "lock", timesheet_id)


def test_locked_timesheets_cannot_change(service, timesheet_id):
    review(service, "approve", timesheet_id)
    review(service, "lock", timesheet_id)

    with pytest.raises(ValidationError):
        review(service, "approve", timesheet_id)
    with pytest.raises(ValidationError):
        review(service, "reject", timesheet_id, reason="Error")
    with pytest.raises(ValidationError):
        review(service, "lock", timesheet_id)


def test_reject_requires_reason(service, repos, timesheet_id):
    with pytest.raises(ValidationError):
        review(service, "reject", timesheet_id, reason="  ")

    review(service, "reject", timesheet_id, reason="Falta salida real")
    ts = repos.timesheets.get_by_id(timesheet_id)
    assert ts.status == TimesheetStatus.REJECTED
    assert ts.review_note == "Falta salida real"


def test_review_is_restricted(service, timesheet_id):
    with pytest.raises(AuthorizationError):
        review(service, "approve", timesheet_id, current_role=Role.EMPLOYEE)
    with pytest.raises(NotFoundError):
        review(service, "approve", timesheet_id, organization_id=OTHER_ORG_ID)


def test_stats_sum_minutes_by_status(service, timesheet_id):
    review(service, "approve", timesheet_id)

    stats = service.stats(organization_id=ORG_ID, start=DAY, end=DAY)

    assert stats["total"] == 1
    assert stats["approved"] == 1
    assert stats["open"] == 0
    assert stats["total_overtime_minutes"] == 90
    assert stats["total_late_minutes"] == 5
    assert stats["total_net_worked_minutes"] == 570


def test_list_filters_by_status(service, timesheet_id):
    assert len(service.list_timesheets(organization_id=ORG_ID, start=DAY, end=DAY, status="open")) == 1
    assert service.list_timesheets(organization_id=ORG_ID, start=DAY, end=DAY, status="locked") == []
    with pytest.raises(ValidationError):
        service.list_timesheets(organization_id=ORG_ID, start=DAY, end=DAY, status="paid")


def test_csv_export(service, timesheet_id):
    rows = service.export_rows(organization_id=ORG_ID, start=DAY, end=DAY)
    data = rows_to_csv(rows, EXPORT_COLUMNS)

    assert data.startswith(b"\xef\xbb\xbf")
    parsed = list(csv.DictReader(io.StringIO(data.decode("utf-8-sig"))))
    assert parsed[0]["employee_name"] == "Ana Rojas"
    assert parsed[0]["worked_hours"] == "09:30"
    assert parsed[0]["first_check_in"] == "08:00"
