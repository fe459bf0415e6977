from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

import pytest

from conftest import ORG_ID
from timeclock.attendance.model import AttendanceEvent
from timeclock.core.enums import AttendanceStatus, ConsolidationStatus, EventSource, EventType, ShiftStatus, TimesheetStatus
from timeclock.timesheets.consolidation import daily_scheduled_minutes

DAY = date(2026, 3, 2)


def mark(repos, user_id: int, kind: EventType, hh: int, mm: int = 0, *, day: date = DAY):
    repos.events.create(
        AttendanceEvent(
            event_id=0,
            organization_id=ORG_ID,
            user_id=user_id,
            event_type=kind,
            event_at=datetime(day.year, day.month, day.day, hh, mm),
            source=EventSource.QR,
            branch_id=10,
        )
    )


@pytest.fixture
def consolidation(container):
    return container.consolidation_service


def test_daily_scheduled_minutes_from_weekly_hours():
    assert daily_scheduled_minutes(48) == 480
    assert daily_scheduled_minutes(45) == 450


def test_consolidate_day_creates_timesheet_with_overtime(consolidation, repos):
    mark(repos, 3, EventType.CHECK_IN, 8, 0)
    mark(repos, 3, EventType.BREAK_START, 13, 0)
    mark(repos, 3, EventType.BREAK_END, 13, 30)
    mark(repos, 3, EventType.CHECK_OUT, 18, 0)

    summary = consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)

    assert (summary.total_employees, summary.created, summary.errors) == (1, 1, 0)
    ts = repos.timesheets.get_for_user_and_date(user_id=3, work_date=DAY)
    assert ts.scheduled_minutes == 480
    assert ts.worked_minutes == 600
    assert ts.break_minutes == 30
    assert ts.net_worked_minutes == 570
    assert ts.overtime_minutes == 90
    assert ts.status == TimesheetStatus.OPEN
    assert ts.branch_id == 10


def test_employee_without_check_in_is_skipped(consolidation, repos):
    mark(repos, 3, EventType.CHECK_OUT, 17, 0)

    summary = consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)

    assert summary.skipped == 1
    assert summary.results[0].message == "Sin registro de entrada"
    assert repos.timesheets.by_id == {}


def test_rerun_updates_open_timesheet(consolidation, repos):
    mark(repos, 3, EventType.CHECK_IN, 8, 0)
    consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)
    mark(repos, 3, EventType.CHECK_OUT, 16, 0)

    summary = consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)

    assert summary.updated == 1
    assert len(repos.timesheets.by_id) == 1
    assert repos.timesheets.get_for_user_and_date(user_id=3, work_date=DAY).worked_minutes == 480


@pytest.mark.parametrize("status", [TimesheetStatus.APPROVED, TimesheetStatus.LOCKED])
def test_approved_or_locked_timesheets_are_not_recalculated(consolidation, repos, status):
    mark(repos, 3, EventType.CHECK_IN, 8, 0)
    mark(repos, 3, EventType.CHECK_OUT, 12, 0)
    consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)
    ts = repos.timesheets.get_for_user_and_date(user_id=3, work_date=DAY)
    repos.timesheets.save(replace(ts, status=status))
    mark(repos, 3, EventType.CHECK_OUT, 18, 0)

    summary = consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)

    assert summary.skipped == 1
    assert repos.timesheets.get_for_user_and_date(user_id=3, work_date=DAY).worked_minutes == 240


def test_one_failing_employee_does_not_abort_the_run(consolidation, repos):
    mark(repos, 3, EventType.CHECK_IN, 8, 0)
    mark(repos, 77, EventType.CHECK_IN, 8, 0)  # events of a user that no longer exists

    summary = consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)

    assert summary.created == 1
    assert summary.errors == 1
    assert {r.user_id: r.status for r in summary.results} == {
        3: ConsolidationStatus.CREATED,
        77: ConsolidationStatus.ERROR,
    }


def test_consolidate_range_merges_days(consolidation, repos):
    mark(repos, 3, EventType.CHECK_IN, 8, 0, day=date(2026, 3, 2))
    mark(repos, 3, EventType.CHECK_IN, 8, 0, day=date(2026, 3, 4))
    mark(repos, 2, EventType.CHECK_IN, 9, 0, day=date(2026, 3, 4))

    summary = consolidation.consolidate_range(organization_id=ORG_ID, start=date(2026, 3, 1), end=date(2026, 3, 5))

    assert summary.created == 3
    assert summary.total_employees == 2


def test_pending_counts_employees_without_timesheet(consolidation, repos):
    mark(repos, 3, EventType.CHECK_IN, 8, 0)
    mark(repos, 2, EventType.CHECK_IN, 9, 0)
    consolidation.consolidate_day(organization_id=ORG_ID, day=DAY)
    mark(repos, 1, EventType.CHECK_IN, 10, 0)

    assert consolidation.pending(organization_id=ORG_ID, day=DAY) == {
        "date": "2026-03-02",
        "employees_with_events": 3,
        "employees_with_timesheets": 2,
        "pending": 1,
    }


def test_compare_with_shifts_statuses(consolidation, repos):
    # Ana: day shift 08-17 (60 min break), arrives 08:20, leaves 17:00 -> late
    repos.schedules.upsert(organization_id=ORG_ID, user_id=3, work_date=DAY, shift_id=1)
    mark(repos, 3, EventType.CHECK_IN, 8, 20)
    mark(repos, 3, EventType.CHECK_OUT, 17, 0)
    # Manager: on time but leaves 30 minutes early
    repos.schedules.upsert(organization_id=ORG_ID, user_id=2, work_date=DAY, shift_id=1)
    mark(repos, 2, EventType.CHECK_IN, 8, 10)
    mark(repos, 2, EventType.CHECK_OUT, 16, 30)
    # Admin: assigned but never came
    repos.schedules.upsert(organization_id=ORG_ID, user_id=1, work_date=DAY, shift_id=1)

    rows = {r.user_id: r for r in consolidation.compare_with_shifts(organization_id=ORG_ID, day=DAY)}

    ana = rows[3]
    assert ana.attendance_status == AttendanceStatus.LATE
    assert ana.scheduled_minutes == 480
    assert ana.late_minutes == 20
    assert ana.worked_minutes == 460
    assert ana.early_departure_minutes == 0

    manager = rows[2]
    assert manager.attendance_status == AttendanceStatus.ON_TIME
    assert manager.late_minutes == 10
    assert manager.early_departure_minutes == 30

    assert rows[1].attendance_status == AttendanceStatus.ABSENT
    assert rows[1].worked_minutes == 0


def test_compare_overnight_shift(consolidation, repos):
    repos.schedules.upsert(organization_id=ORG_ID, user_id=3, work_date=DAY, shift_id=2)
    mark(repos, 3, EventType.CHECK_IN, 22, 0)

    row = consolidation.compare_with_shifts(organization_id=ORG_ID, day=DAY)[0]

    assert row.scheduled_minutes == 450
    assert row.attendance_status == AttendanceStatus.INCOMPLETE


def test_consolidate_day_with_shifts_writes_timesheets_and_shift_status(consolidation, repos):
    repos.schedules.upsert(organization_id=ORG_ID, user_id=3, work_date=DAY, shift_id=1)
    mark(repos, 3, EventType.CHECK_IN, 7, 58)
    mark(repos, 3, EventType.CHECK_OUT, 18, 0)
    repos.schedules.upsert(organization_id=ORG_ID, user_id=1, work_date=DAY, shift_id=1)

    summary = consolidation.consolidate_day_with_shifts(organization_id=ORG_ID, day=DAY)

    assert (summary.total_employees, summary.created) == (2, 2)
    ana = repos.timesheets.get_for_user_and_date(user_id=3, work_date=DAY)
    assert ana.status == TimesheetStatus.OPEN
    assert ana.worked_minutes == 542
    assert ana.overtime_minutes == 62
    absent = repos.timesheets.get_for_user_and_date(user_id=1, work_date=DAY)
    assert absent.status == TimesheetStatus.ABSENT

    assert repos.schedules.get_for_user_and_date(user_id=3, work_date=DAY).status == ShiftStatus.COMPLETED
    assert repos.schedules.get_for_user_and_date(user_id=1, work_date=DAY).status == ShiftStatus.ABSENT
