from __future__ import annotations

from datetime import datetime

from timeclock.attendance.model import AttendanceEvent
from timeclock.core.enums import EventSource, EventType
from timeclock.timesheets.calculator.standard_calculator import (
    StandardWorkedTimeCalculator,
    break_minutes,
    night_minutes,
)


def ev(kind: EventType, hh: int, mm: int = 0, day: int = 2) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=0,
        organization_id=1,
        user_id=3,
        event_type=kind,
        event_at=datetime(2026, 3, day, hh, mm),
        source=EventSource.QR,
    )


def test_standard_calculator_subtracts_paired_breaks():
    events = [
        ev(EventType.CHECK_IN, 8, 0),
        ev(EventType.BREAK_START, 13, 0),
        ev(EventType.BREAK_END, 13, 45),
        ev(EventType.CHECK_OUT, 17, 30),
    ]

    m = StandardWorkedTimeCalculator().measure(events)

    assert m.first_check_in == datetime(2026, 3, 2, 8, 0)
    assert m.last_check_out == datetime(2026, 3, 2, 17, 30)
    assert m.worked_minutes == 570
    assert m.break_minutes == 45
    assert m.net_worked_minutes == 525
    assert m.night_minutes == 0


def test_first_check_in_and_last_check_out_win():
    events = [
        ev(EventType.CHECK_OUT, 12, 0),
        ev(EventType.CHECK_IN, 9, 0),
        ev(EventType.CHECK_IN, 8, 0),
        ev(EventType.CHECK_OUT, 18, 0),
    ]
    m = StandardWorkedTimeCalculator().measure(events)
    assert (m.first_check_in.hour, m.last_check_out.hour) == (8, 18)
    assert m.worked_minutes == 600


def test_missing_check_out_measures_nothing():
    m = StandardWorkedTimeCalculator().measure([ev(EventType.CHECK_IN, 8)])
    assert m.first_check_in is not None
    assert m.last_check_out is None
    assert m.worked_minutes == 0


def test_unmatched_and_reversed_breaks_are_ignored():
    events = [
        ev(EventType.BREAK_START, 12, 0),
        ev(EventType.BREAK_END, 11, 0),
        ev(EventType.BREAK_START, 15, 0),
    ]
    assert break_minutes(events) == 0


def test_night_minutes_window():
    assert night_minutes(datetime(2026, 3, 2, 20, 0), datetime(2026, 3, 2, 23, 0)) == 120
    assert night_minutes(datetime(2026, 3, 2, 22, 0), datetime(2026, 3, 3, 7, 0)) == 480
    assert night_minutes(datetime(2026, 3, 2, 4, 30), datetime(2026, 3, 2, 9, 0)) == 90
    assert night_minutes(datetime(2026, 3, 2, 8, 0), datetime(2026, 3, 2, 17, 0)) == 0
    assert night_minutes(datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 8, 0)) == 0
