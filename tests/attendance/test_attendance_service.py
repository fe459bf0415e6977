from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from conftest import NOW, ORG_ID
from timeclock.attendance.model import AttendanceEvent
from timeclock.core.enums import EventSource, EventType, Role
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError


def _event(repos, user_id, kind, at, **kw):
    repos.events.create(
        AttendanceEvent(
            event_id=0,
            organization_id=ORG_ID,
            user_id=user_id,
            event_type=kind,
            event_at=at,
            source=kw.pop("source", EventSource.QR),
            **kw,
        )
    )


def manual(container, **kw):
    params = dict(
        current_role=Role.MANAGER,
        organization_id=ORG_ID,
        user_id=3,
        event_type="check_in",
        event_at="2026-03-02T07:55",
        reason="Olvidó marcar",
        created_by=2,
        now=NOW,
    )
    params.update(kw)
    return container.attendance_service.record_manual_entry(**params)


def test_manual_entry_is_stored_with_reason_and_author(container, repos):
    event = manual(container)

    assert event.event_id == 1
    assert event.event_at == datetime(2026, 3, 2, 7, 55)
    stored = repos.events.items[0]
    assert stored.source == EventSource.MANUAL
    assert stored.is_manual_entry is True
    assert stored.manual_reason == "Olvidó marcar"
    assert stored.created_by == 2
    assert stored.branch_id == 10


def test_manual_entry_requires_reason(container):
    with pytest.raises(ValidationError):
        manual(container, reason="   ")


def test_manual_entry_cannot_be_in_the_future(container):
    with pytest.raises(ValidationError):
        manual(container, event_at=NOW + timedelta(minutes=5))


def test_manual_entry_rejects_unknown_type_and_employee(container):
    with pytest.raises(ValidationError):
        manual(container, event_type="lunch")
    with pytest.raises(NotFoundError):
        manual(container, user_id=5)


def test_employees_cannot_register_manual_entries(container):
    with pytest.raises(AuthorizationError):
        manual(container, current_role=Role.EMPLOYEE)


def test_day_stats_counts_the_event_mix(container, repos):
    day = NOW.date()
    _event(repos, 3, EventType.CHECK_IN, NOW)
    _event(repos, 3, EventType.CHECK_OUT, NOW + timedelta(hours=9))
    _event(repos, 2, EventType.CHECK_IN, NOW, geo_validated=False)
    _event(repos, 1, EventType.CHECK_IN, NOW, source=EventSource.MANUAL, is_manual_entry=True)
    _event(repos, 3, EventType.CHECK_IN, NOW - timedelta(days=1))

    stats = container.attendance_service.day_stats(organization_id=ORG_ID, day=day)

    assert stats == {
        "date": "2026-03-02",
        "total": 4,
        "check_ins": 3,
        "check_outs": 1,
        "manual": 1,
        "geo_failed": 1,
        "without_checkout": 2,
    }


def test_list_events_filters_by_range_and_type(container, repos):
    _event(repos, 3, EventType.CHECK_IN, NOW)
    _event(repos, 3, EventType.CHECK_OUT, NOW + timedelta(hours=9))
    _event(repos, 2, EventType.CHECK_IN, NOW - timedelta(days=3))

    events = container.attendance_service.list_events(
        organization_id=ORG_ID, start=date(2026, 3, 2), end=date(2026, 3, 2), event_type="check_in"
    )

    assert [(e.user_id, e.event_type) for e in events] == [(3, EventType.CHECK_IN)]
    assert events[0].employee_name == "Ana Rojas"


def test_list_events_rejects_reversed_range(container):
    with pytest.raises(ValidationError):
        container.attendance_service.list_events(organization_id=ORG_ID, start=date(2026, 3, 5), end=date(2026, 3, 1))


def test_history_is_newest_first(container, repos):
    _event(repos, 3, EventType.CHECK_IN, NOW - timedelta(days=1))
    _event(repos, 3, EventType.CHECK_IN, NOW)

    history = container.attendance_service.history(3, limit=1)

    assert [e.event_at for e in history] == [NOW]
