from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Optional, Sequence

from ...attendance.model import AttendanceEvent
from ...common.datetime_utils import minutes_between
from ...core.constants import NIGHT_END_HOUR, NIGHT_START_HOUR
from ...core.enums import EventType
from ..model import DayMeasure
from .base import WorkedTimeCalculator


def _times(events: Sequence[AttendanceEvent], kind: EventType) -> list[datetime]:
    return sorted(e.event_at for e in events if e.event_type == kind)


def first_check_in(events: Sequence[AttendanceEvent]) -> Optional[datetime]:
    times = _times(events, EventType.CHECK_IN)
    return times[0] if times else None


def last_check_out(events: Sequence[AttendanceEvent]) -> Optional[datetime]:
    times = _times(events, EventType.CHECK_OUT)
    return times[-1] if times else None


def break_minutes(events: Sequence[AttendanceEvent]) -> int:
    """Pair the n-th break start with the n-th break end; unmatched or reversed pairs count 0."""
    total = 0
    for start, end in zip(_times(events, EventType.BREAK_START), _times(events, EventType.BREAK_END)):
        if end > start:
            total += minutes_between(start, end)
    return total


def night_minutes(
    start: datetime,
    end: datetime,
    *,
    night_start_hour: int = NIGHT_START_HOUR,
    night_end_hour: int = NIGHT_END_HOUR,
) -> int:
    """Minutes of [start, end) that fall inside the nightly window (21:00 to 06:00 by default)."""
    if end <= start:
        return 0

    seconds = 0.0
    day = start.date() - timedelta(days=1)
    while day <= end.date():
        window_start = datetime.combine(day, time(hour=night_start_hour))
        window_end = datetime.combine(day + timedelta(days=1), time(hour=night_end_hour))
        overlap = (min(end, window_end) - max(start, window_start)).total_seconds()
        if overlap > 0:
            seconds += overlap
        day += timedelta(days=1)
    return int(round(seconds / 60))


class StandardWorkedTimeCalculator(WorkedTimeCalculator):
    """Standard rule: first check-in to last check-out, minus paired breaks."""

    def measure(self, events: Sequence[AttendanceEvent]) -> DayMeasure:
        check_in = first_check_in(events)
        check_out = last_check_out(events)
        if not check_in or not check_out or check_out <= check_in:
            return DayMeasure(first_check_in=check_in, last_check_out=check_out)

        return DayMeasure(
            first_check_in=check_in,
            last_check_out=check_out,
            worked_minutes=minutes_between(check_in, check_out),
            break_minutes=break_minutes(events),
            night_minutes=night_minutes(check_in, check_out),
        )
