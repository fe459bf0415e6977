from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta


@dataclass(frozen=True)
class Shift:
    """Domain entity: a shift template (start/end time and paid break)."""

    shift_id: int
    organization_id: int
    shift_name: str
    start_time: time
    end_time: time
    break_minutes: int = 0
    is_night_shift: bool = False

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time

    def span_minutes(self) -> int:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        minutes = end - start
        if minutes <= 0:
            minutes += 24 * 60
        return minutes

    def scheduled_minutes(self) -> int:
        return max(self.span_minutes() - int(self.break_minutes or 0), 0)

    def starts_at(self, work_date: date) -> datetime:
        return datetime.combine(work_date, self.start_time)

    def ends_at(self, work_date: date) -> datetime:
        end = datetime.combine(work_date, self.end_time)
        if self.crosses_midnight:
            end += timedelta(days=1)
        return end

    def to_dict(self) -> dict:
        return {
            "shift_id": self.shift_id,
            "shift_name": self.shift_name,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "break_minutes": self.break_minutes,
            "is_night_shift": self.is_night_shift,
            "scheduled_minutes": self.scheduled_minutes(),
        }
