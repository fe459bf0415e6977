from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceEvent, EventFilters


class AttendanceRepository(Protocol):
    """Repository interface for attendance events.

    Services depend on this interface, never on a concrete database.
    """

    def last_event_for_user_on(self, user_id: int, day: date) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def create(self, event: AttendanceEvent) -> int:
        raise NotImplementedError

    def list_events(self, organization_id: int, filters: EventFilters) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def events_for_day(
        self, organization_id: int, day: date, *, branch_id: Optional[int] = None
    ) -> Sequence[AttendanceEvent]:
        """All events of ``day`` in chronological order."""
        raise NotImplementedError

    def recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceEvent]:
        raise NotImplementedError
