from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import ShiftStatus
from .model import ShiftAssignment


class ScheduleRepository(Protocol):
    def get_by_id(self, assignment_id: int) -> Optional[ShiftAssignment]:
        raise NotImplementedError

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[ShiftAssignment]:
        raise NotImplementedError

    def upsert(
        self,
        *,
        organization_id: int,
        user_id: int,
        work_date: date,
        shift_id: int,
        note: Optional[str] = None,
    ) -> int:
        """Create or update the assignment of (user, date). Returns assignment_id."""

        raise NotImplementedError

    def delete(self, *, assignment_id: int) -> bool:
        raise NotImplementedError

    def list_range(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Sequence[ShiftAssignment]:
        raise NotImplementedError

    def update_status(self, *, user_id: int, work_date: date, status: ShiftStatus) -> bool:
        raise NotImplementedError
