from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import TimesheetStatus
from .model import Timesheet


class TimesheetRepository(Protocol):
    def get_by_id(self, timesheet_id: int) -> Optional[Timesheet]:
        raise NotImplementedError

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def save(self, timesheet: Timesheet) -> int:
        """Insert when ``timesheet_id`` is 0, update otherwise. Returns timesheet_id."""

        raise NotImplementedError

    def list_range(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        status: Optional[TimesheetStatus] = None,
        user_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> Sequence[Timesheet]:
        raise NotImplementedError

    def user_ids_for_date(self, *, organization_id: int, work_date: date) -> set[int]:
        raise NotImplementedError

    def set_status(
        self,
        *,
        timesheet_id: int,
        status: TimesheetStatus,
        reviewed_by: Optional[int] = None,
        review_note: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError
