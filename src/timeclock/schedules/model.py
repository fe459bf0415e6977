from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..core.enums import ShiftStatus


@dataclass(frozen=True)
class ShiftAssignment:
    """A shift template assigned to one employee for one work date."""

    assignment_id: int
    organization_id: int
    user_id: int
    work_date: date
    shift_id: int
    status: ShiftStatus = ShiftStatus.SCHEDULED
    note: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "assignment_id": self.assignment_id,
            "user_id": self.user_id,
            "work_date": self.work_date.strftime("%Y-%m-%d"),
            "shift_id": self.shift_id,
            "status": self.status.value,
            "note": self.note or "",
        }
