from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import DEFAULT_WORK_HOURS_PER_WEEK
from ..core.enums import Role


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employment inside one organization.

    Plain data object, no database access here.
    """

    user_id: int
    organization_id: int
    full_name: str
    username: str
    password_hash: str
    role: Role
    employee_code: Optional[str] = None
    branch_id: Optional[int] = None
    shift_id: Optional[int] = None
    work_hours_per_week: int = DEFAULT_WORK_HOURS_PER_WEEK
    is_active: bool = True

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "organization_id": self.organization_id,
            "full_name": self.full_name,
            "username": self.username,
            "role": self.role.value,
            "employee_code": self.employee_code,
            "branch_id": self.branch_id,
            "shift_id": self.shift_id,
            "work_hours_per_week": self.work_hours_per_week,
            "is_active": self.is_active,
        }
