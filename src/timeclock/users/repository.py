from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Employee


class EmployeeRepository(Protocol):
    """Repository interface for employees.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Employee]:
        raise NotImplementedError

    def list_for_organization(self, organization_id: int, *, search: Optional[str] = None) -> Sequence[Employee]:
        raise NotImplementedError

    def create(
        self,
        *,
        organization_id: int,
        full_name: str,
        username: str,
        password_hash: str,
        role: Role,
        employee_code: Optional[str],
        branch_id: Optional[int],
        shift_id: Optional[int],
        work_hours_per_week: int,
    ) -> int:
        raise NotImplementedError

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
