from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    user_id, organization_id, full_name, username, password_hash, role,
    employee_code, branch_id, shift_id, work_hours_per_week, is_active
"""


def _to_employee(row: dict) -> Employee:
    return Employee(
        user_id=int(row["user_id"]),
        organization_id=int(row["organization_id"]),
        full_name=row["full_name"],
        username=row["username"],
        password_hash=row["password_hash"],
        role=Role(row["role"]),
        employee_code=row.get("employee_code"),
        branch_id=row.get("branch_id"),
        shift_id=row.get("shift_id"),
        work_hours_per_week=int(row.get("work_hours_per_week") or 48),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def get_by_username(self, username: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE username=%s", (username,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def list_for_organization(self, organization_id: int, *, search: Optional[str] = None) -> Sequence[Employee]:
        clauses = ["organization_id=%s"]
        params: list[object] = [int(organization_id)]
        if search:
            like = f"%{search.strip()}%"
            clauses.append("(full_name LIKE %s OR username LIKE %s OR employee_code LIKE %s)")
            params.extend([like, like, like])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE {' AND '.join(clauses)} ORDER BY full_name",
                tuple(params),
            )
            return [_to_employee(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(organization_id, full_name, username, password_hash, role,
                                  employee_code, branch_id, shift_id, work_hours_per_week, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    int(organization_id),
                    full_name,
                    username,
                    password_hash,
                    role.value,
                    employee_code,
                    branch_id,
                    shift_id,
                    int(work_hours_per_week),
                ),
            )
            return int(cur.lastrowid)

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=%s WHERE user_id=%s", (1 if is_active else 0, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
