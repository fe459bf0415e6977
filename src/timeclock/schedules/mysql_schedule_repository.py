from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import ShiftStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import ShiftAssignment
from .repository import ScheduleRepository

_SELECT = """
    SELECT assignment_id, organization_id, user_id, work_date, shift_id, status, note
    FROM shift_assignments
"""


def _to_assignment(r: dict) -> ShiftAssignment:
    return ShiftAssignment(
        assignment_id=int(r["assignment_id"]),
        organization_id=int(r["organization_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        shift_id=int(r["shift_id"]),
        status=ShiftStatus(r["status"]),
        note=r.get("note"),
    )


class MySQLScheduleRepository(ScheduleRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, assignment_id: int) -> Optional[ShiftAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE assignment_id=%s", (int(assignment_id),))
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[ShiftAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE user_id=%s AND work_date=%s", (int(user_id), work_date))
            r = fetchone(cur)
            return _to_assignment(r) if r else None

    def upsert(
        self,
        *,
        organization_id: int,
        user_id: int,
        work_date: date,
        shift_id: int,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shift_assignments(organization_id, user_id, work_date, shift_id, status, note)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE shift_id=VALUES(shift_id), note=VALUES(note), status=VALUES(status)
                """,
                (int(organization_id), int(user_id), work_date, int(shift_id), ShiftStatus.SCHEDULED.value, note),
            )

            # If it was an update, lastrowid can be 0; fetch assignment_id.
            if cur.lastrowid:
                return int(cur.lastrowid)

            cur.execute(
                "SELECT assignment_id FROM shift_assignments WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return int(r["assignment_id"]) if r else 0

    def delete(self, *, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM shift_assignments WHERE assignment_id=%s", (int(assignment_id),))
            return cur.rowcount > 0

    def list_range(
        self,
        *,
        organization_id: int,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        statuses: Optional[Sequence[ShiftStatus]] = None,
    ) -> Sequence[ShiftAssignment]:
        clauses = ["organization_id=%s", "work_date BETWEEN %s AND %s"]
        params: list[object] = [int(organization_id), start, end]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if statuses:
            clauses.append(f"status IN ({in_clause(statuses)})")
            params.extend(s.value for s in statuses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY work_date ASC, user_id ASC",
                tuple(params),
            )
            return [_to_assignment(r) for r in fetchall(cur)]

    def update_status(self, *, user_id: int, work_date: date, status: ShiftStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE shift_assignments SET status=%s WHERE user_id=%s AND work_date=%s",
                (status.value, int(user_id), work_date),
            )
            return cur.rowcount > 0
