from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Shift
from .repository import ShiftRepository

_SELECT = """
    SELECT shift_id, organization_id, shift_name, start_time, end_time, break_minutes, is_night_shift
    FROM shifts
"""


def _to_shift(r: dict) -> Shift:
    return Shift(
        shift_id=int(r["shift_id"]),
        organization_id=int(r["organization_id"]),
        shift_name=r["shift_name"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=int(r.get("break_minutes") or 0),
        is_night_shift=bool(r.get("is_night_shift")),
    )


class MySQLShiftRepository(ShiftRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_organization(self, organization_id: int) -> Sequence[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE organization_id=%s ORDER BY start_time", (int(organization_id),))
            return [_to_shift(r) for r in fetchall(cur)]

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE shift_id=%s", (int(shift_id),))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def get_by_name(self, organization_id: int, shift_name: str) -> Optional[Shift]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE organization_id=%s AND shift_name=%s", (int(organization_id), shift_name))
            r = fetchone(cur)
            return _to_shift(r) if r else None

    def create(
        self,
        *,
        organization_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_minutes: int,
        is_night_shift: bool,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO shifts(organization_id, shift_name, start_time, end_time, break_minutes, is_night_shift)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(organization_id), shift_name, start_time, end_time, int(break_minutes), 1 if is_night_shift else 0),
            )
            return int(cur.lastrowid)
