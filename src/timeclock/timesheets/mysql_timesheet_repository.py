from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Timesheet
from .repository import TimesheetRepository

_COLUMNS = """
    t.timesheet_id, t.organization_id, t.user_id, t.branch_id, t.work_date, t.scheduled_minutes,
    t.worked_minutes, t.break_minutes, t.net_worked_minutes, t.overtime_minutes, t.night_minutes,
    t.holiday_minutes, t.late_minutes, t.early_departure_minutes, t.first_check_in, t.last_check_out,
    t.status, t.reviewed_by, t.review_note
"""

_MINUTE_FIELDS = (
    "scheduled_minutes",
    "worked_minutes",
    "break_minutes",
    "net_worked_minutes",
    "overtime_minutes",
    "night_minutes",
    "holiday_minutes",
    "late_minutes",
    "early_departure_minutes",
)


def _to_timesheet(r: dict) -> Timesheet:
    return Timesheet(
        timesheet_id=int(r["timesheet_id"]),
        organization_id=int(r["organization_id"]),
        user_id=int(r["user_id"]),
        branch_id=r.get("branch_id"),
        work_date=r["work_date"],
        first_check_in=r.get("first_check_in"),
        last_check_out=r.get("last_check_out"),
        status=TimesheetStatus(r["status"]),
        reviewed_by=r.get("reviewed_by"),
        review_note=r.get("review_note"),
        employee_name=r.get("full_name"),
        employee_code=r.get("employee_code"),
        **{name: int(r.get(name) or 0) for name in _MINUTE_FIELDS},
    )


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, timesheet_id: int) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM timesheets t WHERE t.timesheet_id=%s", (int(timesheet_id),))
            r = fetchone(cur)
            return _to_timesheet(r) if r else None

    def get_for_user_and_date(self, *, user_id: int, work_date: date) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM timesheets t WHERE t.user_id=%s AND t.work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_timesheet(r) if r else None

    def save(self, timesheet: Timesheet) -> int:
        values = (
            timesheet.branch_id,
            *(int(getattr(timesheet, name)) for name in _MINUTE_FIELDS),
            timesheet.first_check_in,
            timesheet.last_check_out,
            timesheet.status.value,
            timesheet.reviewed_by,
            timesheet.review_note,
        )
        with db_cursor(self._conn_factory) as (_, cur):
            if timesheet.timesheet_id:
                cur.execute(
                    """
                    UPDATE timesheets
                    SET branch_id=%s, scheduled_minutes=%s, worked_minutes=%s, break_minutes=%s,
                        net_worked_minutes=%s, overtime_minutes=%s, night_minutes=%s, holiday_minutes=%s,
                        late_minutes=%s, early_departure_minutes=%s, first_check_in=%s, last_check_out=%s,
                        status=%s, reviewed_by=%s, review_note=%s
                    WHERE timesheet_id=%s
                    """,
                    (*values, int(timesheet.timesheet_id)),
                )
                return int(timesheet.timesheet_id)

            cur.execute(
                """
                INSERT INTO timesheets(
                    organization_id, user_id, work_date, branch_id, scheduled_minutes, worked_minutes,
                    break_minutes, net_worked_minutes, overtime_minutes, night_minutes, holiday_minutes,
                    late_minutes, early_departure_minutes, first_check_in, last_check_out, status,
                    reviewed_by, review_note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (timesheet.organization_id, timesheet.user_id, timesheet.work_date, *values),
            )
            return int(cur.lastrowid)

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
        where = ["t.organization_id=%s", "t.work_date BETWEEN %s AND %s"]
        params: list = [int(organization_id), start, end]
        if status is not None:
            where.append("t.status=%s")
            params.append(status.value)
        if user_id is not None:
            where.append("t.user_id=%s")
            params.append(int(user_id))
        if branch_id is not None:
            where.append("t.branch_id=%s")
            params.append(int(branch_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.full_name, u.employee_code
                FROM timesheets t
                JOIN users u ON u.user_id = t.user_id
                WHERE {" AND ".join(where)}
                ORDER BY t.work_date DESC, u.full_name ASC
                """,
                tuple(params),
            )
            return [_to_timesheet(r) for r in fetchall(cur)]

    def user_ids_for_date(self, *, organization_id: int, work_date: date) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT DISTINCT user_id FROM timesheets WHERE organization_id=%s AND work_date=%s",
                (int(organization_id), work_date),
            )
            return {int(r["user_id"]) for r in fetchall(cur)}

    def set_status(
        self,
        *,
        timesheet_id: int,
        status: TimesheetStatus,
        reviewed_by: Optional[int] = None,
        review_note: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET status=%s, reviewed_by=COALESCE(%s, reviewed_by), review_note=COALESCE(%s, review_note)
                WHERE timesheet_id=%s
                """,
                (status.value, reviewed_by, review_note, int(timesheet_id)),
            )
            return cur.rowcount > 0
