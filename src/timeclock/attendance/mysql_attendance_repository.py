from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds
from ..core.enums import EventSource, EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, optional_float
from .model import AttendanceEvent, EventFilters
from .repository import AttendanceRepository

_COLUMNS = """
    e.event_id, e.organization_id, e.user_id, e.event_type, e.event_at, e.source, e.device_id,
    e.branch_id, e.is_manual_entry, e.manual_reason, e.created_by, e.latitude, e.longitude,
    e.geo_distance_m, e.geo_validated, e.note
"""


def _to_event(r: dict) -> AttendanceEvent:
    geo_validated = r.get("geo_validated")
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        organization_id=int(r["organization_id"]),
        user_id=int(r["user_id"]),
        event_type=EventType(r["event_type"]),
        event_at=r["event_at"],
        source=EventSource(r["source"]),
        device_id=r.get("device_id"),
        branch_id=r.get("branch_id"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        manual_reason=r.get("manual_reason"),
        created_by=r.get("created_by"),
        latitude=optional_float(r.get("latitude")),
        longitude=optional_float(r.get("longitude")),
        geo_distance_m=optional_float(r.get("geo_distance_m")),
        geo_validated=bool(geo_validated) if geo_validated is not None else None,
        note=r.get("note"),
        employee_name=r.get("full_name"),
        employee_code=r.get("employee_code"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def last_event_for_user_on(self, user_id: int, day: date) -> Optional[AttendanceEvent]:
        start, end = day_bounds(day)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events e
                WHERE e.user_id=%s AND e.event_at >= %s AND e.event_at < %s
                ORDER BY e.event_at DESC, e.event_id DESC
                LIMIT 1
                """,
                (int(user_id), start, end),
            )
            r = fetchone(cur)
            return _to_event(r) if r else None

    def create(self, event: AttendanceEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_events(
                    organization_id, user_id, event_type, event_at, source, device_id, branch_id,
                    is_manual_entry, manual_reason, created_by, latitude, longitude,
                    geo_distance_m, geo_validated, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.organization_id,
                    event.user_id,
                    event.event_type.value,
                    event.event_at,
                    event.source.value,
                    event.device_id,
                    event.branch_id,
                    1 if event.is_manual_entry else 0,
                    event.manual_reason,
                    event.created_by,
                    event.latitude,
                    event.longitude,
                    round(event.geo_distance_m, 2) if event.geo_distance_m is not None else None,
                    None if event.geo_validated is None else int(event.geo_validated),
                    event.note,
                ),
            )
            return int(cur.lastrowid)

    def list_events(self, organization_id: int, filters: EventFilters) -> Sequence[AttendanceEvent]:
        where = ["e.organization_id=%s"]
        params: list = [int(organization_id)]

        if filters.start is not None:
            where.append("e.event_at >= %s")
            params.append(filters.start)
        if filters.end is not None:
            where.append("e.event_at < %s")
            params.append(filters.end)
        if filters.branch_id is not None:
            where.append("e.branch_id=%s")
            params.append(int(filters.branch_id))
        if filters.user_id is not None:
            where.append("e.user_id=%s")
            params.append(int(filters.user_id))
        if filters.event_type is not None:
            where.append("e.event_type=%s")
            params.append(filters.event_type.value)
        if filters.search:
            where.append("(u.full_name LIKE %s OR u.employee_code LIKE %s)")
            like = f"%{filters.search}%"
            params.extend([like, like])

        params.append(int(filters.limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}, u.full_name, u.employee_code
                FROM attendance_events e
                JOIN users u ON u.user_id = e.user_id
                WHERE {" AND ".join(where)}
                ORDER BY e.event_at DESC, e.event_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def events_for_day(
        self, organization_id: int, day: date, *, branch_id: Optional[int] = None
    ) -> Sequence[AttendanceEvent]:
        start, end = day_bounds(day)
        sql = f"""
            SELECT {_COLUMNS}, u.full_name, u.employee_code
            FROM attendance_events e
            JOIN users u ON u.user_id = e.user_id
            WHERE e.organization_id=%s AND e.event_at >= %s AND e.event_at < %s
        """
        params: list = [int(organization_id), start, end]
        if branch_id is not None:
            sql += " AND e.branch_id=%s"
            params.append(int(branch_id))
        sql += " ORDER BY e.event_at ASC, e.event_id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_event(r) for r in fetchall(cur)]

    def recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events e
                WHERE e.user_id=%s
                ORDER BY e.event_at DESC, e.event_id DESC
                LIMIT %s
                """,
                (int(user_id), int(limit)),
            )
            return [_to_event(r) for r in fetchall(cur)]
