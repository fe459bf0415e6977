from __future__ import annotations

from typing import Optional, Sequence

from ..common.geo import GeoFence
from ..core.enums import DeviceType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json_column, fetchall, fetchone, load_json_column
from .model import TimeClock
from .repository import TimeClockRepository

_SELECT = """
    SELECT device_id, organization_id, code, name, device_type, branch_id, location_description,
           geo_fence, require_geo_validation, is_active, current_qr_token, qr_token_expires_at,
           previous_qr_token, previous_qr_token_expires_at, token_ttl_seconds
    FROM time_clocks
"""


def _to_device(r: dict) -> TimeClock:
    return TimeClock(
        device_id=int(r["device_id"]),
        organization_id=int(r["organization_id"]),
        code=r.get("code"),
        name=r["name"],
        device_type=DeviceType(r["device_type"]),
        branch_id=r.get("branch_id"),
        location_description=r.get("location_description"),
        geo_fence=GeoFence.from_dict(load_json_column(r.get("geo_fence"))),
        require_geo_validation=bool(r.get("require_geo_validation")),
        is_active=bool(r.get("is_active")),
        current_qr_token=r.get("current_qr_token"),
        qr_token_expires_at=r.get("qr_token_expires_at"),
        previous_qr_token=r.get("previous_qr_token"),
        previous_qr_token_expires_at=r.get("previous_qr_token_expires_at"),
        token_ttl_seconds=int(r.get("token_ttl_seconds") or 60),
    )


def _params(d: TimeClock) -> tuple:
    return (
        d.code,
        d.name,
        d.device_type.value,
        d.branch_id,
        d.location_description,
        dump_json_column(d.geo_fence.to_dict() if d.geo_fence else None),
        1 if d.require_geo_validation else 0,
        1 if d.is_active else 0,
        d.current_qr_token,
        d.qr_token_expires_at,
        d.previous_qr_token,
        d.previous_qr_token_expires_at,
        int(d.token_ttl_seconds),
    )


class MySQLTimeClockRepository(TimeClockRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, device_id: int) -> Optional[TimeClock]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE device_id=%s", (int(device_id),))
            r = fetchone(cur)
            return _to_device(r) if r else None

    def list_for_organization(
        self,
        organization_id: int,
        *,
        include_inactive: bool = True,
        search: Optional[str] = None,
        device_type: Optional[DeviceType] = None,
    ) -> Sequence[TimeClock]:
        clauses = ["organization_id=%s"]
        params: list[object] = [int(organization_id)]
        if not include_inactive:
            clauses.append("is_active=1")
        if search:
            like = f"%{search}%"
            clauses.append("(name LIKE %s OR code LIKE %s)")
            params.extend([like, like])
        if device_type is not None:
            clauses.append("device_type=%s")
            params.append(device_type.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY name", tuple(params))
            return [_to_device(r) for r in fetchall(cur)]

    def code_exists(self, organization_id: int, code: str, *, exclude_id: Optional[int] = None) -> bool:
        sql = "SELECT device_id FROM time_clocks WHERE organization_id=%s AND code=%s"
        params: list[object] = [int(organization_id), code]
        if exclude_id is not None:
            sql += " AND device_id<>%s"
            params.append(int(exclude_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            return fetchone(cur) is not None

    def create(self, device: TimeClock) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_clocks(organization_id, code, name, device_type, branch_id, location_description,
                                        geo_fence, require_geo_validation, is_active, current_qr_token,
                                        qr_token_expires_at, previous_qr_token, previous_qr_token_expires_at,
                                        token_ttl_seconds)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(device.organization_id),) + _params(device),
            )
            return int(cur.lastrowid)

    def update(self, device: TimeClock) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE time_clocks
                SET code=%s, name=%s, device_type=%s, branch_id=%s, location_description=%s,
                    geo_fence=%s, require_geo_validation=%s, is_active=%s, current_qr_token=%s,
                    qr_token_expires_at=%s, previous_qr_token=%s, previous_qr_token_expires_at=%s,
                    token_ttl_seconds=%s
                WHERE device_id=%s
                """,
                _params(device) + (int(device.device_id),),
            )
            return cur.rowcount > 0

    def delete(self, device_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_clocks WHERE device_id=%s", (int(device_id),))
            return cur.rowcount > 0
