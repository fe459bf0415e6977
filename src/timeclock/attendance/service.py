from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import day_bounds, now_local, parse_iso_datetime
from ..common.logging import get_logger
from ..common.validators import optional_positive_int, require_non_empty
from ..core.constants import (
    DEFAULT_EVENTS_LIMIT,
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_MIN_SECONDS_BETWEEN_SCANS,
    DEFAULT_QR_TOKEN_GRACE_SECONDS,
)
from ..core.enums import EventSource, EventType, Role
from ..core.exceptions import NotFoundError, ScanRejected, ValidationError
from ..devices.repository import TimeClockRepository
from ..users.repository import EmployeeRepository
from ..users.service import require_management
from .checks.base import ScanContext
from .factory import ScanCheckFactory
from .model import AttendanceEvent, EventFilters, ScanRequest, ScanResult
from .repository import AttendanceRepository

logger = get_logger(__name__)

EVENT_LABELS = {
    EventType.CHECK_IN: "Entrada",
    EventType.CHECK_OUT: "Salida",
    EventType.BREAK_START: "Inicio de descanso",
    EventType.BREAK_END: "Fin de descanso",
}


def _parse_event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError("Tipo de marcación inválido")


class AttendanceService:
    """Use case: register attendance events (QR scans and manual entries)."""

    def __init__(
        self,
        events: AttendanceRepository,
        employees: EmployeeRepository,
        devices: TimeClockRepository,
        *,
        check_factory: ScanCheckFactory | None = None,
        grace_seconds: int = DEFAULT_QR_TOKEN_GRACE_SECONDS,
        min_seconds_between_scans: int = DEFAULT_MIN_SECONDS_BETWEEN_SCANS,
    ):
        self._events = events
        self._employees = employees

        self._factory = check_factory or ScanCheckFactory(
            events=events,
            employees=employees,
            devices=devices,
            grace_seconds=int(grace_seconds),
            min_seconds_between_scans=int(min_seconds_between_scans),
        )

    def scan(self, request: ScanRequest, *, now: datetime | None = None) -> ScanResult:
        ctx = ScanContext(request=request, now=now or now_local())

        try:
            for check in self._factory.lookup_checks():
                check.run(ctx)
            for check in self._factory.for_device(ctx.device):
                check.run(ctx)
        except ScanRejected as e:
            logger.info(
                "Scan rejected user=%s org=%s code=%s", request.user_id, request.organization_id, e.code
            )
            raise

        device = ctx.device
        event = AttendanceEvent(
            event_id=0,
            organization_id=request.organization_id,
            user_id=ctx.employee.user_id,
            event_type=ctx.next_type,
            event_at=ctx.now,
            source=EventSource.QR,
            device_id=device.device_id,
            branch_id=device.branch_id,
            latitude=ctx.latitude,
            longitude=ctx.longitude,
            geo_distance_m=ctx.distance_m,
            geo_validated=ctx.geo_validated,
        )
        event_id = self._events.create(event)
        event = replace(event, event_id=event_id, employee_name=ctx.employee.full_name,
                        employee_code=ctx.employee.employee_code)

        logger.info(
            "Recorded %s for user %s on device %s", event.event_type.value, event.user_id, device.device_id
        )
        return ScanResult(
            event=event,
            action=event.event_type,
            employee_name=ctx.employee.full_name,
            device_name=device.name,
            distance_m=ctx.distance_m,
            message=f"Marcación registrada: {EVENT_LABELS[event.event_type]} ({ctx.now:%H:%M})",
        )

    def record_manual_entry(
        self,
        *,
        current_role: Role,
        organization_id: int,
        user_id: int,
        event_type: str,
        event_at,
        reason: str,
        created_by: int,
        branch_id: Optional[int] = None,
        now: datetime | None = None,
    ) -> AttendanceEvent:
        """Register a mark on behalf of an employee (forgotten scan, broken clock...)."""
        require_management(current_role)
        now = now or now_local()

        kind = _parse_event_type(event_type)
        reason = require_non_empty(reason, "El motivo")

        if isinstance(event_at, str):
            try:
                event_at = parse_iso_datetime(event_at)
            except ValueError:
                raise ValidationError("Fecha y hora inválidas")
        if not isinstance(event_at, datetime):
            raise ValidationError("Fecha y hora inválidas")
        if event_at > now:
            raise ValidationError("La marcación no puede estar en el futuro")

        employee = self._employees.get_by_id(int(user_id))
        if not employee or employee.organization_id != int(organization_id):
            raise NotFoundError("Empleado no encontrado")

        event = AttendanceEvent(
            event_id=0,
            organization_id=int(organization_id),
            user_id=employee.user_id,
            event_type=kind,
            event_at=event_at,
            source=EventSource.MANUAL,
            branch_id=optional_positive_int(branch_id, "La sucursal") or employee.branch_id,
            is_manual_entry=True,
            manual_reason=reason,
            created_by=int(created_by),
        )
        event_id = self._events.create(event)
        logger.info("Manual %s for user %s by %s", kind.value, employee.user_id, created_by)
        return replace(event, event_id=event_id, employee_name=employee.full_name,
                       employee_code=employee.employee_code)

    def list_events(
        self,
        *,
        organization_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        branch_id: Optional[int] = None,
        user_id: Optional[int] = None,
        event_type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = DEFAULT_EVENTS_LIMIT,
    ) -> Sequence[AttendanceEvent]:
        if start and end and start > end:
            raise ValidationError("La fecha inicial debe ser anterior a la final")

        filters = EventFilters(
            start=day_bounds(start)[0] if start else None,
            end=day_bounds(end)[1] if end else None,
            branch_id=branch_id,
            user_id=user_id,
            event_type=_parse_event_type(event_type) if event_type else None,
            search=(search or "").strip() or None,
            limit=max(1, min(int(limit), DEFAULT_EVENTS_LIMIT)),
        )
        return self._events.list_events(int(organization_id), filters)

    def day_stats(self, *, organization_id: int, day: date, branch_id: Optional[int] = None) -> dict:
        events = self._events.events_for_day(int(organization_id), day, branch_id=branch_id)

        last_in_out: dict[int, EventType] = {}
        for e in events:
            if e.event_type in (EventType.CHECK_IN, EventType.CHECK_OUT):
                last_in_out[e.user_id] = e.event_type

        return {
            "date": day.isoformat(),
            "total": len(events),
            "check_ins": sum(1 for e in events if e.event_type == EventType.CHECK_IN),
            "check_outs": sum(1 for e in events if e.event_type == EventType.CHECK_OUT),
            "manual": sum(1 for e in events if e.is_manual_entry),
            "geo_failed": sum(1 for e in events if e.geo_validated is False),
            "without_checkout": sum(1 for t in last_in_out.values() if t == EventType.CHECK_IN),
        }

    def history(self, user_id: int, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceEvent]:
        return self._events.recent_for_user(int(user_id), max(1, int(limit)))
