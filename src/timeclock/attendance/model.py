from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EventSource, EventType


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one check-in/check-out/break mark.

    Plain data object, no database access here.
    """

    event_id: int
    organization_id: int
    user_id: int
    event_type: EventType
    event_at: datetime
    source: EventSource
    device_id: Optional[int] = None
    branch_id: Optional[int] = None
    is_manual_entry: bool = False
    manual_reason: Optional[str] = None
    created_by: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geo_distance_m: Optional[float] = None
    geo_validated: Optional[bool] = None
    note: Optional[str] = None
    # Filled by listing queries only.
    employee_name: Optional[str] = None
    employee_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "employee_name": self.employee_name,
            "employee_code": self.employee_code,
            "event_type": self.event_type.value,
            "event_at": self.event_at.isoformat(timespec="seconds"),
            "source": self.source.value,
            "device_id": self.device_id,
            "branch_id": self.branch_id,
            "is_manual_entry": self.is_manual_entry,
            "manual_reason": self.manual_reason,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "geo_distance_m": round(self.geo_distance_m, 1) if self.geo_distance_m is not None else None,
            "geo_validated": self.geo_validated,
            "note": self.note,
        }


@dataclass(frozen=True)
class EventFilters:
    """Query for the events table of the attendance page."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    branch_id: Optional[int] = None
    user_id: Optional[int] = None
    event_type: Optional[EventType] = None
    search: Optional[str] = None
    limit: int = 500


@dataclass(frozen=True)
class ScanRequest:
    organization_id: int
    user_id: int
    payload: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy_m: Optional[float] = None

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class ScanResult:
    event: AttendanceEvent
    action: EventType
    employee_name: str
    device_name: str
    distance_m: Optional[float]
    message: str

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "message": self.message,
            "employee_name": self.employee_name,
            "device_name": self.device_name,
            "distance_m": round(self.distance_m, 1) if self.distance_m is not None else None,
            "event": self.event.to_dict(),
        }
