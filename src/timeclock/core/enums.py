from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorization inside an organization."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class EventType(str, Enum):
    """Kinds of attendance events stored in attendance_events."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    BREAK_START = "break_start"
    BREAK_END = "break_end"


class EventSource(str, Enum):
    QR = "qr"
    MANUAL = "manual"
    APP = "app"


class DeviceType(str, Enum):
    """Time clock kinds. Only the QR kinds can be scanned."""

    QR_DYNAMIC = "qr_dynamic"
    QR_STATIC = "qr_static"
    APP = "app"
    BIOMETRIC = "biometric"
    NFC = "nfc"
    RFID = "rfid"
    MANUAL = "manual"

    @property
    def is_qr(self) -> bool:
        return self in (DeviceType.QR_DYNAMIC, DeviceType.QR_STATIC)


class TimesheetStatus(str, Enum):
    OPEN = "open"
    APPROVED = "approved"
    REJECTED = "rejected"
    LOCKED = "locked"
    ABSENT = "absent"


class ShiftStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    LATE = "late"
    ABSENT = "absent"


class AttendanceStatus(str, Enum):
    """Result of comparing a scheduled shift with the events of the day."""

    ON_TIME = "on_time"
    LATE = "late"
    ABSENT = "absent"
    INCOMPLETE = "incomplete"
    NO_SHIFT = "no_shift"
    REST_DAY = "rest_day"


class ConsolidationStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"
