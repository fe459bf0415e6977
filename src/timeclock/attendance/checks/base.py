from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import EventType
from ...devices.model import TimeClock
from ...qr.codec import QRPayload
from ...users.model import Employee
from ..model import AttendanceEvent, ScanRequest


@dataclass
class ScanContext:
    """State carried through the check-in pipeline.

    Each check reads what earlier checks filled in and adds its own part.
    """

    request: ScanRequest
    now: datetime
    payload: Optional[QRPayload] = None
    device: Optional[TimeClock] = None
    employee: Optional[Employee] = None
    last_event: Optional[AttendanceEvent] = None
    next_type: Optional[EventType] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_m: Optional[float] = None
    geo_validated: Optional[bool] = None


class ScanCheck(ABC):
    """Strategy Pattern: one step of the QR check-in validation.

    A check either enriches the context or raises ScanRejected.
    """

    @abstractmethod
    def run(self, ctx: ScanContext) -> None:
        raise NotImplementedError
