from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ..core.constants import DEFAULT_MIN_SECONDS_BETWEEN_SCANS, DEFAULT_QR_TOKEN_GRACE_SECONDS
from ..core.enums import DeviceType
from ..devices.model import TimeClock
from ..devices.repository import TimeClockRepository
from ..users.repository import EmployeeRepository
from .checks.base import ScanCheck
from .checks.employee import DebounceCheck, EmployeeCheck, NextEventCheck
from .checks.location import CoordinatesCheck, GeoFenceCheck
from .checks.lookup import DeviceCheck, PayloadCheck
from .checks.qr_token import DynamicTokenCheck, StaticTokenCheck
from .repository import AttendanceRepository


@dataclass
class ScanCheckFactory:
    """Factory Pattern: assemble the check-in pipeline for a scanned device."""

    events: AttendanceRepository
    employees: EmployeeRepository
    devices: TimeClockRepository
    grace_seconds: int = DEFAULT_QR_TOKEN_GRACE_SECONDS
    min_seconds_between_scans: int = DEFAULT_MIN_SECONDS_BETWEEN_SCANS

    def lookup_checks(self) -> List[ScanCheck]:
        """Checks that resolve the device from the raw payload."""
        return [PayloadCheck(), DeviceCheck(self.devices)]

    def for_device(self, device: TimeClock) -> List[ScanCheck]:
        if device.device_type == DeviceType.QR_STATIC:
            token_check: ScanCheck = StaticTokenCheck(grace_seconds=self.grace_seconds)
        else:
            token_check = DynamicTokenCheck(grace_seconds=self.grace_seconds)

        checks: List[ScanCheck] = [
            token_check,
            EmployeeCheck(self.employees),
            NextEventCheck(self.events),
            DebounceCheck(min_seconds_between_scans=self.min_seconds_between_scans),
            CoordinatesCheck(),
        ]
        if device.geo_fence:
            checks.append(GeoFenceCheck())
        return checks
