from __future__ import annotations

from ...core.exceptions import ScanRejected
from ...devices.repository import TimeClockRepository
from ...qr.codec import parse_payload
from .base import ScanCheck, ScanContext


class PayloadCheck(ScanCheck):
    def run(self, ctx: ScanContext) -> None:
        ctx.payload = parse_payload(ctx.request.payload)


class DeviceCheck(ScanCheck):
    """The scanned device must belong to the caller's organization and be an active QR clock."""

    def __init__(self, devices: TimeClockRepository):
        self._devices = devices

    def run(self, ctx: ScanContext) -> None:
        device = self._devices.get_by_id(ctx.payload.device_id)
        if not device or device.organization_id != ctx.request.organization_id:
            raise ScanRejected("device_not_found", "Reloj marcador no encontrado")
        if not device.is_active:
            raise ScanRejected("device_inactive", "El reloj marcador está inactivo")
        if not device.device_type.is_qr:
            raise ScanRejected("device_not_qr", "El dispositivo no acepta marcaciones por QR")
        ctx.device = device
