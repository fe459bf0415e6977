from __future__ import annotations

import secrets
from collections import Counter
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.geo import GeoFence
from ..common.logging import get_logger
from ..common.validators import optional_positive_int, require_bool, require_non_empty, require_range
from ..core.constants import DEFAULT_QR_TOKEN_TTL_SECONDS
from ..core.enums import DeviceType, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..users.service import require_management
from .model import TimeClock
from .repository import TimeClockRepository

logger = get_logger(__name__)

TOKEN_BYTES = 24


def new_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def _normalize_code(code: Optional[str]) -> Optional[str]:
    code = (code or "").strip().upper()
    return code or None


def _parse_type(value) -> DeviceType:
    try:
        return DeviceType(value)
    except ValueError:
        raise ValidationError("Tipo de dispositivo inválido")


class TimeClockService:
    """Use case: manage time clocks and rotate their QR tokens."""

    def __init__(self, devices: TimeClockRepository, *, default_ttl_seconds: int = DEFAULT_QR_TOKEN_TTL_SECONDS):
        self._devices = devices
        self._default_ttl = int(default_ttl_seconds)

    def get(self, *, organization_id: int, device_id: int) -> TimeClock:
        device = self._devices.get_by_id(int(device_id))
        if not device or device.organization_id != int(organization_id):
            raise NotFoundError("Dispositivo no encontrado")
        return device

    def list_devices(
        self,
        *,
        organization_id: int,
        include_inactive: bool = True,
        search: Optional[str] = None,
        device_type: Optional[str] = None,
    ) -> Sequence[TimeClock]:
        return self._devices.list_for_organization(
            int(organization_id),
            include_inactive=include_inactive,
            search=(search or "").strip() or None,
            device_type=_parse_type(device_type) if device_type else None,
        )

    def is_code_available(self, *, organization_id: int, code: str, exclude_id: Optional[int] = None) -> bool:
        code = _normalize_code(code)
        if not code:
            return True
        return not self._devices.code_exists(int(organization_id), code, exclude_id=exclude_id)

    def _validated(self, device: TimeClock) -> TimeClock:
        name = require_non_empty(device.name, "El nombre")
        code = _normalize_code(device.code)
        if code and self._devices.code_exists(
            device.organization_id, code, exclude_id=device.device_id or None
        ):
            raise ValidationError("El código ya está en uso")
        if device.require_geo_validation and not device.geo_fence:
            raise ValidationError("La validación de ubicación requiere una geocerca")
        ttl = int(require_range(device.token_ttl_seconds, "Vigencia del token", 10, 86400))
        return replace(device, name=name, code=code, token_ttl_seconds=ttl)

    def create(
        self,
        *,
        current_role: Role,
        organization_id: int,
        name: str,
        device_type: str = DeviceType.QR_DYNAMIC.value,
        code: Optional[str] = None,
        branch_id: Optional[int] = None,
        location_description: Optional[str] = None,
        geo_fence: Optional[dict] = None,
        require_geo_validation: bool = False,
        is_active: bool = True,
        token_ttl_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> TimeClock:
        require_management(current_role)
        draft = self._validated(
            TimeClock(
                device_id=0,
                organization_id=int(organization_id),
                name=name,
                device_type=_parse_type(device_type),
                code=code,
                branch_id=optional_positive_int(branch_id, "La sucursal"),
                location_description=(location_description or "").strip() or None,
                geo_fence=GeoFence.from_dict(geo_fence),
                require_geo_validation=require_bool(require_geo_validation, "Validación de ubicación"),
                is_active=require_bool(is_active, "Activo"),
                token_ttl_seconds=self._default_ttl if token_ttl_seconds is None else token_ttl_seconds,
            )
        )
        if draft.device_type.is_qr:
            draft = self._rotated(draft, now or now_local())

        device_id = self._devices.create(draft)
        logger.info("Created time clock %s (%s) for organization %s", device_id, draft.device_type.value, organization_id)
        return replace(draft, device_id=device_id)

    def update(self, *, current_role: Role, organization_id: int, device_id: int, changes: dict) -> TimeClock:
        require_management(current_role)
        device = self.get(organization_id=organization_id, device_id=device_id)

        fields: dict = {}
        for key in ("name", "code", "location_description", "token_ttl_seconds"):
            if key in changes:
                fields[key] = changes[key]
        if "is_active" in changes:
            fields["is_active"] = require_bool(changes["is_active"], "Activo")
        if "require_geo_validation" in changes:
            fields["require_geo_validation"] = require_bool(
                changes["require_geo_validation"], "Validación de ubicación"
            )
        if "branch_id" in changes:
            fields["branch_id"] = optional_positive_int(changes["branch_id"], "La sucursal")
        if "type" in changes or "device_type" in changes:
            fields["device_type"] = _parse_type(changes.get("device_type", changes.get("type")))
        if "geo_fence" in changes:
            fields["geo_fence"] = GeoFence.from_dict(changes["geo_fence"])

        updated = self._validated(replace(device, **fields))
        if updated.device_type.is_qr and updated.device_type != device.device_type:
            updated = self._rotated(updated, now_local())
        self._devices.update(updated)
        return updated

    def toggle_active(self, *, current_role: Role, organization_id: int, device_id: int) -> TimeClock:
        require_management(current_role)
        device = self.get(organization_id=organization_id, device_id=device_id)
        updated = replace(device, is_active=not device.is_active)
        self._devices.update(updated)
        return updated

    def duplicate(
        self, *, current_role: Role, organization_id: int, device_id: int, now: Optional[datetime] = None
    ) -> TimeClock:
        require_management(current_role)
        device = self.get(organization_id=organization_id, device_id=device_id)
        copy = replace(
            device,
            device_id=0,
            name=f"{device.name} (copia)",
            code=None,
            current_qr_token=None,
            qr_token_expires_at=None,
            previous_qr_token=None,
            previous_qr_token_expires_at=None,
        )
        if copy.device_type.is_qr:
            copy = self._rotated(copy, now or now_local())
        new_id = self._devices.create(copy)
        return replace(copy, device_id=new_id)

    def delete(self, *, current_role: Role, organization_id: int, device_id: int) -> None:
        require_management(current_role)
        device = self.get(organization_id=organization_id, device_id=device_id)
        if not self._devices.delete(device.device_id):
            raise ValidationError("No se pudo eliminar el dispositivo")

    def _rotated(self, device: TimeClock, now: datetime) -> TimeClock:
        expires_at = None
        if device.device_type == DeviceType.QR_DYNAMIC:
            expires_at = now + timedelta(seconds=device.token_ttl_seconds)

        previous_expires_at = None
        if device.current_qr_token:
            # A token replaced before its natural expiry stops at the rotation instant.
            previous_expires_at = device.qr_token_expires_at or now
            if previous_expires_at > now:
                previous_expires_at = now

        return replace(
            device,
            current_qr_token=new_token(),
            qr_token_expires_at=expires_at,
            previous_qr_token=device.current_qr_token,
            previous_qr_token_expires_at=previous_expires_at,
        )

    def regenerate_qr_token(
        self, *, organization_id: int, device_id: int, now: Optional[datetime] = None
    ) -> TimeClock:
        device = self.get(organization_id=organization_id, device_id=device_id)
        if not device.device_type.is_qr:
            raise ValidationError("El dispositivo no es de tipo QR")
        rotated = self._rotated(device, now or now_local())
        self._devices.update(rotated)
        return rotated

    def ensure_fresh_token(
        self, *, organization_id: int, device_id: int, now: Optional[datetime] = None
    ) -> TimeClock:
        """Token to display on screen: rotate only when missing or expired."""
        now = now or now_local()
        device = self.get(organization_id=organization_id, device_id=device_id)
        if not device.device_type.is_qr:
            raise ValidationError("El dispositivo no es de tipo QR")
        if not device.is_active:
            raise ValidationError("El dispositivo está inactivo")
        if device.token_is_fresh(now):
            return device
        return self.regenerate_qr_token(organization_id=organization_id, device_id=device_id, now=now)

    def stats(self, *, organization_id: int) -> dict:
        devices = self._devices.list_for_organization(int(organization_id), include_inactive=True)
        active = sum(1 for d in devices if d.is_active)
        by_type = Counter(d.device_type.value for d in devices)
        return {
            "total": len(devices),
            "active": active,
            "inactive": len(devices) - active,
            "by_type": dict(by_type),
        }
