from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.geo import GeoFence
from ..core.constants import DEFAULT_QR_TOKEN_TTL_SECONDS
from ..core.enums import DeviceType


@dataclass(frozen=True)
class TimeClock:
    """Domain entity: a check-in point (QR display, app zone, reader...).

    QR devices carry the token currently shown on screen plus the token it
    replaced, so scans made right before a rotation still validate.
    """

    device_id: int
    organization_id: int
    name: str
    device_type: DeviceType
    code: Optional[str] = None
    branch_id: Optional[int] = None
    location_description: Optional[str] = None
    geo_fence: Optional[GeoFence] = None
    require_geo_validation: bool = False
    is_active: bool = True
    current_qr_token: Optional[str] = None
    qr_token_expires_at: Optional[datetime] = None
    previous_qr_token: Optional[str] = None
    previous_qr_token_expires_at: Optional[datetime] = None
    token_ttl_seconds: int = DEFAULT_QR_TOKEN_TTL_SECONDS

    def token_is_fresh(self, now: datetime) -> bool:
        if not self.current_qr_token:
            return False
        if self.qr_token_expires_at is None:
            # Static codes never expire; a dynamic one without expiry is stale.
            return self.device_type == DeviceType.QR_STATIC
        return now < self.qr_token_expires_at

    def to_dict(self, *, include_token: bool = False) -> dict:
        data = {
            "device_id": self.device_id,
            "code": self.code,
            "name": self.name,
            "type": self.device_type.value,
            "branch_id": self.branch_id,
            "location_description": self.location_description,
            "geo_fence": self.geo_fence.to_dict() if self.geo_fence else None,
            "require_geo_validation": self.require_geo_validation,
            "is_active": self.is_active,
            "token_ttl_seconds": self.token_ttl_seconds,
        }
        if include_token:
            data["current_qr_token"] = self.current_qr_token
            data["qr_token_expires_at"] = (
                self.qr_token_expires_at.isoformat(timespec="seconds") if self.qr_token_expires_at else None
            )
        return data
