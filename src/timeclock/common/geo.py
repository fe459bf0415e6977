"""Geofence helpers for location-validated check-ins."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..core.constants import EARTH_RADIUS_M
from ..core.exceptions import ValidationError


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


def validate_coordinates(lat, lng) -> tuple[float, float]:
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        raise ValidationError("Coordenadas inválidas")
    if math.isnan(lat_f) or math.isnan(lng_f):
        raise ValidationError("Coordenadas inválidas")
    if not -90 <= lat_f <= 90 or not -180 <= lng_f <= 180:
        raise ValidationError("Coordenadas fuera de rango")
    return lat_f, lng_f


@dataclass(frozen=True)
class GeoFence:
    lat: float
    lng: float
    radius_m: float

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["GeoFence"]:
        if not data:
            return None
        lat, lng = validate_coordinates(data.get("lat"), data.get("lng"))
        try:
            radius = float(data.get("radius", data.get("radius_m")))
        except (TypeError, ValueError):
            raise ValidationError("Radio de geocerca inválido")
        if radius <= 0:
            raise ValidationError("El radio de la geocerca debe ser mayor a 0")
        return cls(lat=lat, lng=lng, radius_m=radius)

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng, "radius": self.radius_m}

    def distance_to(self, lat: float, lng: float) -> float:
        return haversine_m(self.lat, self.lng, lat, lng)

    def contains(self, lat: float, lng: float, *, accuracy_m: float = 0.0) -> bool:
        # GPS accuracy widens the fence, never by more than the radius itself.
        slack = min(max(float(accuracy_m or 0.0), 0.0), self.radius_m)
        return self.distance_to(lat, lng) <= self.radius_m + slack
