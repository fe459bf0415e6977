from __future__ import annotations

from ...common.geo import validate_coordinates
from ...core.exceptions import ScanRejected, ValidationError
from .base import ScanCheck, ScanContext


class CoordinatesCheck(ScanCheck):
    """Normalize the reported position; a scan without one is still allowed here."""

    def run(self, ctx: ScanContext) -> None:
        if not ctx.request.has_location:
            return
        try:
            ctx.latitude, ctx.longitude = validate_coordinates(ctx.request.latitude, ctx.request.longitude)
        except ValidationError as e:
            raise ScanRejected("invalid_location", str(e))


class GeoFenceCheck(ScanCheck):
    """Distance from the device's fence. Strict devices reject, others only flag the event."""

    def run(self, ctx: ScanContext) -> None:
        device = ctx.device
        fence = device.geo_fence

        if ctx.latitude is None:
            if device.require_geo_validation:
                raise ScanRejected("location_required", "Debe compartir su ubicación para marcar")
            ctx.geo_validated = False
            return

        ctx.distance_m = fence.distance_to(ctx.latitude, ctx.longitude)
        inside = fence.contains(ctx.latitude, ctx.longitude, accuracy_m=ctx.request.accuracy_m or 0.0)
        if not inside and device.require_geo_validation:
            raise ScanRejected(
                "outside_geofence",
                f"Está a {ctx.distance_m:.0f} m del reloj marcador (máximo {fence.radius_m:.0f} m)",
            )
        ctx.geo_validated = inside
