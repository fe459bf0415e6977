from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.web import current_org_id, current_role, json_body, ok, roles_required
from ..core.enums import Role
from ..container import Container
from ..qr.codec import encode_payload
from ..qr.image import render_png


def register(app: Flask, container: Container) -> None:
    @app.route("/api/devices", methods=["GET"], endpoint="list_devices")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def list_devices():
        devices = container.time_clock_service.list_devices(
            organization_id=current_org_id(),
            include_inactive=request.args.get("status") != "active",
            search=request.args.get("q"),
            device_type=request.args.get("type") if request.args.get("type") not in (None, "", "all") else None,
        )
        if request.args.get("status") == "inactive":
            devices = [d for d in devices if not d.is_active]
        return ok(devices=[d.to_dict() for d in devices])

    @app.route("/api/devices/stats", methods=["GET"], endpoint="device_stats")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def device_stats():
        return ok(stats=container.time_clock_service.stats(organization_id=current_org_id()))

    @app.route("/api/devices/code-available", methods=["GET"], endpoint="device_code_available")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def device_code_available():
        exclude = request.args.get("exclude_id")
        available = container.time_clock_service.is_code_available(
            organization_id=current_org_id(),
            code=request.args.get("code", ""),
            exclude_id=int(exclude) if exclude and exclude.isdigit() else None,
        )
        return ok(available=available)

    @app.route("/api/devices", methods=["POST"], endpoint="create_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def create_device():
        data = json_body()
        device = container.time_clock_service.create(
            current_role=current_role(),
            organization_id=current_org_id(),
            name=data.get("name", ""),
            device_type=data.get("type", "qr_dynamic"),
            code=data.get("code"),
            branch_id=data.get("branch_id"),
            location_description=data.get("location_description"),
            geo_fence=data.get("geo_fence"),
            require_geo_validation=data.get("require_geo_validation", False),
            is_active=data.get("is_active", True),
            token_ttl_seconds=data.get("token_ttl_seconds"),
        )
        return ok(201, device=device.to_dict())

    @app.route("/api/devices/<int:device_id>", methods=["GET"], endpoint="get_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def get_device(device_id: int):
        device = container.time_clock_service.get(organization_id=current_org_id(), device_id=device_id)
        return ok(device=device.to_dict())

    @app.route("/api/devices/<int:device_id>", methods=["PUT", "PATCH"], endpoint="update_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def update_device(device_id: int):
        device = container.time_clock_service.update(
            current_role=current_role(), organization_id=current_org_id(), device_id=device_id, changes=json_body()
        )
        return ok(device=device.to_dict())

    @app.route("/api/devices/<int:device_id>", methods=["DELETE"], endpoint="delete_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def delete_device(device_id: int):
        container.time_clock_service.delete(current_role=current_role(), organization_id=current_org_id(), device_id=device_id)
        return ok()

    @app.route("/api/devices/<int:device_id>/toggle", methods=["POST"], endpoint="toggle_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def toggle_device(device_id: int):
        device = container.time_clock_service.toggle_active(
            current_role=current_role(), organization_id=current_org_id(), device_id=device_id
        )
        return ok(device=device.to_dict())

    @app.route("/api/devices/<int:device_id>/duplicate", methods=["POST"], endpoint="duplicate_device")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def duplicate_device(device_id: int):
        device = container.time_clock_service.duplicate(
            current_role=current_role(), organization_id=current_org_id(), device_id=device_id
        )
        return ok(201, device=device.to_dict())

    @app.route("/api/devices/<int:device_id>/qr/regenerate", methods=["POST"], endpoint="regenerate_device_qr")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def regenerate_device_qr(device_id: int):
        device = container.time_clock_service.regenerate_qr_token(organization_id=current_org_id(), device_id=device_id)
        return ok(device=device.to_dict(include_token=True), payload=encode_payload(device.device_id, device.current_qr_token))

    @app.route("/api/devices/<int:device_id>/qr", methods=["GET"], endpoint="device_qr")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def device_qr(device_id: int):
        device = container.time_clock_service.ensure_fresh_token(organization_id=current_org_id(), device_id=device_id)
        expires_at = device.qr_token_expires_at
        return ok(
            device_id=device.device_id,
            name=device.name,
            payload=encode_payload(device.device_id, device.current_qr_token),
            expires_at=expires_at.isoformat(timespec="seconds") if expires_at else None,
            ttl_seconds=device.token_ttl_seconds if expires_at else None,
        )

    @app.route("/api/devices/<int:device_id>/qr.png", methods=["GET"], endpoint="device_qr_image")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def device_qr_image(device_id: int):
        """PNG of the current payload, for the fullscreen display page."""
        device = container.time_clock_service.ensure_fresh_token(organization_id=current_org_id(), device_id=device_id)
        png = render_png(encode_payload(device.device_id, device.current_qr_token))
        response = send_file(io.BytesIO(png), mimetype="image/png")
        response.headers["Cache-Control"] = "no-store"
        return response
