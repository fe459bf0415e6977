from __future__ import annotations

import json

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.validators import require_positive_int
from ..common.web import (
    arg_date,
    arg_int,
    current_org_id,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    roles_required,
)
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..qr.image import decode_image
from .model import ScanRequest


def _optional_float(value, name: str):
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Valor inválido para '{name}'")


def _scan_request(payload: str, source: dict) -> ScanRequest:
    return ScanRequest(
        organization_id=current_org_id(),
        user_id=current_user_id(),
        payload=payload,
        latitude=_optional_float(source.get("latitude"), "latitude"),
        longitude=_optional_float(source.get("longitude"), "longitude"),
        accuracy_m=_optional_float(source.get("accuracy"), "accuracy"),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/scan", methods=["POST"], endpoint="attendance_scan")
    @login_required
    def attendance_scan():
        data = json_body()
        payload = data.get("payload", data.get("qr_code", ""))
        if isinstance(payload, dict):
            # Scanner apps sometimes post the decoded JSON object itself.
            payload = json.dumps(payload)
        elif not isinstance(payload, str):
            payload = ""
        result = container.attendance_service.scan(_scan_request(payload, data))
        return ok(**result.to_dict())

    @app.route("/api/attendance/scan/image", methods=["POST"], endpoint="attendance_scan_image")
    @login_required
    def attendance_scan_image():
        """Accept an uploaded photo, decode the QR code and register the mark."""
        if "image" not in request.files:
            raise ValidationError("Falta el archivo de imagen")
        payload = decode_image(request.files["image"].stream)
        result = container.attendance_service.scan(_scan_request(payload, request.form))
        return ok(**result.to_dict())

    @app.route("/api/attendance/manual", methods=["POST"], endpoint="attendance_manual")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def attendance_manual():
        data = json_body()
        user_id = data.get("user_id", data.get("employment_id"))
        if user_id in (None, ""):
            raise ValidationError("Debe indicar el empleado")
        event = container.attendance_service.record_manual_entry(
            current_role=current_role(),
            organization_id=current_org_id(),
            user_id=require_positive_int(user_id, "Empleado"),
            event_type=data.get("event_type", ""),
            event_at=data.get("event_at", ""),
            reason=data.get("reason", ""),
            created_by=current_user_id(),
            branch_id=data.get("branch_id"),
        )
        return ok(201, event=event.to_dict())

    @app.route("/api/attendance/events", methods=["GET"], endpoint="attendance_events")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def attendance_events():
        today = now_local().date()
        events = container.attendance_service.list_events(
            organization_id=current_org_id(),
            start=arg_date("start", today),
            end=arg_date("end", today),
            branch_id=arg_int("branch_id"),
            user_id=arg_int("user_id"),
            event_type=request.args.get("type") if request.args.get("type") not in (None, "", "all") else None,
            search=request.args.get("q"),
        )
        return ok(events=[e.to_dict() for e in events])

    @app.route("/api/attendance/stats", methods=["GET"], endpoint="attendance_stats")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def attendance_stats():
        stats = container.attendance_service.day_stats(
            organization_id=current_org_id(),
            day=arg_date("date", now_local().date()),
            branch_id=arg_int("branch_id"),
        )
        return ok(stats=stats)

    @app.route("/api/attendance/me", methods=["GET"], endpoint="attendance_me")
    @login_required
    def attendance_me():
        history = container.attendance_service.history(current_user_id(), limit=arg_int("limit") or DEFAULT_HISTORY_LIMIT)
        return ok(events=[e.to_dict() for e in history])
