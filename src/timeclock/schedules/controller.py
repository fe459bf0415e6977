from __future__ import annotations

from datetime import date, timedelta

from flask import Flask

from ..common.datetime_utils import parse_hhmm, parse_iso_date
from ..common.validators import require_positive_int
from ..common.web import arg_date, arg_int, current_org_id, current_role, json_body, login_required, ok, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/shifts", methods=["GET"], endpoint="list_shifts")
    @login_required
    def list_shifts():
        shifts = container.shift_service.list_shifts(organization_id=current_org_id())
        return ok(shifts=[s.to_dict() for s in shifts])

    @app.route("/api/shifts", methods=["POST"], endpoint="create_shift")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def create_shift():
        data = json_body()
        try:
            start_time = parse_hhmm(data.get("start_time", ""))
            end_time = parse_hhmm(data.get("end_time", ""))
        except ValueError:
            raise ValidationError("Hora inválida (use HH:MM)")

        shift_id = container.shift_service.create_shift(
            current_role=current_role(),
            organization_id=current_org_id(),
            shift_name=data.get("shift_name", ""),
            start_time=start_time,
            end_time=end_time,
            break_minutes=data.get("break_minutes") or 0,
            is_night_shift=data.get("is_night_shift", False),
        )
        return ok(201, shift_id=shift_id)

    @app.route("/api/shifts/assignments", methods=["GET"], endpoint="list_assignments")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def list_assignments():
        today = date.today()
        start = arg_date("start", today)
        end = arg_date("end", today + timedelta(days=7))
        assignments = container.schedule_service.list_assignments(
            organization_id=current_org_id(), start=start, end=end, user_id=arg_int("user_id")
        )
        return ok(assignments=[a.to_dict() for a in assignments])

    @app.route("/api/shifts/assignments", methods=["POST"], endpoint="assign_shift")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def assign_shift():
        data = json_body()
        try:
            work_date = parse_iso_date(data.get("work_date", ""))
        except (TypeError, ValueError):
            raise ValidationError("Fecha inválida (use YYYY-MM-DD)")

        assignment_id = container.schedule_service.assign(
            current_role=current_role(),
            organization_id=current_org_id(),
            user_id=require_positive_int(data.get("user_id"), "Empleado"),
            work_date=work_date,
            shift_id=require_positive_int(data.get("shift_id"), "Turno"),
            note=data.get("note"),
        )
        return ok(201, assignment_id=assignment_id)

    @app.route("/api/shifts/assignments/<int:assignment_id>", methods=["DELETE"], endpoint="unassign_shift")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def unassign_shift(assignment_id: int):
        container.schedule_service.unassign(
            current_role=current_role(), organization_id=current_org_id(), assignment_id=assignment_id
        )
        return ok()
