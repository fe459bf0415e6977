from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..common.web import (
    current_org_id,
    current_role,
    current_user_id,
    fail,
    json_body,
    login_required,
    ok,
    roles_required,
)
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        try:
            s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))
        except AuthenticationError as e:
            return fail(str(e), 401)

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

        session["user_id"] = s_user.user_id
        session["organization_id"] = s_user.organization_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        session["branch_id"] = s_user.branch_id
        return ok(user={"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok()

    @app.route("/api/me", endpoint="me")
    @login_required
    def me():
        user = container.employee_service.get(organization_id=current_org_id(), user_id=current_user_id())
        return ok(user=user.to_public_dict())

    @app.route("/api/employees", methods=["GET"], endpoint="list_employees")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def list_employees():
        employees = container.employee_service.list_employees(
            organization_id=current_org_id(), search=request.args.get("q")
        )
        return ok(employees=[e.to_public_dict() for e in employees])

    @app.route("/api/employees", methods=["POST"], endpoint="create_employee")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def create_employee():
        data = json_body()
        try:
            role = Role(data.get("role", Role.EMPLOYEE.value))
        except ValueError:
            raise ValidationError("Rol inválido")

        user_id = container.employee_service.create_employee(
            current_role=current_role(),
            organization_id=current_org_id(),
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=role,
            employee_code=data.get("employee_code"),
            branch_id=data.get("branch_id"),
            shift_id=data.get("shift_id"),
            work_hours_per_week=data.get("work_hours_per_week", 48),
        )
        return ok(201, user_id=user_id)

    @app.route("/api/employees/<int:user_id>/toggle", methods=["POST"], endpoint="toggle_employee")
    @roles_required(Role.ADMIN, Role.MANAGER)
    def toggle_employee(user_id: int):
        user = container.employee_service.toggle_active(
            current_role=current_role(), organization_id=current_org_id(), user_id=user_id
        )
        return ok(user=user.to_public_dict())

    @app.route("/api/employees/<int:user_id>", methods=["DELETE"], endpoint="delete_employee")
    @roles_required(Role.ADMIN)
    def delete_employee(user_id: int):
        container.employee_service.delete_employee(
            current_role=current_role(), organization_id=current_org_id(), user_id=user_id
        )
        return ok()
