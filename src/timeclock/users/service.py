from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import optional_positive_int, require_min_length, require_non_empty, require_range
from ..core.constants import DEFAULT_WORK_HOURS_PER_WEEK
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import Employee
from .repository import EmployeeRepository

MANAGEMENT_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


def require_management(role: Role) -> None:
    if role not in MANAGEMENT_ROLES:
        raise AuthorizationError("No tiene permisos para esta acción")


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    organization_id: int
    full_name: str
    role: Role
    branch_id: Optional[int]


class AuthService:
    """Use case: authenticate an employee (login)."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._employees.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Usuario o contraseña incorrectos")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Usuario o contraseña incorrectos")

        return SessionUser(
            user_id=user.user_id,
            organization_id=user.organization_id,
            full_name=user.full_name,
            role=user.role,
            branch_id=user.branch_id,
        )


class EmployeeService:
    """Use case: manage employees of an organization (admin/manager)."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def get(self, *, organization_id: int, user_id: int) -> Employee:
        user = self._employees.get_by_id(int(user_id))
        if not user or user.organization_id != int(organization_id):
            raise NotFoundError("Empleado no encontrado")
        return user

    def list_employees(self, *, organization_id: int, search: Optional[str] = None) -> Sequence[Employee]:
        return self._employees.list_for_organization(int(organization_id), search=(search or "").strip() or None)

    def create_employee(
        self,
        *,
        current_role: Role,
        organization_id: int,
        full_name: str,
        username: str,
        password: str,
        role: Role = Role.EMPLOYEE,
        employee_code: Optional[str] = None,
        branch_id: Optional[int] = None,
        shift_id: Optional[int] = None,
        work_hours_per_week: int = DEFAULT_WORK_HOURS_PER_WEEK,
    ) -> int:
        require_management(current_role)
        full_name = require_non_empty(full_name, "Nombre")
        username = require_non_empty(username, "Usuario")
        require_min_length(password, "Contraseña", 6)
        hours = int(require_range(work_hours_per_week, "Horas semanales", 1, 84))

        if role == Role.ADMIN:
            raise ValidationError("No se pueden crear administradores desde aquí")
        if role == Role.MANAGER and current_role != Role.ADMIN:
            raise AuthorizationError("Solo un administrador puede crear gerentes")
        if self._employees.get_by_username(username):
            raise ValidationError("El usuario ya existe")

        code = employee_code.strip().upper() if employee_code and employee_code.strip() else None
        return self._employees.create(
            organization_id=int(organization_id),
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            employee_code=code,
            branch_id=optional_positive_int(branch_id, "La sucursal"),
            shift_id=optional_positive_int(shift_id, "El turno"),
            work_hours_per_week=hours,
        )

    def toggle_active(self, *, current_role: Role, organization_id: int, user_id: int) -> Employee:
        require_management(current_role)
        user = self.get(organization_id=organization_id, user_id=user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("No se puede desactivar un administrador")
        self._employees.set_active(user.user_id, is_active=not user.is_active)
        return self.get(organization_id=organization_id, user_id=user_id)

    def delete_employee(self, *, current_role: Role, organization_id: int, user_id: int) -> None:
        if current_role != Role.ADMIN:
            raise AuthorizationError("No tiene permisos para esta acción")

        user = self.get(organization_id=organization_id, user_id=user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("No se puede eliminar un administrador")

        if not self._employees.delete_by_id(user.user_id):
            raise ValidationError("No se pudo eliminar el empleado")
