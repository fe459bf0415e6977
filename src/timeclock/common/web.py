"""Session helpers and JSON error mapping shared by the controllers."""
from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    NotFoundError,
    ScanRejected,
    ValidationError,
)
from .datetime_utils import parse_iso_date
from .logging import get_logger

logger = get_logger(__name__)


def fail(message: str, status: int = 400, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def ok(status: int = 200, **data):
    body = {"success": True}
    body.update(data)
    return jsonify(body), status


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Debe iniciar sesión", 401)
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Debe iniciar sesión", 401)
            if session.get("role") not in allowed:
                return fail("No tiene permisos para esta acción", 403)
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> int:
    return int(session["user_id"])


def current_org_id() -> int:
    return int(session["organization_id"])


def current_role() -> Role:
    return Role(session.get("role"))


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Se esperaba un cuerpo JSON")
    return data


def arg_date(name: str, default: Optional[date] = None) -> Optional[date]:
    value = request.args.get(name)
    if not value:
        return default
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Fecha inválida en '{name}' (use YYYY-MM-DD)")


def arg_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value in (None, "", "all"):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"Parámetro '{name}' inválido")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ScanRejected)
    def _scan_rejected(e: ScanRejected):
        status = 403 if e.code in ("outside_geofence", "location_required") else 400
        return fail(e.message, status, code=e.code)

    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return fail(str(e), 400)

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return fail(str(e), 404)

    @app.errorhandler(AuthenticationError)
    def _authentication(e: AuthenticationError):
        return fail(str(e), 401)

    @app.errorhandler(AuthorizationError)
    def _authorization(e: AuthorizationError):
        return fail(str(e), 403)

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        return fail(str(e), 400)

    @app.errorhandler(Exception)
    def _unexpected(e: Exception):
        # HTTP errors (404 route, 405 method) keep their own status.
        code = getattr(e, "code", None)
        if isinstance(code, int) and 400 <= code < 500:
            return fail(getattr(e, "description", str(e)), code)
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Error interno", 500)
