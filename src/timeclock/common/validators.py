from __future__ import annotations

from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} es requerido")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} requiere al menos {min_len} caracteres")
    return value


def require_positive_int(value, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido")
    if number <= 0:
        raise ValidationError(f"{field_name} no es válido")
    return number


def require_range(value, field_name: str, low: float, high: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} no es válido")
    if number < low or number > high:
        raise ValidationError(f"{field_name} debe estar entre {low:g} y {high:g}")
    return number


def optional_positive_int(value, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    return require_positive_int(value, field_name)


def require_bool(value, field_name: str) -> bool:
    """Accept a JSON boolean or 0/1; strings such as "false" are rejected."""
    if isinstance(value, bool):
        return value
    if type(value) is int and value in (0, 1):
        return bool(value)
    raise ValidationError(f"{field_name} debe ser verdadero o falso")
