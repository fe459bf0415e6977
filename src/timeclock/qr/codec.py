"""QR payload format shown by time clock displays.

``timeclock:<device_id>:<token>`` is the canonical form. Scanner apps that
wrap the payload in JSON (``{"device_id": 3, "token": "..."}``) are accepted too.
"""
from __future__ import annotations

import json
from dataclasses import dataclass

from ..core.constants import QR_PAYLOAD_PREFIX
from ..core.exceptions import ScanRejected

MAX_PAYLOAD_LENGTH = 512


@dataclass(frozen=True)
class QRPayload:
    device_id: int
    token: str


def encode_payload(device_id: int, token: str) -> str:
    return f"{QR_PAYLOAD_PREFIX}:{int(device_id)}:{token}"


def _invalid() -> ScanRejected:
    return ScanRejected("invalid_payload", "Código QR no reconocido")


def _build(device_id, token) -> QRPayload:
    try:
        device_id = int(device_id)
    except (TypeError, ValueError):
        raise _invalid()
    if device_id <= 0 or not isinstance(token, str) or not token.strip():
        raise _invalid()
    return QRPayload(device_id=device_id, token=token.strip())


def parse_payload(raw) -> QRPayload:
    if not isinstance(raw, str):
        raise _invalid()
    raw = raw.strip()
    if not raw or len(raw) > MAX_PAYLOAD_LENGTH:
        raise _invalid()

    if raw.startswith("{"):
        try:
            data = json.loads(raw)
        except ValueError:
            raise _invalid()
        if not isinstance(data, dict):
            raise _invalid()
        return _build(data.get("device_id"), data.get("token"))

    parts = raw.split(":", 2)
    if len(parts) != 3 or parts[0] != QR_PAYLOAD_PREFIX:
        raise _invalid()
    return _build(parts[1], parts[2])
