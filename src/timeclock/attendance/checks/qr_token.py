from __future__ import annotations

import hmac
from datetime import datetime, timedelta
from typing import Optional

from ...core.exceptions import ScanRejected
from .base import ScanCheck, ScanContext


def _same_token(given: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    return hmac.compare_digest(given.encode("utf-8"), stored.encode("utf-8"))


def _within(now: datetime, expires_at: Optional[datetime], grace: timedelta) -> bool:
    return expires_at is not None and now <= expires_at + grace


class TokenCheck(ScanCheck):
    """Compare the scanned token with the device's current and previous token.

    Only server time is used. The previous token keeps working for the grace
    window after it was replaced, so a scan racing a display refresh still passes.
    """

    enforce_expiry = True

    def __init__(self, *, grace_seconds: int):
        self._grace = timedelta(seconds=int(grace_seconds))

    def run(self, ctx: ScanContext) -> None:
        token = ctx.payload.token
        device = ctx.device

        if _same_token(token, device.current_qr_token):
            if self.enforce_expiry and not _within(ctx.now, device.qr_token_expires_at, self._grace):
                raise ScanRejected("token_expired", "El código QR expiró, escanee nuevamente")
            return

        if _same_token(token, device.previous_qr_token):
            if not _within(ctx.now, device.previous_qr_token_expires_at, self._grace):
                raise ScanRejected("token_expired", "El código QR expiró, escanee nuevamente")
            return

        raise ScanRejected("token_invalid", "Código QR inválido")


class DynamicTokenCheck(TokenCheck):
    enforce_expiry = True


class StaticTokenCheck(TokenCheck):
    """Printed codes never expire; only a regenerated code retires them."""

    enforce_expiry = False
