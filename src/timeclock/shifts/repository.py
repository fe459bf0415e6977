from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import Shift


class ShiftRepository(Protocol):
    def list_for_organization(self, organization_id: int) -> Sequence[Shift]:
        raise NotImplementedError

    def get_by_id(self, shift_id: int) -> Optional[Shift]:
        raise NotImplementedError

    def get_by_name(self, organization_id: int, shift_name: str) -> Optional[Shift]:
        raise NotImplementedError

    def create(
        self,
        *,
        organization_id: int,
        shift_name: str,
        start_time: time,
        end_time: time,
        break_minutes: int,
        is_night_shift: bool,
    ) -> int:
        raise NotImplementedError
