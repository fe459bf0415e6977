from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import DeviceType
from .model import TimeClock


class TimeClockRepository(Protocol):
    def get_by_id(self, device_id: int) -> Optional[TimeClock]:
        raise NotImplementedError

    def list_for_organization(
        self,
        organization_id: int,
        *,
        include_inactive: bool = True,
        search: Optional[str] = None,
        device_type: Optional[DeviceType] = None,
    ) -> Sequence[TimeClock]:
        raise NotImplementedError

    def code_exists(self, organization_id: int, code: str, *, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def create(self, device: TimeClock) -> int:
        """Insert `device` (its device_id is ignored) and return the new id."""

        raise NotImplementedError

    def update(self, device: TimeClock) -> bool:
        raise NotImplementedError

    def delete(self, device_id: int) -> bool:
        raise NotImplementedError
