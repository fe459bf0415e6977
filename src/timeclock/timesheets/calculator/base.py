from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ...attendance.model import AttendanceEvent
from ..model import DayMeasure


class WorkedTimeCalculator(ABC):
    """Calculator interface (Strategy Pattern for timesheets)."""

    @abstractmethod
    def measure(self, events: Sequence[AttendanceEvent]) -> DayMeasure:
        raise NotImplementedError
