from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Sequence

from ...core.constants import DEFAULT_STANDARD_DAY_MINUTES
from ..model import BreakInterval, WorkHours


class WorkHourCalculator(ABC):
    """Calculator interface (Strategy Pattern for work time)."""

    @abstractmethod
    def compute(
        self,
        check_in_time: datetime,
        check_out_time: datetime,
        breaks: Sequence[BreakInterval] = (),
        *,
        standard_day_minutes: int = DEFAULT_STANDARD_DAY_MINUTES,
    ) -> WorkHours:
        raise NotImplementedError
