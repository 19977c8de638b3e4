from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ...common.datetime_utils import whole_minutes
from ...core.constants import DEFAULT_STANDARD_DAY_MINUTES
from ..model import BreakInterval, WorkHours
from .base import WorkHourCalculator


class StandardWorkHourCalculator(WorkHourCalculator):
    """Standard rule: (out - in) - breaks, not below 0; overtime beyond the standard day."""

    def compute(
        self,
        check_in_time: datetime,
        check_out_time: datetime,
        breaks: Sequence[BreakInterval] = (),
        *,
        standard_day_minutes: int = DEFAULT_STANDARD_DAY_MINUTES,
    ) -> WorkHours:
        raw = whole_minutes(check_in_time, check_out_time)
        break_minutes = sum(int(b.duration_minutes) for b in breaks)
        work = max(raw - break_minutes, 0)
        overtime = max(work - int(standard_day_minutes), 0)
        return WorkHours(work_minutes=work, overtime_minutes=overtime)
