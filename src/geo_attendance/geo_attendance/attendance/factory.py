from __future__ import annotations

from dataclasses import dataclass

from ..companies.model import AttendanceSettings
from ..core.enums import AttendanceStatus, LatePolicy
from .strategies.base import AttendanceStrategy
from .strategies.clock_strategy import ClockStrategy
from .strategies.geofence_strategy import GeofenceStrategy
from .strategies.half_day_strategy import HalfDayStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on tenant rules."""

    def for_checkin(self, *, settings: AttendanceSettings) -> AttendanceStrategy:
        if settings.late_policy == LatePolicy.CLOCK:
            return ClockStrategy()
        return GeofenceStrategy()

    def for_checkout(self, *, settings: AttendanceSettings, current_status: AttendanceStatus, work_minutes: int) -> AttendanceStrategy:
        if settings.mark_half_day and work_minutes < settings.half_day_threshold_minutes:
            return HalfDayStrategy()
        return GeofenceStrategy()
