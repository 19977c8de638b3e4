from __future__ import annotations

from ...companies.model import AttendanceSettings
from ...core.enums import AttendanceStatus
from .base import StatusDecision
from .geofence_strategy import GeofenceStrategy


class HalfDayStrategy(GeofenceStrategy):
    """Checkout with fewer worked minutes than the half-day threshold."""

    def decide_checkout(
        self,
        *,
        current: AttendanceStatus,
        work_minutes: int,
        settings: AttendanceSettings,
    ) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.HALF_DAY,
            note=f"Worked {work_minutes} minutes, below the {settings.half_day_threshold_hours:g}h half-day threshold",
        )
