from __future__ import annotations

from datetime import date, datetime

from ...companies.model import AttendanceSettings
from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class GeofenceStrategy(AttendanceStrategy):
    """Baseline: inside the office radius is PRESENT, anywhere else is LATE."""

    def decide_checkin(
        self,
        *,
        local_now: datetime,
        work_date: date,
        settings: AttendanceSettings,
        within_office: bool,
    ) -> StatusDecision:
        if within_office:
            return StatusDecision(status=AttendanceStatus.PRESENT)
        return StatusDecision(status=AttendanceStatus.LATE, note="Checked in outside the office geofence")

    def decide_checkout(
        self,
        *,
        current: AttendanceStatus,
        work_minutes: int,
        settings: AttendanceSettings,
    ) -> StatusDecision:
        return StatusDecision(status=current)
