from __future__ import annotations

from datetime import date, datetime, timedelta

from ...common.datetime_utils import whole_minutes
from ...companies.model import AttendanceSettings
from ...core.enums import AttendanceStatus
from .base import StatusDecision
from .geofence_strategy import GeofenceStrategy


class ClockStrategy(GeofenceStrategy):
    """Late when the check-in comes after work_start + late_threshold_minutes.

    Location does not affect the status under this policy; the geofence flag is
    still stored on the punch.
    """

    def decide_checkin(
        self,
        *,
        local_now: datetime,
        work_date: date,
        settings: AttendanceSettings,
        within_office: bool,
    ) -> StatusDecision:
        start = datetime.combine(work_date, settings.work_start)
        cutoff = start + timedelta(minutes=int(settings.late_threshold_minutes))
        now = local_now.replace(tzinfo=None)
        if now <= cutoff:
            return StatusDecision(status=AttendanceStatus.PRESENT)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            note=f"Checked in {whole_minutes(start, now)} minutes after {settings.work_start:%H:%M}",
        )
