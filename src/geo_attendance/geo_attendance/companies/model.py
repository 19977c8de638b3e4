from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from ..core.constants import (
    DEFAULT_GEOFENCE_RADIUS_KM,
    DEFAULT_HALF_DAY_THRESHOLD_HOURS,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_MIN_WORK_HOURS_FOR_FULL_DAY,
    DEFAULT_TIMEZONE,
    DEFAULT_WEEKEND_DAYS,
    DEFAULT_WORK_END,
    DEFAULT_WORK_START,
)
from ..core.enums import LatePolicy


@dataclass(frozen=True)
class OfficeLocation:
    latitude: Optional[float]
    longitude: Optional[float]
    radius_km: float = DEFAULT_GEOFENCE_RADIUS_KM
    address: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSettings:
    """Per-tenant attendance rules."""

    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    half_day_threshold_hours: float = DEFAULT_HALF_DAY_THRESHOLD_HOURS
    min_work_hours_for_full_day: float = DEFAULT_MIN_WORK_HOURS_FOR_FULL_DAY
    # 0 = Sunday ... 6 = Saturday
    weekend_days: tuple[int, ...] = DEFAULT_WEEKEND_DAYS
    work_start: time = DEFAULT_WORK_START
    work_end: time = DEFAULT_WORK_END
    late_policy: LatePolicy = LatePolicy.GEOFENCE
    mark_half_day: bool = False

    @property
    def standard_day_minutes(self) -> int:
        return int(round(self.min_work_hours_for_full_day * 60))

    @property
    def half_day_threshold_minutes(self) -> int:
        return int(round(self.half_day_threshold_hours * 60))


@dataclass(frozen=True)
class Company:
    company_id: int
    name: str
    office: Optional[OfficeLocation] = None
    settings: AttendanceSettings = field(default_factory=AttendanceSettings)
    timezone: str = DEFAULT_TIMEZONE
    holidays: frozenset[date] = frozenset()
