from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidTransition

# Fields an update may touch; identity (attendance_id, user_id, work_date) is fixed.
MUTABLE_FIELDS = frozenset(
    {
        "check_in",
        "check_out",
        "status",
        "work_minutes",
        "overtime_minutes",
        "breaks",
        "notes",
        "is_manual_entry",
        "manual_entry_reason",
        "approved_by",
    }
)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass(frozen=True)
class Punch:
    """One check-in or check-out event."""

    time: datetime
    location: Optional[Location] = None
    is_within_office: bool = False
    device_info: Optional[str] = None


@dataclass(frozen=True)
class PunchPatch:
    """Partial punch for an admin edit; None keeps the stored value."""

    time: Optional[datetime] = None
    location: Optional[Location] = None
    is_within_office: Optional[bool] = None
    device_info: Optional[str] = None


@dataclass(frozen=True)
class BreakInterval:
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    reason: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one employee's attendance for one tenant-local day."""

    attendance_id: int
    user_id: int
    work_date: date
    check_in: Optional[Punch]
    check_out: Optional[Punch]
    status: AttendanceStatus
    work_minutes: int = 0
    overtime_minutes: int = 0
    breaks: tuple[BreakInterval, ...] = ()
    notes: Optional[str] = None
    is_manual_entry: bool = False
    manual_entry_reason: Optional[str] = None
    approved_by: Optional[int] = None
    version: int = 1

    @property
    def is_checked_in(self) -> bool:
        return self.check_in is not None

    @property
    def is_checked_out(self) -> bool:
        return self.check_out is not None

    @property
    def break_minutes(self) -> int:
        return sum(b.duration_minutes for b in self.breaks)


@dataclass(frozen=True)
class NewAttendance:
    """Fields for a record that does not exist yet."""

    user_id: int
    work_date: date
    status: AttendanceStatus
    check_in: Optional[Punch] = None
    check_out: Optional[Punch] = None
    work_minutes: int = 0
    overtime_minutes: int = 0
    breaks: tuple[BreakInterval, ...] = ()
    notes: Optional[str] = None
    is_manual_entry: bool = False
    manual_entry_reason: Optional[str] = None
    approved_by: Optional[int] = None


@dataclass(frozen=True)
class AttendanceQuery:
    user_ids: Optional[Sequence[int]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[AttendanceStatus] = None
    within_office: Optional[bool] = None
    located_only: bool = False


@dataclass(frozen=True)
class StatusCount:
    status: AttendanceStatus
    count: int
    total_work_minutes: int = 0


@dataclass(frozen=True)
class GeoSummary:
    """Check-in location counts over the records matching a query."""

    check_ins: int = 0
    within_office: int = 0
    outside_office: int = 0
    checked_out: int = 0
    outside_users: int = 0


@dataclass(frozen=True)
class LocationCount:
    latitude: float
    longitude: float
    count: int
    last_used: Optional[date] = None


@dataclass(frozen=True)
class WorkHours:
    work_minutes: int
    overtime_minutes: int


# (field, ascending) pairs as produced by common.paging.sort_params
DEFAULT_SORT: tuple[tuple[str, bool], ...] = (("work_date", False),)
SORTABLE_FIELDS = ("work_date", "check_in_time", "work_minutes")


def check_changes(changes) -> None:
    """Reject updates that touch identity columns or unknown fields."""
    for name in changes:
        if name in ("attendance_id", "user_id", "work_date", "version"):
            raise InvalidTransition(f"{name} cannot be changed")
        if name not in MUTABLE_FIELDS:
            raise InvalidTransition(f"Unknown attendance field {name!r}")
