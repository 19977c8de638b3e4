from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.paging import Page
from .model import AttendanceQuery, AttendanceRecord, GeoSummary, LocationCount, NewAttendance, StatusCount


class AttendanceRepository(Protocol):
    """Storage for attendance records.

    Implementations guarantee at most one record per (user_id, work_date) and
    never change a record's user_id or work_date.
    """

    def create_if_absent(self, new: NewAttendance) -> AttendanceRecord:
        """Insert atomically; DuplicateAttendance if (user, date) already exists."""
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def update(self, attendance_id: int, *, expected_version: int, changes: Mapping[str, Any]) -> AttendanceRecord:
        """Apply `changes` only if the stored version still equals `expected_version`.

        NotFoundError when the record is gone, StaleRecordError when the
        version moved, InvalidTransition for identity or unknown fields.
        """
        raise NotImplementedError

    def query(
        self,
        filters: AttendanceQuery,
        *,
        page: int = 1,
        per_page: int = 20,
        sort: Sequence[tuple[str, bool]] = (),
    ) -> Page[AttendanceRecord]:
        raise NotImplementedError

    def status_counts(self, filters: AttendanceQuery) -> Sequence[StatusCount]:
        raise NotImplementedError

    def geo_summary(self, filters: AttendanceQuery) -> GeoSummary:
        """Counts over check-ins only; records without a check-in are ignored."""
        raise NotImplementedError

    def top_locations(self, filters: AttendanceQuery, *, limit: int = 5, precision: int = 3) -> Sequence[LocationCount]:
        """Most used check-in positions, coordinates rounded to `precision` decimals."""
        raise NotImplementedError

    def delete(self, attendance_id: int) -> bool:
        raise NotImplementedError
