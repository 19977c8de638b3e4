from __future__ import annotations

import threading
from dataclasses import fields, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..common.paging import Page
from ..core.exceptions import DuplicateAttendance, NotFoundError, StaleRecordError
from .model import (
    DEFAULT_SORT,
    AttendanceQuery,
    AttendanceRecord,
    GeoSummary,
    LocationCount,
    NewAttendance,
    StatusCount,
    check_changes,
)
from .repository import AttendanceRepository


def _fields_of(new: NewAttendance) -> dict:
    # Shallow on purpose: dataclasses.asdict would also convert nested Punch values.
    return {f.name: getattr(new, f.name) for f in fields(new)}


def _matches(r: AttendanceRecord, f: AttendanceQuery) -> bool:
    if f.user_ids is not None and r.user_id not in f.user_ids:
        return False
    if f.start_date and r.work_date < f.start_date:
        return False
    if f.end_date and r.work_date > f.end_date:
        return False
    if f.status is not None and r.status != f.status:
        return False
    if f.located_only and (r.check_in is None or r.check_in.location is None):
        return False
    if f.within_office is not None and (r.check_in is None or r.check_in.is_within_office != f.within_office):
        return False
    return True


def _sort_value(r: AttendanceRecord, field: str):
    if field == "check_in_time":
        # Records without a check-in sort before any timestamp.
        return (r.check_in is not None, r.check_in.time if r.check_in else datetime.min)
    return getattr(r, field)


class InMemoryAttendanceRepository(AttendanceRepository):
    """Process-local store; one lock serialises every write."""

    def __init__(self):
        self._lock = threading.Lock()
        self._next_id = 1
        self._rows: Dict[int, AttendanceRecord] = {}
        self._by_user_date: Dict[Tuple[int, date], int] = {}

    def create_if_absent(self, new: NewAttendance) -> AttendanceRecord:
        key = (int(new.user_id), new.work_date)
        with self._lock:
            if key in self._by_user_date:
                raise DuplicateAttendance(f"Attendance already exists for user {key[0]} on {key[1].isoformat()}")
            record = AttendanceRecord(attendance_id=self._next_id, version=1, **_fields_of(new))
            self._next_id += 1
            self._rows[record.attendance_id] = record
            self._by_user_date[key] = record.attendance_id
            return record

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with self._lock:
            attendance_id = self._by_user_date.get((int(user_id), work_date))
            return self._rows.get(attendance_id) if attendance_id is not None else None

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._rows.get(int(attendance_id))

    def update(self, attendance_id: int, *, expected_version: int, changes: Mapping[str, Any]) -> AttendanceRecord:
        check_changes(changes)
        with self._lock:
            current = self._rows.get(int(attendance_id))
            if current is None:
                raise NotFoundError(f"Attendance record {attendance_id} not found")
            if current.version != int(expected_version):
                raise StaleRecordError(
                    f"Attendance record {attendance_id} changed (expected v{expected_version}, found v{current.version})"
                )
            updated = replace(current, version=current.version + 1, **dict(changes))
            self._rows[updated.attendance_id] = updated
            return updated

    def query(
        self,
        filters: AttendanceQuery,
        *,
        page: int = 1,
        per_page: int = 20,
        sort: Sequence[tuple[str, bool]] = (),
    ) -> Page[AttendanceRecord]:
        with self._lock:
            rows = [r for r in self._rows.values() if _matches(r, filters)]

        # Stable sorts applied last-key-first give a multi-key ordering.
        rows.sort(key=lambda r: r.attendance_id)
        for field, ascending in reversed(list(sort or DEFAULT_SORT)):
            rows.sort(key=lambda r: _sort_value(r, field), reverse=not ascending)

        start = (page - 1) * per_page
        return Page(items=rows[start : start + per_page], total=len(rows), page=page, per_page=per_page)

    def status_counts(self, filters: AttendanceQuery) -> Sequence[StatusCount]:
        totals: Dict[Any, list[int]] = {}
        with self._lock:
            for r in self._rows.values():
                if _matches(r, filters):
                    bucket = totals.setdefault(r.status, [0, 0])
                    bucket[0] += 1
                    bucket[1] += r.work_minutes
        return [StatusCount(status=s, count=c, total_work_minutes=m) for s, (c, m) in totals.items()]

    def _checked_in(self, filters: AttendanceQuery) -> list[AttendanceRecord]:
        with self._lock:
            return [r for r in self._rows.values() if r.check_in is not None and _matches(r, filters)]

    def geo_summary(self, filters: AttendanceQuery) -> GeoSummary:
        rows = self._checked_in(filters)
        within = sum(1 for r in rows if r.check_in.is_within_office)
        return GeoSummary(
            check_ins=len(rows),
            within_office=within,
            outside_office=len(rows) - within,
            checked_out=sum(1 for r in rows if r.check_out is not None),
            outside_users=len({r.user_id for r in rows if not r.check_in.is_within_office}),
        )

    def top_locations(self, filters: AttendanceQuery, *, limit: int = 5, precision: int = 3) -> Sequence[LocationCount]:
        groups: Dict[Tuple[float, float], list] = {}
        for r in self._checked_in(filters):
            loc = r.check_in.location
            if loc is None:
                continue
            key = (round(loc.latitude, precision), round(loc.longitude, precision))
            bucket = groups.setdefault(key, [0, r.work_date])
            bucket[0] += 1
            bucket[1] = max(bucket[1], r.work_date)

        ranked = sorted(groups.items(), key=lambda kv: (-kv[1][0], kv[0]))
        return [
            LocationCount(latitude=lat, longitude=lng, count=count, last_used=last_used)
            for (lat, lng), (count, last_used) in ranked[:limit]
        ]

    def delete(self, attendance_id: int) -> bool:
        with self._lock:
            record = self._rows.pop(int(attendance_id), None)
            if record is None:
                return False
            self._by_user_date.pop((record.user_id, record.work_date), None)
            return True

