from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from mysql.connector.errors import IntegrityError

from ..common.datetime_utils import to_utc
from ..common.paging import Page
from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateAttendance, NotFoundError, StaleRecordError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, is_duplicate_key
from .model import (
    DEFAULT_SORT,
    AttendanceQuery,
    AttendanceRecord,
    BreakInterval,
    GeoSummary,
    Location,
    LocationCount,
    NewAttendance,
    Punch,
    StatusCount,
    check_changes,
)
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date,
    check_in_time, check_in_latitude, check_in_longitude, check_in_address,
    check_in_within_office, check_in_device_info,
    check_out_time, check_out_latitude, check_out_longitude, check_out_address,
    check_out_within_office, check_out_device_info,
    status, work_minutes, overtime_minutes, breaks_json, notes,
    is_manual_entry, manual_entry_reason, approved_by, version
"""

_SORT_COLUMNS = {
    "work_date": "work_date",
    "check_in_time": "check_in_time",
    "work_minutes": "work_minutes",
}


def _punch_columns(prefix: str, punch: Optional[Punch]) -> Dict[str, Any]:
    loc = punch.location if punch else None
    return {
        f"{prefix}_time": to_utc(punch.time) if punch else None,
        f"{prefix}_latitude": loc.latitude if loc else None,
        f"{prefix}_longitude": loc.longitude if loc else None,
        f"{prefix}_address": loc.address if loc else None,
        f"{prefix}_within_office": 1 if punch and punch.is_within_office else 0,
        f"{prefix}_device_info": punch.device_info if punch else None,
    }


def _punch_from_row(prefix: str, r: Dict[str, Any]) -> Optional[Punch]:
    t = r.get(f"{prefix}_time")
    if t is None:
        return None
    lat = r.get(f"{prefix}_latitude")
    lng = r.get(f"{prefix}_longitude")
    location = None
    if lat is not None and lng is not None:
        location = Location(latitude=float(lat), longitude=float(lng), address=r.get(f"{prefix}_address"))
    return Punch(
        time=t,
        location=location,
        is_within_office=bool(r.get(f"{prefix}_within_office")),
        device_info=r.get(f"{prefix}_device_info"),
    )


def _breaks_to_json(breaks: Sequence[BreakInterval]) -> Optional[str]:
    if not breaks:
        return None
    return json.dumps(
        [
            {
                "start_time": b.start_time.isoformat(),
                "end_time": b.end_time.isoformat(),
                "duration_minutes": int(b.duration_minutes),
                "reason": b.reason,
            }
            for b in breaks
        ]
    )


def _breaks_from_json(raw: Optional[str]) -> tuple[BreakInterval, ...]:
    if not raw:
        return ()
    return tuple(
        BreakInterval(
            start_time=datetime.fromisoformat(b["start_time"]),
            end_time=datetime.fromisoformat(b["end_time"]),
            duration_minutes=int(b["duration_minutes"]),
            reason=b.get("reason"),
        )
        for b in json.loads(raw)
    )


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        check_in=_punch_from_row("check_in", r),
        check_out=_punch_from_row("check_out", r),
        status=AttendanceStatus(r["status"]),
        work_minutes=int(r.get("work_minutes") or 0),
        overtime_minutes=int(r.get("overtime_minutes") or 0),
        breaks=_breaks_from_json(r.get("breaks_json")),
        notes=r.get("notes"),
        is_manual_entry=bool(r.get("is_manual_entry")),
        manual_entry_reason=r.get("manual_entry_reason"),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        version=int(r.get("version") or 1),
    )


def _columns_for(changes: Mapping[str, Any]) -> Dict[str, Any]:
    cols: Dict[str, Any] = {}
    for name, value in changes.items():
        if name in ("check_in", "check_out"):
            cols.update(_punch_columns(name, value))
        elif name == "breaks":
            cols["breaks_json"] = _breaks_to_json(value)
        elif name == "status":
            cols["status"] = AttendanceStatus(value).value
        elif name == "is_manual_entry":
            cols["is_manual_entry"] = 1 if value else 0
        else:
            cols[name] = value
    return cols


def _where(filters: AttendanceQuery) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if filters.user_ids is not None:
        clauses.append(f"user_id IN ({in_clause(filters.user_ids)})")
        params.extend(int(u) for u in filters.user_ids)
    if filters.start_date:
        clauses.append("work_date >= %s")
        params.append(filters.start_date)
    if filters.end_date:
        clauses.append("work_date <= %s")
        params.append(filters.end_date)
    if filters.status is not None:
        clauses.append("status=%s")
        params.append(filters.status.value)
    if filters.located_only:
        clauses.append("check_in_latitude IS NOT NULL AND check_in_longitude IS NOT NULL")
    if filters.within_office is not None:
        clauses.append("check_in_time IS NOT NULL AND check_in_within_office=%s")
        params.append(1 if filters.within_office else 0)
    return " AND ".join(clauses), params


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_if_absent(self, new: NewAttendance) -> AttendanceRecord:
        cols = {
            "user_id": int(new.user_id),
            "work_date": new.work_date,
            **_columns_for(
                {
                    "check_in": new.check_in,
                    "check_out": new.check_out,
                    "status": new.status,
                    "work_minutes": int(new.work_minutes),
                    "overtime_minutes": int(new.overtime_minutes),
                    "breaks": new.breaks,
                    "notes": new.notes,
                    "is_manual_entry": new.is_manual_entry,
                    "manual_entry_reason": new.manual_entry_reason,
                    "approved_by": new.approved_by,
                }
            ),
        }
        names = ", ".join(cols)
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"INSERT INTO attendance_records({names}, version) VALUES({in_clause(cols)}, 1)",
                    tuple(cols.values()),
                )
                attendance_id = int(cur.lastrowid)
        except IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateAttendance(
                    f"Attendance already exists for user {new.user_id} on {new.work_date.isoformat()}"
                ) from e
            raise

        record = self.get_by_id(attendance_id)
        if record is None:
            raise NotFoundError(f"Attendance record {attendance_id} not found after insert")
        return record

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def update(self, attendance_id: int, *, expected_version: int, changes: Mapping[str, Any]) -> AttendanceRecord:
        check_changes(changes)
        cols = _columns_for(changes)
        assignments = ", ".join([f"{name}=%s" for name in cols] + ["version=version+1"])

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s AND version=%s",
                (*cols.values(), int(attendance_id), int(expected_version)),
            )
            if cur.rowcount == 0:
                cur.execute("SELECT version FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
                current = fetchone(cur)
                if not current:
                    raise NotFoundError(f"Attendance record {attendance_id} not found")
                raise StaleRecordError(
                    f"Attendance record {attendance_id} changed "
                    f"(expected v{expected_version}, found v{current['version']})"
                )
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return _to_record(fetchone(cur))

    def query(
        self,
        filters: AttendanceQuery,
        *,
        page: int = 1,
        per_page: int = 20,
        sort: Sequence[tuple[str, bool]] = (),
    ) -> Page[AttendanceRecord]:
        if filters.user_ids is not None and not filters.user_ids:
            return Page(items=[], total=0, page=page, per_page=per_page)

        where, params = _where(filters)
        order = ", ".join(
            f"{_SORT_COLUMNS[name]} {'ASC' if asc else 'DESC'}" for name, asc in (sort or DEFAULT_SORT) if name in _SORT_COLUMNS
        )
        order = f"{order}, attendance_id ASC" if order else "attendance_id ASC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM attendance_records WHERE {where}", tuple(params))
            total = int(fetchall(cur)[0]["total"])
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY {order} LIMIT %s OFFSET %s",
                (*params, int(per_page), int((page - 1) * per_page)),
            )
            items = [_to_record(r) for r in fetchall(cur)]
        return Page(items=items, total=total, page=page, per_page=per_page)

    def status_counts(self, filters: AttendanceQuery) -> Sequence[StatusCount]:
        if filters.user_ids is not None and not filters.user_ids:
            return []

        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT status, COUNT(*) AS cnt, COALESCE(SUM(work_minutes), 0) AS minutes
                FROM attendance_records
                WHERE {where}
                GROUP BY status
                """,
                tuple(params),
            )
            return [
                StatusCount(
                    status=AttendanceStatus(r["status"]),
                    count=int(r["cnt"]),
                    total_work_minutes=int(r["minutes"] or 0),
                )
                for r in fetchall(cur)
            ]

    def geo_summary(self, filters: AttendanceQuery) -> GeoSummary:
        if filters.user_ids is not None and not filters.user_ids:
            return GeoSummary()

        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS check_ins,
                       COALESCE(SUM(check_in_within_office = 1), 0) AS within_office,
                       COUNT(check_out_time) AS checked_out,
                       COUNT(DISTINCT CASE WHEN check_in_within_office = 0 THEN user_id END) AS outside_users
                FROM attendance_records
                WHERE {where} AND check_in_time IS NOT NULL
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
        check_ins = int(r.get("check_ins") or 0)
        within = int(r.get("within_office") or 0)
        return GeoSummary(
            check_ins=check_ins,
            within_office=within,
            outside_office=check_ins - within,
            checked_out=int(r.get("checked_out") or 0),
            outside_users=int(r.get("outside_users") or 0),
        )

    def top_locations(self, filters: AttendanceQuery, *, limit: int = 5, precision: int = 3) -> Sequence[LocationCount]:
        if filters.user_ids is not None and not filters.user_ids:
            return []

        where, params = _where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT ROUND(check_in_latitude, %s) AS lat, ROUND(check_in_longitude, %s) AS lng,
                       COUNT(*) AS cnt, MAX(work_date) AS last_used
                FROM attendance_records
                WHERE {where} AND check_in_time IS NOT NULL AND check_in_latitude IS NOT NULL
                GROUP BY lat, lng
                ORDER BY cnt DESC, lat ASC, lng ASC
                LIMIT %s
                """,
                (int(precision), int(precision), *params, int(limit)),
            )
            return [
                LocationCount(
                    latitude=float(r["lat"]),
                    longitude=float(r["lng"]),
                    count=int(r["cnt"]),
                    last_used=r.get("last_used"),
                )
                for r in fetchall(cur)
            ]

    def delete(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0
