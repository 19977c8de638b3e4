from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, Optional, Sequence

from ..attendance.model import AttendanceQuery, AttendanceRecord, Punch
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import format_minutes, utc_now
from ..common.paging import Page
from ..core.constants import DEFAULT_HISTORY_DAYS, DEFAULT_HISTORY_PAGE_SIZE, DEFAULT_PAGE_SIZE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository


def _punch_dict(p: Optional[Punch]) -> Optional[Dict[str, Any]]:
    if p is None:
        return None
    loc = p.location
    return {
        "time": p.time.isoformat(),
        "latitude": loc.latitude if loc else None,
        "longitude": loc.longitude if loc else None,
        "address": loc.address if loc else None,
        "is_within_office": p.is_within_office,
        "device_info": p.device_info,
    }


def to_row(r: AttendanceRecord, *, user_name: Optional[str] = None) -> Dict[str, Any]:
    """Read-model for one record, with derived display fields."""
    return {
        "attendance_id": r.attendance_id,
        "user_id": r.user_id,
        "user_name": user_name,
        "date": r.work_date.isoformat(),
        "status": r.status.value,
        "check_in": _punch_dict(r.check_in),
        "check_out": _punch_dict(r.check_out),
        "work_minutes": r.work_minutes,
        "overtime_minutes": r.overtime_minutes,
        "formatted_work_hours": format_minutes(r.work_minutes),
        "breaks": [
            {
                "start_time": b.start_time.isoformat(),
                "end_time": b.end_time.isoformat(),
                "duration_minutes": b.duration_minutes,
                "reason": b.reason,
            }
            for b in r.breaks
        ],
        "notes": r.notes,
        "is_manual_entry": r.is_manual_entry,
        "manual_entry_reason": r.manual_entry_reason,
        "approved_by": r.approved_by,
        "version": r.version,
    }


def _check_range(start: Optional[date], end: Optional[date]) -> None:
    if start and end and start > end:
        raise ValidationError("Start date must not be after end date")


class AttendanceReportService:
    """Read side: history, admin search, summaries, geo logs and geo stats."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository):
        self._attendance = attendance
        self._users = users

    def _user_filter(self, *, user_id: Optional[int], text: Optional[str]) -> Optional[Sequence[int]]:
        text = (text or "").strip()
        if not text:
            return [int(user_id)] if user_id is not None else None
        matched = list(self._users.search_ids(text))
        if user_id is not None:
            matched = [u for u in matched if u == int(user_id)]
        return matched

    def _rows(self, page: Page[AttendanceRecord]) -> Page[Dict[str, Any]]:
        names = self._users.names_for([r.user_id for r in page.items])
        return page.map(lambda r: to_row(r, user_name=names.get(r.user_id)))

    def history(
        self,
        user_id: int,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        page: int = 1,
        per_page: int = DEFAULT_HISTORY_PAGE_SIZE,
        today: Optional[date] = None,
    ) -> Page[Dict[str, Any]]:
        today = today or utc_now().date()
        end = end or today
        start = start or (end - timedelta(days=DEFAULT_HISTORY_DAYS))
        _check_range(start, end)

        result = self._attendance.query(
            AttendanceQuery(user_ids=[int(user_id)], start_date=start, end_date=end),
            page=page,
            per_page=per_page,
        )
        return result.map(to_row)

    def search(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[AttendanceStatus] = None,
        user_id: Optional[int] = None,
        text: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
        sort: Sequence[tuple[str, bool]] = (),
    ) -> Page[Dict[str, Any]]:
        _check_range(start, end)
        filters = AttendanceQuery(
            user_ids=self._user_filter(user_id=user_id, text=text),
            start_date=start,
            end_date=end,
            status=status,
        )
        return self._rows(self._attendance.query(filters, page=page, per_page=per_page, sort=sort))

    def summary(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        user_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        _check_range(start, end)
        counts = self._attendance.status_counts(
            AttendanceQuery(user_ids=[int(user_id)] if user_id is not None else None, start_date=start, end_date=end)
        )
        by_status = {c.status: c for c in counts}

        def count(status: AttendanceStatus) -> int:
            c = by_status.get(status)
            return c.count if c else 0

        total_minutes = sum(c.total_work_minutes for c in counts)
        return {
            "present": count(AttendanceStatus.PRESENT),
            "absent": count(AttendanceStatus.ABSENT),
            "late": count(AttendanceStatus.LATE),
            "half_day": count(AttendanceStatus.HALF_DAY),
            "on_leave": count(AttendanceStatus.ON_LEAVE),
            "holiday": count(AttendanceStatus.HOLIDAY),
            "weekend": count(AttendanceStatus.WEEKEND),
            "total_records": sum(c.count for c in counts),
            "total_work_minutes": total_minutes,
            "formatted_total_work_hours": format_minutes(total_minutes),
        }

    def geo_logs(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        within_office: Optional[bool] = None,
        text: Optional[str] = None,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Dict[str, Any]]:
        _check_range(start, end)
        filters = AttendanceQuery(
            user_ids=self._user_filter(user_id=None, text=text),
            start_date=start,
            end_date=end,
            within_office=within_office,
            located_only=True,
        )
        return self._rows(self._attendance.query(filters, page=page, per_page=per_page))

    def geo_stats(
        self,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Check-in location overview.

        Totals and top locations cover [start, end]; `today_stats` covers
        `today`; `remote_workers` counts distinct users who checked in outside
        the office since the first of today's month.
        """
        _check_range(start, end)
        today = today or utc_now().date()
        located = AttendanceQuery(start_date=start, end_date=end, located_only=True)

        overall = self._attendance.geo_summary(located)
        day = self._attendance.geo_summary(AttendanceQuery(start_date=today, end_date=today))
        month = self._attendance.geo_summary(AttendanceQuery(start_date=today.replace(day=1), end_date=today))
        top = self._attendance.top_locations(located)

        return {
            "total_check_ins": overall.check_ins,
            "within_office": overall.within_office,
            "outside_office": overall.outside_office,
            "remote_workers": month.outside_users,
            "today_stats": {
                "checked_in": day.check_ins,
                "checked_out": day.checked_out,
                "in_office": day.within_office,
                "remote": day.outside_office,
            },
            "top_locations": [
                {
                    "latitude": loc.latitude,
                    "longitude": loc.longitude,
                    "count": loc.count,
                    "last_used": loc.last_used.isoformat() if loc.last_used else None,
                }
                for loc in top
            ],
        }

    def outside_office(
        self,
        *,
        day: Optional[date] = None,
        page: int = 1,
        per_page: int = DEFAULT_PAGE_SIZE,
    ) -> Page[Dict[str, Any]]:
        """Records for `day` whose check-in was outside the office."""
        day = day or utc_now().date()
        filters = AttendanceQuery(start_date=day, end_date=day, within_office=False)
        return self._rows(self._attendance.query(filters, page=page, per_page=per_page))
