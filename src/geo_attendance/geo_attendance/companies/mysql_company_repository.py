from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.enums import LatePolicy
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, normalize_mysql_time
from .model import AttendanceSettings, Company, OfficeLocation
from .repository import CompanyRepository

_COLUMNS = """
    c.company_id, c.company_name, c.office_latitude, c.office_longitude, c.office_radius_km,
    c.office_address, c.timezone, c.late_threshold_minutes, c.half_day_threshold_hours,
    c.min_work_hours_for_full_day, c.weekend_days, c.work_start, c.work_end,
    c.late_policy, c.mark_half_day
"""


def _weekend_days(raw: Optional[str]) -> tuple[int, ...]:
    return tuple(int(p) for p in (raw or "").split(",") if p.strip())


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


class MySQLCompanyRepository(CompanyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, r: Dict[str, Any]) -> Company:
        cur.execute("SELECT holiday_date FROM company_holidays WHERE company_id=%s", (int(r["company_id"]),))
        holidays = frozenset(h["holiday_date"] for h in fetchall(cur))

        settings = AttendanceSettings(
            late_threshold_minutes=int(r["late_threshold_minutes"]),
            half_day_threshold_hours=float(r["half_day_threshold_hours"]),
            min_work_hours_for_full_day=float(r["min_work_hours_for_full_day"]),
            weekend_days=_weekend_days(r.get("weekend_days")),
            work_start=normalize_mysql_time(r["work_start"]),
            work_end=normalize_mysql_time(r["work_end"]),
            late_policy=LatePolicy(r.get("late_policy") or LatePolicy.GEOFENCE.value),
            mark_half_day=bool(r.get("mark_half_day")),
        )
        office = OfficeLocation(
            latitude=_optional_float(r.get("office_latitude")),
            longitude=_optional_float(r.get("office_longitude")),
            radius_km=float(r["office_radius_km"]),
            address=r.get("office_address"),
        )
        return Company(
            company_id=int(r["company_id"]),
            name=r["company_name"],
            office=office,
            settings=settings,
            timezone=r.get("timezone") or "UTC",
            holidays=holidays,
        )

    def get_by_id(self, company_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM companies c WHERE c.company_id=%s", (int(company_id),))
            rows = fetchall(cur)
            return self._load(cur, rows[0]) if rows else None

    def get_for_user(self, user_id: int) -> Optional[Company]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM companies c
                JOIN users u ON u.company_id = c.company_id
                WHERE u.user_id=%s
                """,
                (int(user_id),),
            )
            rows = fetchall(cur)
            return self._load(cur, rows[0]) if rows else None
