from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .attendance.calculator.standard_calculator import StandardWorkHourCalculator
from .attendance.factory import AttendanceStrategyFactory
from .attendance.memory_attendance_repository import InMemoryAttendanceRepository
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .companies.memory_company_repository import InMemoryCompanyRepository
from .companies.mysql_company_repository import MySQLCompanyRepository
from .companies.repository import CompanyRepository
from .core.constants import DEFAULT_GEOFENCE_RADIUS_KM
from .corrections.memory_correction_repository import InMemoryCorrectionRepository
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.repository import CorrectionRepository
from .corrections.service import CorrectionService
from .database.connection import DBConfig, DatabaseConnection
from .geofence.evaluator import GeofenceEvaluator
from .notifications.sink import LoggingNotificationSink, NotificationSink
from .reports.service import AttendanceReportService
from .users.memory_user_repository import InMemoryUserRepository
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService

BACKENDS = ("mysql", "memory")


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection | None

    users_repo: UserRepository
    companies_repo: CompanyRepository
    attendance_repo: AttendanceRepository
    corrections_repo: CorrectionRepository
    notifier: NotificationSink

    auth_service: AuthService
    attendance_service: AttendanceService
    correction_service: CorrectionService
    report_service: AttendanceReportService


def build_container(
    *,
    db_config: dict | None = None,
    backend: str = "mysql",
    default_radius_km: float = DEFAULT_GEOFENCE_RADIUS_KM,
    notifier: NotificationSink | None = None,
    **service_options: Any,
) -> Container:
    """Wire repositories and services.

    `service_options` go to AttendanceService/CorrectionService (e.g. `clock`).
    """
    if backend not in BACKENDS:
        raise ValueError(f"Unknown DB backend {backend!r} (expected one of {', '.join(BACKENDS)})")

    conn = None
    if backend == "mysql":
        if db_config is None:
            raise ValueError("db_config is required for the mysql backend")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        users_repo = MySQLUserRepository(conn)
        companies_repo = MySQLCompanyRepository(conn)
        attendance_repo = MySQLAttendanceRepository(conn)
        corrections_repo = MySQLCorrectionRepository(conn)
    else:
        users_repo = InMemoryUserRepository()
        companies_repo = InMemoryCompanyRepository()
        attendance_repo = InMemoryAttendanceRepository()
        corrections_repo = InMemoryCorrectionRepository()

    notifier = notifier or LoggingNotificationSink()

    attendance_service = AttendanceService(
        attendance_repo,
        companies_repo,
        geofence=GeofenceEvaluator(default_radius_km),
        calculator=StandardWorkHourCalculator(),
        strategy_factory=AttendanceStrategyFactory(),
        notifier=notifier,
        **service_options,
    )
    correction_service = CorrectionService(corrections_repo, notifier=notifier, **service_options)

    return Container(
        conn=conn,
        users_repo=users_repo,
        companies_repo=companies_repo,
        attendance_repo=attendance_repo,
        corrections_repo=corrections_repo,
        notifier=notifier,
        auth_service=AuthService(users_repo),
        attendance_service=attendance_service,
        correction_service=correction_service,
        report_service=AttendanceReportService(attendance_repo, users_repo),
    )
