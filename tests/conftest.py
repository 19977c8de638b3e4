from __future__ import annotations

from datetime import date, datetime

import pytest
from werkzeug.security import generate_password_hash

from geo_attendance.companies.model import AttendanceSettings, Company, OfficeLocation
from geo_attendance.container import build_container
from geo_attendance.core.enums import Role
from geo_attendance.notifications.sink import RecordingNotificationSink
from geo_attendance.users.model import User

BANGALORE = (12.9716, 77.5946)
# ~1.8 km east-north-east of the office
OUTSIDE = (12.9800, 77.6100)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_company(*, company_id: int = 1, office: OfficeLocation | None = None, timezone: str = "UTC", **settings) -> Company:
    return Company(
        company_id=company_id,
        name="Acme",
        office=office if office is not None else OfficeLocation(latitude=BANGALORE[0], longitude=BANGALORE[1], radius_km=0.1),
        settings=AttendanceSettings(**settings),
        timezone=timezone,
        holidays=frozenset({date(2026, 1, 26)}),
    )


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 3, 2, 9, 0))


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def container(clock, sink):
    c = build_container(backend="memory", notifier=sink, clock=clock)
    c.companies_repo.add(make_company())

    people = [
        (1, "Admin Demo", "admin", Role.ADMIN),
        (2, "Harini HR", "hr", Role.HR),
        (3, "Arjun Kumar", "arjun", Role.EMPLOYEE),
        (4, "Isha Rao", "isha", Role.INTERN),
    ]
    for user_id, full_name, username, role in people:
        c.users_repo.add(
            User(
                user_id=user_id,
                full_name=full_name,
                username=username,
                password_hash=generate_password_hash("secret123"),
                role=role,
                company_id=1,
            )
        )
        c.companies_repo.assign_user(user_id, 1)
    return c
