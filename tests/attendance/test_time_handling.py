from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from geo_attendance.attendance.model import Punch
from geo_attendance.common.datetime_utils import parse_iso_datetime, to_local, to_utc
from geo_attendance.container import build_container
from geo_attendance.core.enums import Role
from geo_attendance.core.exceptions import ValidationError
from geo_attendance.notifications.sink import RecordingNotificationSink

from conftest import BANGALORE, make_company

EMPLOYEE = 3
INTERN = 4


def _local_days(tz: str, before: datetime, after: datetime) -> set[date]:
    zone = ZoneInfo(tz)
    return {before.astimezone(zone).date(), after.astimezone(zone).date()}


@pytest.mark.parametrize("tz", ["Pacific/Kiritimati", "Pacific/Pago_Pago"])
def test_default_clock_dates_by_company_timezone(tz):
    # No injected clock; the two zones are 25 hours apart, so whatever the
    # host timezone is it cannot be the local day of both.
    c = build_container(backend="memory", notifier=RecordingNotificationSink())
    c.companies_repo.add(make_company(timezone=tz))
    c.companies_repo.assign_user(EMPLOYEE, 1)

    before = datetime.now(timezone.utc)
    record = c.attendance_service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])
    after = datetime.now(timezone.utc)

    assert record.work_date in _local_days(tz, before, after)
    assert record.check_in.time.tzinfo is None
    assert before.replace(tzinfo=None) - timedelta(seconds=1) <= record.check_in.time <= after.replace(tzinfo=None)
    assert c.attendance_service.today(EMPLOYEE) == record


def test_default_clock_keeps_far_apart_tenants_on_their_own_days():
    c = build_container(backend="memory", notifier=RecordingNotificationSink())
    c.companies_repo.add(make_company(company_id=1, timezone="Pacific/Kiritimati"))
    c.companies_repo.add(make_company(company_id=2, timezone="Pacific/Pago_Pago"))
    c.companies_repo.assign_user(EMPLOYEE, 1)
    c.companies_repo.assign_user(INTERN, 2)

    before = datetime.now(timezone.utc)
    east = c.attendance_service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])
    west = c.attendance_service.check_in(INTERN, latitude=BANGALORE[0], longitude=BANGALORE[1])
    after = datetime.now(timezone.utc)

    assert east.work_date in _local_days("Pacific/Kiritimati", before, after)
    assert west.work_date in _local_days("Pacific/Pago_Pago", before, after)
    assert east.work_date > west.work_date


def test_aware_clock_is_stored_as_naive_utc(container, clock):
    clock.now = datetime(2026, 3, 2, 14, 30, tzinfo=ZoneInfo("Asia/Kolkata"))

    record = container.attendance_service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])

    assert record.check_in.time == datetime(2026, 3, 2, 9, 0)


def test_parse_iso_datetime_normalises_to_utc():
    assert parse_iso_datetime("2026-03-02T14:30:00+05:30") == datetime(2026, 3, 2, 9, 0)
    assert parse_iso_datetime("2026-03-02T09:00:00") == datetime(2026, 3, 2, 9, 0)
    assert parse_iso_datetime("2026-03-02T09:00:00+00:00").tzinfo is None


def test_parse_iso_datetime_rejects_garbage():
    with pytest.raises(ValidationError):
        parse_iso_datetime("yesterday")


def test_to_local_reads_naive_values_as_utc():
    local = to_local(datetime(2026, 3, 2, 20, 0), "Asia/Kolkata")

    assert local.date() == date(2026, 3, 3)
    assert to_utc(local) == datetime(2026, 3, 2, 20, 0)


def test_manual_entry_accepts_mixed_offsets(container):
    record = container.attendance_service.manual_entry(
        current_role=Role.ADMIN,
        admin_user_id=1,
        user_id=EMPLOYEE,
        work_date=date(2026, 3, 2),
        check_in=Punch(time=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)),
        check_out=Punch(time=datetime(2026, 3, 2, 18, 0)),
    )

    assert record.work_minutes == 540
    assert record.check_in.time == datetime(2026, 3, 2, 9, 0)
    assert record.check_in.time.tzinfo is None


def test_manual_entry_compares_offsets_in_utc(container):
    # 14:00 at +05:30 is 08:30 UTC, before the naive 09:00 check-out.
    record = container.attendance_service.manual_entry(
        current_role=Role.ADMIN,
        admin_user_id=1,
        user_id=EMPLOYEE,
        work_date=date(2026, 3, 2),
        check_in=Punch(time=datetime(2026, 3, 2, 14, 0, tzinfo=ZoneInfo("Asia/Kolkata"))),
        check_out=Punch(time=datetime(2026, 3, 2, 9, 0)),
    )

    assert record.work_minutes == 30


def test_break_with_mixed_offsets(container, clock):
    service = container.attendance_service
    service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])
    clock.now = datetime(2026, 3, 2, 18, 0)
    service.check_out(EMPLOYEE)

    record = service.add_break(
        EMPLOYEE,
        start_time=datetime(2026, 3, 2, 18, 30, tzinfo=ZoneInfo("Asia/Kolkata")),
        end_time=datetime(2026, 3, 2, 13, 30),
    )

    assert record.breaks[-1].start_time == datetime(2026, 3, 2, 13, 0)
    assert record.breaks[-1].duration_minutes == 30
    assert record.work_minutes == 510


def test_manual_entry_with_check_out_only(container):
    record = container.attendance_service.manual_entry(
        current_role=Role.ADMIN,
        admin_user_id=1,
        user_id=EMPLOYEE,
        work_date=date(2026, 3, 2),
        check_out=Punch(time=datetime(2026, 3, 2, 18, 0)),
        reason="Badge reader missed the morning swipe",
    )

    assert record.check_in is None
    assert record.check_out.time == datetime(2026, 3, 2, 18, 0)
    assert record.work_minutes == 0
    assert record.overtime_minutes == 0
    assert record.is_manual_entry is True
