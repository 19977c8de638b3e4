from __future__ import annotations

from datetime import date, datetime

import pytest

from geo_attendance.attendance.model import Location, Punch, PunchPatch
from geo_attendance.companies.model import OfficeLocation
from geo_attendance.core.enums import AttendanceStatus, Role
from geo_attendance.core.exceptions import (
    AuthorizationError,
    GeofenceNotConfigured,
    InvalidCoordinate,
    NotFoundError,
    StaleRecordError,
    ValidationError,
)

from conftest import BANGALORE, OUTSIDE, make_company

EMPLOYEE = 3
ADMIN = 1


@pytest.fixture
def checked_out(container, clock):
    service = container.attendance_service
    service.check_in(EMPLOYEE, latitude=OUTSIDE[0], longitude=OUTSIDE[1], device_info="pixel")
    clock.now = datetime(2026, 3, 2, 17, 0)
    return service.check_out(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])


def test_status_only_edit_keeps_punches(container, checked_out):
    record = container.attendance_service.update_record(
        current_role=Role.ADMIN,
        admin_user_id=ADMIN,
        attendance_id=checked_out.attendance_id,
        status=AttendanceStatus.PRESENT,
    )

    assert record.status == AttendanceStatus.PRESENT
    assert record.check_in == checked_out.check_in
    assert record.check_out == checked_out.check_out
    assert record.work_minutes == 480
    assert record.is_manual_entry is True
    assert record.manual_entry_reason == "Updated by admin"
    assert record.approved_by == ADMIN
    assert record.version == checked_out.version + 1


def test_punch_time_edit_merges_and_recomputes(container, checked_out):
    record = container.attendance_service.update_record(
        current_role=Role.HR,
        admin_user_id=2,
        attendance_id=checked_out.attendance_id,
        check_out=PunchPatch(time=datetime(2026, 3, 2, 19, 0)),
        reason="Stayed for the release",
    )

    assert record.check_out.time == datetime(2026, 3, 2, 19, 0)
    assert record.check_out.location == checked_out.check_out.location
    assert record.check_out.is_within_office is True
    assert record.work_minutes == 600
    assert record.overtime_minutes == 120
    assert record.status == checked_out.status
    assert record.manual_entry_reason == "Stayed for the release"


def test_location_flag_edit_keeps_time(container, checked_out):
    record = container.attendance_service.update_record(
        current_role=Role.ADMIN,
        admin_user_id=ADMIN,
        attendance_id=checked_out.attendance_id,
        check_in=PunchPatch(location=Location(*BANGALORE, "HQ"), is_within_office=True),
    )

    assert record.check_in.time == checked_out.check_in.time
    assert record.check_in.location == Location(BANGALORE[0], BANGALORE[1], "HQ")
    assert record.check_in.is_within_office is True
    assert record.check_in.device_info == "pixel"


def test_edit_adds_missing_check_out(container):
    service = container.attendance_service
    open_day = service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])

    record = service.update_record(
        current_role=Role.ADMIN,
        admin_user_id=ADMIN,
        attendance_id=open_day.attendance_id,
        check_out=PunchPatch(time=datetime(2026, 3, 2, 13, 0)),
    )

    assert record.is_checked_out
    assert record.work_minutes == 240


def test_new_punch_needs_time(container):
    service = container.attendance_service
    open_day = service.check_in(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])

    with pytest.raises(ValidationError):
        service.update_record(
            current_role=Role.ADMIN,
            admin_user_id=ADMIN,
            attendance_id=open_day.attendance_id,
            check_out=PunchPatch(is_within_office=True),
        )


def test_edit_rejects_inverted_punches(container, checked_out):
    with pytest.raises(ValidationError):
        container.attendance_service.update_record(
            current_role=Role.ADMIN,
            admin_user_id=ADMIN,
            attendance_id=checked_out.attendance_id,
            check_in=PunchPatch(time=datetime(2026, 3, 2, 18, 0)),
        )


def test_notes_are_kept_unless_sent(container, checked_out):
    service = container.attendance_service
    noted = service.update_record(
        current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=checked_out.attendance_id, notes="Client visit"
    )
    kept = service.update_record(
        current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=checked_out.attendance_id, reason="Recheck"
    )
    cleared = service.update_record(
        current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=checked_out.attendance_id, notes=None
    )

    assert noted.notes == "Client visit"
    assert kept.notes == "Client visit"
    assert cleared.notes is None


def test_edit_of_missing_record(container):
    with pytest.raises(NotFoundError):
        container.attendance_service.update_record(current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=404)


def test_edit_requires_admin(container, checked_out):
    with pytest.raises(AuthorizationError):
        container.attendance_service.update_record(
            current_role=Role.EMPLOYEE, admin_user_id=EMPLOYEE, attendance_id=checked_out.attendance_id
        )


def test_edit_emits_event(container, sink, checked_out):
    container.attendance_service.update_record(
        current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=checked_out.attendance_id
    )

    event = sink.events[-1]
    assert event.name == "attendance.updated"
    assert event.user_id == EMPLOYEE
    assert event.payload["attendance_id"] == checked_out.attendance_id


def test_edit_is_versioned(container, checked_out):
    repo = container.attendance_repo
    repo.update(checked_out.attendance_id, expected_version=checked_out.version, changes={"notes": "bumped"})

    class StaleRead:
        def __getattr__(self, name):
            return getattr(repo, name)

        def get_by_id(self, attendance_id):
            return checked_out

    container.attendance_service._attendance = StaleRead()
    with pytest.raises(StaleRecordError):
        container.attendance_service.update_record(
            current_role=Role.ADMIN, admin_user_id=ADMIN, attendance_id=checked_out.attendance_id
        )


def test_verify_location_inside(container, clock):
    check = container.attendance_service.verify_location(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])

    assert check.within_office is True
    assert check.distance_km == pytest.approx(0.0)
    assert check.radius_km == 0.1
    assert check.office.latitude == BANGALORE[0]
    assert container.attendance_service.today(EMPLOYEE) is None


def test_verify_location_outside(container):
    check = container.attendance_service.verify_location(EMPLOYEE, latitude=OUTSIDE[0], longitude=OUTSIDE[1])

    assert check.within_office is False
    assert check.distance_km > check.radius_km


def test_verify_location_without_office(container):
    container.companies_repo.add(make_company(office=OfficeLocation(latitude=None, longitude=None)))

    with pytest.raises(GeofenceNotConfigured):
        container.attendance_service.verify_location(EMPLOYEE, latitude=BANGALORE[0], longitude=BANGALORE[1])


def test_verify_location_checks_coordinates(container):
    with pytest.raises(InvalidCoordinate):
        container.attendance_service.verify_location(EMPLOYEE, latitude=91, longitude=BANGALORE[1])


def test_local_date_follows_company_timezone(container):
    container.companies_repo.add(make_company(timezone="Asia/Kolkata"))

    assert container.attendance_service.local_date(EMPLOYEE, now=datetime(2026, 3, 2, 20, 0)) == date(2026, 3, 3)
    assert container.attendance_service.local_date(99, now=datetime(2026, 3, 2, 20, 0)) == date(2026, 3, 2)
