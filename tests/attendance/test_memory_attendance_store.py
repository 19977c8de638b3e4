from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from geo_attendance.attendance.memory_attendance_repository import InMemoryAttendanceRepository
from geo_attendance.attendance.model import AttendanceQuery, Location, NewAttendance, Punch
from geo_attendance.core.enums import AttendanceStatus
from geo_attendance.core.exceptions import DuplicateAttendance, InvalidTransition, NotFoundError, StaleRecordError


def _new(user_id=1, day=2, hour=9, status=AttendanceStatus.PRESENT, within=True, located=True):
    at = datetime(2026, 3, day, hour, 0)
    return NewAttendance(
        user_id=user_id,
        work_date=at.date(),
        status=status,
        check_in=Punch(time=at, location=Location(12.97, 77.59) if located else None, is_within_office=within),
    )


@pytest.fixture
def repo():
    return InMemoryAttendanceRepository()


def test_create_assigns_ids_and_version(repo):
    first = repo.create_if_absent(_new(day=2))
    second = repo.create_if_absent(_new(day=3))

    assert (first.attendance_id, second.attendance_id) == (1, 2)
    assert first.version == 1
    assert repo.get_for_user_and_date(1, date(2026, 3, 3)) == second


def test_duplicate_user_day_is_rejected(repo):
    repo.create_if_absent(_new())

    with pytest.raises(DuplicateAttendance):
        repo.create_if_absent(_new(hour=10))


def test_versioned_update(repo):
    record = repo.create_if_absent(_new())

    updated = repo.update(record.attendance_id, expected_version=1, changes={"work_minutes": 30})
    assert (updated.work_minutes, updated.version) == (30, 2)

    with pytest.raises(StaleRecordError):
        repo.update(record.attendance_id, expected_version=1, changes={"work_minutes": 60})
    assert repo.get_by_id(record.attendance_id).work_minutes == 30


@pytest.mark.parametrize("field", ["user_id", "work_date", "attendance_id", "version", "colour"])
def test_update_rejects_identity_and_unknown_fields(repo, field):
    record = repo.create_if_absent(_new())

    with pytest.raises(InvalidTransition):
        repo.update(record.attendance_id, expected_version=1, changes={field: 1})


def test_update_missing_record(repo):
    with pytest.raises(NotFoundError):
        repo.update(42, expected_version=1, changes={"notes": "x"})


def test_delete_frees_the_day(repo):
    record = repo.create_if_absent(_new())

    assert repo.delete(record.attendance_id) is True
    assert repo.delete(record.attendance_id) is False
    assert repo.create_if_absent(_new()).attendance_id == 2


def test_query_filters_sorts_and_pages(repo):
    for day in range(2, 9):
        repo.create_if_absent(_new(day=day, hour=8 + day % 3))
    repo.create_if_absent(_new(user_id=2, day=2))

    page = repo.query(AttendanceQuery(user_ids=[1]), page=2, per_page=3)
    assert page.total == 7
    assert page.pages == 3
    # newest first by default
    assert [r.work_date.day for r in page.items] == [5, 4, 3]

    ranged = repo.query(AttendanceQuery(start_date=date(2026, 3, 2), end_date=date(2026, 3, 3)))
    assert ranged.total == 3

    by_time = repo.query(AttendanceQuery(user_ids=[1]), sort=[("check_in_time", True)], per_page=100)
    times = [r.check_in.time for r in by_time.items]
    assert times == sorted(times)


def test_query_geo_filters(repo):
    repo.create_if_absent(_new(user_id=1, within=True))
    repo.create_if_absent(_new(user_id=2, within=False))
    repo.create_if_absent(_new(user_id=3, located=False, within=False))

    assert repo.query(AttendanceQuery(located_only=True)).total == 2
    outside = repo.query(AttendanceQuery(located_only=True, within_office=False))
    assert [r.user_id for r in outside.items] == [2]


def test_empty_user_filter_matches_nothing(repo):
    repo.create_if_absent(_new())

    assert repo.query(AttendanceQuery(user_ids=[])).total == 0


def test_status_counts(repo):
    repo.create_if_absent(_new(user_id=1))
    late = repo.create_if_absent(_new(user_id=2, status=AttendanceStatus.LATE))
    repo.update(late.attendance_id, expected_version=1, changes={"work_minutes": 400})

    counts = {c.status: (c.count, c.total_work_minutes) for c in repo.status_counts(AttendanceQuery())}

    assert counts == {AttendanceStatus.PRESENT: (1, 0), AttendanceStatus.LATE: (1, 400)}
