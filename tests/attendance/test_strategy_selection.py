from __future__ import annotations

from datetime import date, datetime, time

import pytest

from geo_attendance.attendance.factory import AttendanceStrategyFactory
from geo_attendance.attendance.strategies.clock_strategy import ClockStrategy
from geo_attendance.attendance.strategies.geofence_strategy import GeofenceStrategy
from geo_attendance.attendance.strategies.half_day_strategy import HalfDayStrategy
from geo_attendance.companies.model import AttendanceSettings
from geo_attendance.core.enums import AttendanceStatus, LatePolicy

WORK_DATE = date(2026, 3, 2)


def test_factory_defaults_to_geofence_policy():
    strategy = AttendanceStrategyFactory().for_checkin(settings=AttendanceSettings())

    assert isinstance(strategy, GeofenceStrategy)
    assert not isinstance(strategy, ClockStrategy)


def test_factory_clock_policy():
    strategy = AttendanceStrategyFactory().for_checkin(settings=AttendanceSettings(late_policy=LatePolicy.CLOCK))

    assert isinstance(strategy, ClockStrategy)


@pytest.mark.parametrize(
    "mark_half_day,minutes,expected",
    [
        (False, 10, GeofenceStrategy),
        (True, 239, HalfDayStrategy),
        (True, 240, GeofenceStrategy),
        (True, 480, GeofenceStrategy),
    ],
)
def test_factory_checkout_half_day(mark_half_day, minutes, expected):
    strategy = AttendanceStrategyFactory().for_checkout(
        settings=AttendanceSettings(mark_half_day=mark_half_day),
        current_status=AttendanceStatus.PRESENT,
        work_minutes=minutes,
    )

    assert type(strategy) is expected


def test_geofence_strategy_outside_is_late_with_note():
    decision = GeofenceStrategy().decide_checkin(
        local_now=datetime(2026, 3, 2, 8, 0), work_date=WORK_DATE, settings=AttendanceSettings(), within_office=False
    )

    assert decision.status == AttendanceStatus.LATE
    assert "outside" in decision.note


def test_geofence_strategy_checkout_keeps_status():
    decision = GeofenceStrategy().decide_checkout(
        current=AttendanceStatus.LATE, work_minutes=480, settings=AttendanceSettings()
    )

    assert decision.status == AttendanceStatus.LATE
    assert decision.note is None


def test_clock_strategy_uses_custom_start_and_threshold():
    settings = AttendanceSettings(late_policy=LatePolicy.CLOCK, work_start=time(10, 0), late_threshold_minutes=5)
    strategy = ClockStrategy()

    on_time = strategy.decide_checkin(
        local_now=datetime(2026, 3, 2, 10, 5), work_date=WORK_DATE, settings=settings, within_office=False
    )
    late = strategy.decide_checkin(
        local_now=datetime(2026, 3, 2, 10, 6), work_date=WORK_DATE, settings=settings, within_office=True
    )

    assert on_time.status == AttendanceStatus.PRESENT
    assert late.status == AttendanceStatus.LATE
    assert "6 minutes after 10:00" in late.note
