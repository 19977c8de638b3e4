from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from geo_attendance.attendance.calculator.standard_calculator import StandardWorkHourCalculator
from geo_attendance.attendance.model import BreakInterval


def _break(minutes: int) -> BreakInterval:
    start = datetime(2026, 3, 2, 13, 0)
    return BreakInterval(start_time=start, end_time=start + timedelta(minutes=minutes), duration_minutes=minutes)


def test_standard_day_with_lunch_has_no_overtime():
    hours = StandardWorkHourCalculator().compute(
        datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 18, 0), [_break(60)]
    )

    assert hours.work_minutes == 480
    assert hours.overtime_minutes == 0


def test_late_checkout_counts_overtime():
    hours = StandardWorkHourCalculator().compute(
        datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 19, 30), [_break(60)]
    )

    assert hours.work_minutes == 570
    assert hours.overtime_minutes == 90


def test_partial_minutes_are_floored():
    hours = StandardWorkHourCalculator().compute(datetime(2026, 3, 2, 9, 0, 0), datetime(2026, 3, 2, 9, 10, 59))

    assert hours.work_minutes == 10


def test_breaks_longer_than_the_day_never_go_negative():
    hours = StandardWorkHourCalculator().compute(
        datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 9, 30), [_break(45)]
    )

    assert hours.work_minutes == 0
    assert hours.overtime_minutes == 0


def test_custom_standard_day():
    hours = StandardWorkHourCalculator().compute(
        datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 17, 0), standard_day_minutes=420
    )

    assert hours.overtime_minutes == 60


@pytest.mark.parametrize("extra", [1, 15, 90, 600])
def test_later_checkout_never_reduces_work(extra):
    calc = StandardWorkHourCalculator()
    check_in = datetime(2026, 3, 2, 9, 0)
    base = calc.compute(check_in, datetime(2026, 3, 2, 17, 0), [_break(30)])
    later = calc.compute(check_in, datetime(2026, 3, 2, 17, 0) + timedelta(minutes=extra), [_break(30)])

    assert later.work_minutes >= base.work_minutes
    assert later.overtime_minutes >= base.overtime_minutes


def test_is_idempotent():
    calc = StandardWorkHourCalculator()
    args = (datetime(2026, 3, 2, 9, 0), datetime(2026, 3, 2, 18, 0), [_break(60)])

    assert calc.compute(*args) == calc.compute(*args)
