"""
Tests for status classification, minimum-hours gate and deadlines
"""
from datetime import date, time, timedelta
from decimal import Decimal

import pytest

from app.core.errors import MinimumHoursNotMet
from app.models.attendance_record import AttendanceStatus
from app.schemas.config import AttendanceConfigSnapshot
from app.services import attendance_policy as policy
from app.utils.datetime_utils import combine_local

DAY = date(2026, 3, 2)
CONFIG = AttendanceConfigSnapshot(company_id=1)
TIMING = policy.ShiftTiming(time(9, 0), time(18, 0), 10)


def _at(hour, minute=0, second=0, day=DAY):
    return combine_local(day, time(hour, minute, second))


@pytest.mark.parametrize("clock_in,expected", [
    (_at(9, 8), AttendanceStatus.ON_TIME),
    (_at(9, 10), AttendanceStatus.ON_TIME),
    (_at(9, 10, 1), AttendanceStatus.LATE),
    (_at(9, 15), AttendanceStatus.LATE),
    (_at(13, 0), AttendanceStatus.LATE),
    (_at(13, 1), AttendanceStatus.HALF_DAY),
    (_at(8, 30), AttendanceStatus.ON_TIME),
])
def test_classification_scenarios(clock_in, expected):
    assert policy.classify_for_day(clock_in, DAY, TIMING, CONFIG) == expected


def test_no_clock_in_is_absent():
    assert policy.classify(None, _at(9, 0), 10, 4.0) == AttendanceStatus.ABSENT


def test_override_short_circuits_time_classification():
    assert policy.classify(_at(13, 30), _at(9, 0), 10, 4.0, AttendanceStatus.LEAVE) == AttendanceStatus.LEAVE
    assert policy.classify(None, _at(9, 0), 10, 4.0, AttendanceStatus.HOLIDAY) == AttendanceStatus.HOLIDAY


def test_timing_falls_back_to_config_defaults():
    timing = policy.timing_for(None, CONFIG)
    assert timing.start_time == time(9, 0)
    assert timing.end_time == time(18, 0)
    assert timing.grace_period_minutes == 10
    assert timing.shift_id is None


def test_overnight_shift_ends_next_day():
    night = policy.ShiftTiming(time(22, 0), time(6, 0), 15)
    start, end = policy.shift_window(DAY, night)
    assert start == _at(22, 0)
    assert end == _at(6, 0, day=DAY + timedelta(days=1))


def test_hours_worked_is_decimal_and_floored():
    assert policy.hours_worked(_at(9, 0), _at(17, 30)) == Decimal("8.50")
    assert policy.hours_worked(_at(17, 0), _at(9, 0)) == Decimal("0.00")
    assert policy.hours_worked(_at(9, 0), None) == Decimal("0.00")


def test_minimum_hours_gate_boundary():
    clock_in = _at(9, 30)
    deadline = clock_in + timedelta(hours=CONFIG.minimum_working_hours)

    with pytest.raises(MinimumHoursNotMet) as exc:
        policy.enforce_minimum_hours(clock_in, deadline - timedelta(seconds=1), DAY, TIMING, CONFIG)
    assert exc.value.context["minutes_remaining"] == 1

    policy.enforce_minimum_hours(clock_in, deadline, DAY, TIMING, CONFIG)
    policy.enforce_minimum_hours(clock_in, deadline + timedelta(seconds=1), DAY, TIMING, CONFIG)


def test_minimum_hours_gate_not_applied_within_grace():
    assert policy.minimum_hours_deadline(_at(9, 5), _at(9, 0), 10, 8.0) is None
    policy.enforce_minimum_hours(_at(9, 5), _at(12, 0), DAY, TIMING, CONFIG)


def test_correction_deadline_is_window_after_start_of_day():
    assert policy.correction_deadline(DAY, 24) == _at(0, 0, day=DAY + timedelta(days=1))


def test_auto_clockout_due_after_grace():
    shift_end = _at(18, 0)
    assert policy.auto_clockout_due(shift_end, _at(18, 29, 59), 30) is False
    assert policy.auto_clockout_due(shift_end, _at(18, 30), 30) is True
