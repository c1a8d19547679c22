"""
Attendance timing policy: status classification, hours worked, minimum-hours gate,
shift windows and correction deadlines.

Everything here is a pure function of its arguments; callers pass the shift and an
AttendanceConfigSnapshot rather than letting this module read configuration.
"""
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import NamedTuple, Optional, Tuple

from app.core.errors import MinimumHoursNotMet
from app.models.attendance_record import AttendanceStatus
from app.models.shift import Shift
from app.schemas.config import AttendanceConfigSnapshot
from app.utils.datetime_utils import combine_local, ensure_utc, hours_between, iso_local

DAY_OVERRIDES = (AttendanceStatus.LEAVE, AttendanceStatus.HOLIDAY)


class ShiftTiming(NamedTuple):
    start_time: time
    end_time: time
    grace_period_minutes: int
    shift_id: Optional[int] = None
    name: Optional[str] = None


def timing_for(shift: Optional[Shift], config: AttendanceConfigSnapshot) -> ShiftTiming:
    """Shift timing, falling back to the company default day when no shift applies."""
    if shift is not None:
        grace = shift.grace_period_minutes
        if grace is None:
            grace = config.grace_period_minutes
        return ShiftTiming(shift.start_time, shift.end_time, grace, shift.id, shift.name)
    return ShiftTiming(
        config.default_clock_in_time,
        config.default_clock_out_time,
        config.grace_period_minutes,
    )


def shift_window(day: date, timing: ShiftTiming) -> Tuple[datetime, datetime]:
    """(start, end) instants of the shift on a local day; overnight shifts end the next day."""
    start = combine_local(day, timing.start_time)
    end_day = day if timing.end_time > timing.start_time else day + timedelta(days=1)
    return start, combine_local(end_day, timing.end_time)


def classify(
    clock_in: Optional[datetime],
    shift_start: datetime,
    grace_period_minutes: int,
    half_day_threshold_hours: float,
    override: Optional[AttendanceStatus] = None,
) -> AttendanceStatus:
    """
    Classify a day from its clock-in.

    on_time  : clock_in <= start + grace
    late     : start + grace < clock_in <= start + half_day_threshold
    half_day : clock_in > start + half_day_threshold
    absent   : no clock-in
    A leave/holiday override short-circuits the time-based result.
    """
    if override is not None:
        return AttendanceStatus(override)
    if clock_in is None:
        return AttendanceStatus.ABSENT

    clock_in = ensure_utc(clock_in)
    shift_start = ensure_utc(shift_start)
    if clock_in <= shift_start + timedelta(minutes=grace_period_minutes):
        return AttendanceStatus.ON_TIME
    if clock_in <= shift_start + timedelta(hours=float(half_day_threshold_hours)):
        return AttendanceStatus.LATE
    return AttendanceStatus.HALF_DAY


def classify_for_day(
    clock_in: Optional[datetime],
    day: date,
    timing: ShiftTiming,
    config: AttendanceConfigSnapshot,
    override: Optional[AttendanceStatus] = None,
) -> AttendanceStatus:
    start, _ = shift_window(day, timing)
    return classify(clock_in, start, timing.grace_period_minutes, config.half_day_threshold_hours, override)


def hours_worked(clock_in: Optional[datetime], clock_out: Optional[datetime]) -> Decimal:
    """clock_out - clock_in in decimal hours, floored at zero; zero while either is missing."""
    if clock_in is None or clock_out is None:
        return Decimal("0.00")
    return hours_between(clock_in, clock_out)


def minimum_hours_deadline(
    clock_in: datetime,
    shift_start: datetime,
    grace_period_minutes: int,
    minimum_working_hours: float,
) -> Optional[datetime]:
    """
    Earliest allowed clock-out for a late arrival, or None when the gate does not apply
    (clock-in within the grace period).
    """
    clock_in = ensure_utc(clock_in)
    if clock_in <= ensure_utc(shift_start) + timedelta(minutes=grace_period_minutes):
        return None
    return clock_in + timedelta(hours=float(minimum_working_hours))


def enforce_minimum_hours(
    clock_in: datetime,
    now: datetime,
    day: date,
    timing: ShiftTiming,
    config: AttendanceConfigSnapshot,
) -> None:
    """Raise MinimumHoursNotMet while a late arrival's minimum-hours deadline is in the future."""
    start, _ = shift_window(day, timing)
    deadline = minimum_hours_deadline(clock_in, start, timing.grace_period_minutes, config.minimum_working_hours)
    if deadline is not None and ensure_utc(now) < deadline:
        remaining = deadline - ensure_utc(now)
        minutes_left = int(remaining.total_seconds() // 60) + (1 if remaining.total_seconds() % 60 else 0)
        raise MinimumHoursNotMet(
            f"Clocked in late; clock-out allowed from {iso_local(deadline)} "
            f"({config.minimum_working_hours:g} hours minimum)",
            context={"earliest_clock_out": iso_local(deadline), "minutes_remaining": minutes_left},
        )


def correction_deadline(attendance_date: date, correction_window_hours: int) -> datetime:
    """Start of the attendance date (local) plus the correction window."""
    return combine_local(attendance_date, time(0, 0)) + timedelta(hours=correction_window_hours)


def auto_clockout_due(shift_end: datetime, now: datetime, grace_minutes: int) -> bool:
    return ensure_utc(now) >= ensure_utc(shift_end) + timedelta(minutes=grace_minutes)


def late_arrival_threshold(day: date, timing: ShiftTiming) -> datetime:
    start, _ = shift_window(day, timing)
    return start + timedelta(minutes=timing.grace_period_minutes)
