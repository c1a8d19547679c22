"""
Tests for clock-out, the minimum-hours gate and provisional records
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.errors import (
    AlreadyClockedOut,
    MinimumHoursNotMet,
    NotFound,
    OutOfRange,
    RecordLocked,
    ValidationFailed,
)
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.schemas.config import AttendanceConfigSnapshot
from app.services.attendance_recorder import clock_in, clock_out
from app.tests.constants import COMPANY_ID, SITE_LAT, SITE_LNG, WORK_DAY


def test_clock_out_records_hours(db, employee, site, general_shift, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    record = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 15))

    assert record.clock_out_time is not None
    assert record.hours_worked == Decimal("9.25")
    assert record.status == AttendanceStatus.ON_TIME.value
    assert record.is_provisional is False


def test_late_arrival_minimum_hours_boundary(db, employee, site, general_shift, at):
    config = AttendanceConfigSnapshot(company_id=COMPANY_ID, minimum_working_hours=8.0)
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 30), config=config)
    assert record.status == AttendanceStatus.LATE.value

    with pytest.raises(MinimumHoursNotMet) as exc:
        clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(17, 29, 59), config=config)
    assert exc.value.context["minutes_remaining"] == 1

    record = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(17, 30), config=config)
    assert record.hours_worked == Decimal("8.00")


def test_on_time_arrival_may_leave_early(db, employee, site, general_shift, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 5))
    record = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(12, 5))
    assert record.hours_worked == Decimal("3.00")


def test_clock_out_twice_conflicts(db, employee, site, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))

    with pytest.raises(AlreadyClockedOut):
        clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 5))


def test_clock_out_retry_returns_stored_result(db, employee, site, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    first = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, timestamp=at(18, 0), now=at(18, 0))
    retry = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, timestamp=at(18, 0), now=at(18, 1))

    assert retry.id == first.id
    assert retry.hours_worked == Decimal("9.00")


def test_clock_out_outside_site_radius(db, employee, site, at, north_of_site):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    lat, lng = north_of_site(250)

    with pytest.raises(OutOfRange):
        clock_out(db, employee, record.id, lat, lng, now=at(18, 0))
    db.refresh(record)
    assert record.clock_out_time is None


def test_clock_out_of_someone_elses_record(db, make_employee, employee, site, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    stranger = make_employee("EMP099")

    with pytest.raises(NotFound):
        clock_out(db, stranger, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))


def test_clock_out_without_clock_in(db, employee, site, at):
    record = AttendanceRecord(employee_id=employee.id, attendance_date=WORK_DAY, status=AttendanceStatus.ABSENT.value)
    db.add(record)
    db.commit()

    with pytest.raises(ValidationFailed):
        clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))


def test_clock_out_on_locked_record(db, employee, site, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    record.locked_for_payroll = True
    db.commit()

    with pytest.raises(RecordLocked):
        clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))


def test_clock_out_never_clears_provisional_flag(db, employee, site, at):
    record = AttendanceRecord(
        employee_id=employee.id,
        attendance_date=WORK_DAY,
        clock_in_time=at(9, 0),
        site_id=site.id,
        status=AttendanceStatus.ON_TIME.value,
        is_provisional=True,
    )
    db.add(record)
    db.commit()

    record = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))
    assert record.clock_out_time is not None
    assert record.is_provisional is True


def test_leave_day_skips_minimum_hours_gate(db, employee, site, at):
    record = AttendanceRecord(
        employee_id=employee.id,
        attendance_date=WORK_DAY,
        clock_in_time=at(11, 0),
        site_id=site.id,
        status=AttendanceStatus.LEAVE.value,
    )
    db.add(record)
    db.commit()

    record = clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(11, 0) + timedelta(hours=2))
    assert record.hours_worked == Decimal("2.00")
    assert record.status == AttendanceStatus.LEAVE.value
