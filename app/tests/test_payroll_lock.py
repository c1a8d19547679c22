"""
Tests for payroll locking and record immutability
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.errors import RecordLocked, ValidationFailed
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.models.correction import CorrectionType
from app.services.attendance_recorder import clock_in, clock_out, ot_clock_in
from app.services.correction_service import submit_correction
from app.services.payroll_lock_service import lock_records_for_payroll
from app.tests.constants import COMPANY_ID, SITE_LAT, SITE_LNG, WORK_DAY


@pytest.fixture
def closed_record(db, employee, site, general_shift, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    return clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))


def test_lock_by_ids_is_monotonic(db, hr_user, closed_record, at):
    assert lock_records_for_payroll(db, COMPANY_ID, record_ids=[closed_record.id], actor_id=hr_user.id, now=at(20, 0)) == 1

    db.refresh(closed_record)
    assert closed_record.locked_for_payroll is True
    assert closed_record.locked_at is not None

    # locking again changes nothing
    assert lock_records_for_payroll(db, COMPANY_ID, record_ids=[closed_record.id], now=at(21, 0)) == 0
    db.refresh(closed_record)
    assert closed_record.locked_for_payroll is True


def test_lock_by_date_range_is_company_scoped(db, make_employee, employee, closed_record):
    outsider = make_employee("EXT001", company_id=2)
    foreign = AttendanceRecord(employee_id=outsider.id, attendance_date=WORK_DAY, status=AttendanceStatus.ABSENT.value)
    next_day = AttendanceRecord(employee_id=employee.id, attendance_date=WORK_DAY + timedelta(days=1),
                                status=AttendanceStatus.ABSENT.value)
    db.add_all([foreign, next_day])
    db.commit()

    assert lock_records_for_payroll(db, COMPANY_ID, from_date=WORK_DAY, to_date=WORK_DAY) == 1

    db.refresh(foreign)
    db.refresh(next_day)
    assert foreign.locked_for_payroll is False
    assert next_day.locked_for_payroll is False


def test_lock_requires_ids_or_range(db):
    with pytest.raises(ValidationFailed):
        lock_records_for_payroll(db, COMPANY_ID)
    with pytest.raises(ValidationFailed):
        lock_records_for_payroll(db, COMPANY_ID, from_date=WORK_DAY + timedelta(days=1), to_date=WORK_DAY)


def test_locked_record_refuses_every_mutation(db, employee, closed_record, at):
    lock_records_for_payroll(db, COMPANY_ID, record_ids=[closed_record.id])

    with pytest.raises(RecordLocked):
        clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 30))
    with pytest.raises(RecordLocked):
        clock_out(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(19, 0))
    with pytest.raises(RecordLocked):
        ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(19, 0))
    with pytest.raises(RecordLocked):
        submit_correction(db, employee, closed_record.id, CorrectionType.CLOCK_OUT,
                          "Clocked out from the wrong phone app", requested_clock_out=at(19, 0), now=at(19, 0))

    db.refresh(closed_record)
    assert closed_record.hours_worked == Decimal("9.00")
    assert closed_record.overtime_hours == Decimal("0.00")
