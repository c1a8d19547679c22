"""
Tests for the attendance correction workflow
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.core.errors import (
    AlreadyReviewed,
    CorrectionAlreadyPending,
    NotFound,
    NotesRequiredForRejection,
    ReasonTooShort,
    RecordLocked,
    ValidationFailed,
)
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.models.correction import CorrectionStatus, CorrectionType, ReviewAction
from app.models.notification import NotificationLog, NotificationType
from app.services.attendance_config_service import upsert_attendance_config
from app.schemas.config import AttendanceConfigUpdate
from app.services.correction_service import (
    list_my_corrections,
    list_pending_corrections,
    review_correction,
    submit_correction,
)
from app.tests.constants import COMPANY_ID, WORK_DAY

REASON = "Phone battery died before I could clock out"


@pytest.fixture
def provisional_record(db, employee, site, general_shift, at):
    """Record auto clocked out at shift end"""
    record = AttendanceRecord(
        employee_id=employee.id,
        attendance_date=WORK_DAY,
        clock_in_time=at(9, 0),
        clock_out_time=at(18, 0),
        site_id=site.id,
        shift_id=general_shift.id,
        status=AttendanceStatus.ON_TIME.value,
        hours_worked=Decimal("9.00"),
        is_provisional=True,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def test_reason_too_short(db, employee, provisional_record, at):
    with pytest.raises(ReasonTooShort):
        submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, "forgot",
                          requested_clock_out=at(19, 30), now=at(20, 0))
    # whitespace does not count toward the minimum
    with pytest.raises(ReasonTooShort):
        submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, "   short reason   " + " " * 10,
                          requested_clock_out=at(19, 30), now=at(20, 0))


def test_submit_within_deadline_notifies(db, employee, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=at(20, 0))

    assert correction.status == CorrectionStatus.PENDING.value
    assert correction.is_within_deadline is True
    assert correction.requested_clock_in is None

    notification = db.query(NotificationLog).filter(
        NotificationLog.notification_type == NotificationType.CORRECTION_SUBMITTED.value
    ).one()
    assert notification.employee_id == employee.id
    assert notification.data["correction_id"] == correction.id
    assert notification.data["is_within_deadline"] is True


def test_late_submission_is_flagged_but_approvable(db, employee, hr_user, provisional_record, at):
    submitted_at = at(18, 0) + timedelta(hours=25)
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=submitted_at)
    assert correction.is_within_deadline is False

    reviewed = review_correction(db, correction.id, hr_user, ReviewAction.APPROVE, now=submitted_at + timedelta(hours=1))
    assert reviewed.status == CorrectionStatus.APPROVED.value
    assert reviewed.is_within_deadline is False


def test_pending_list_prioritises_within_deadline(db, make_employee, employee, hr_user, site, provisional_record, at):
    late = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                             requested_clock_out=at(19, 30), now=at(12, 0, day=WORK_DAY + timedelta(days=2)))

    other = make_employee("EMP002")
    other_record = AttendanceRecord(employee_id=other.id, attendance_date=WORK_DAY + timedelta(days=1),
                                    status=AttendanceStatus.ABSENT.value)
    db.add(other_record)
    db.commit()
    on_time = submit_correction(db, other, other_record.id, CorrectionType.BOTH, REASON,
                                requested_clock_in=at(9, 0, day=WORK_DAY + timedelta(days=1)),
                                requested_clock_out=at(18, 0, day=WORK_DAY + timedelta(days=1)),
                                now=at(20, 0, day=WORK_DAY + timedelta(days=1)))

    assert [c.id for c in list_pending_corrections(db, COMPANY_ID)] == [on_time.id, late.id]
    assert [c.id for c in list_my_corrections(db, employee.id)] == [late.id]


def test_approval_overwrites_clock_out_and_clears_provisional(db, employee, hr_user, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=at(20, 0))

    review_correction(db, correction.id, hr_user, ReviewAction.APPROVE, now=at(21, 0))

    db.refresh(provisional_record)
    assert provisional_record.is_provisional is False
    assert provisional_record.correction_id == correction.id
    assert provisional_record.hours_worked == Decimal("10.50")
    assert provisional_record.status == AttendanceStatus.ON_TIME.value


def test_approval_of_clock_in_reclassifies(db, employee, hr_user, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_IN, REASON,
                                   requested_clock_in=at(9, 45), now=at(20, 0))

    review_correction(db, correction.id, hr_user, ReviewAction.APPROVE, notes=None, now=at(21, 0))

    db.refresh(provisional_record)
    assert provisional_record.status == AttendanceStatus.LATE.value
    assert provisional_record.hours_worked == Decimal("8.25")


def test_reject_requires_notes(db, employee, hr_user, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=at(20, 0))

    with pytest.raises(NotesRequiredForRejection):
        review_correction(db, correction.id, hr_user, ReviewAction.REJECT, notes="   ", now=at(21, 0))

    rejected = review_correction(db, correction.id, hr_user, ReviewAction.REJECT,
                                 notes="Gate logs show exit at 18:02", now=at(21, 0))
    assert rejected.status == CorrectionStatus.REJECTED.value
    assert rejected.reviewer_notes == "Gate logs show exit at 18:02"

    db.refresh(provisional_record)
    assert provisional_record.is_provisional is True
    assert provisional_record.correction_id is None


def test_correction_reviewed_once(db, employee, hr_user, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=at(20, 0))
    review_correction(db, correction.id, hr_user, ReviewAction.APPROVE, now=at(21, 0))

    with pytest.raises(AlreadyReviewed):
        review_correction(db, correction.id, hr_user, ReviewAction.REJECT, notes="Changed my mind", now=at(21, 5))


def test_only_one_pending_correction_per_record(db, employee, provisional_record, at):
    submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                      requested_clock_out=at(19, 30), now=at(20, 0))

    with pytest.raises(CorrectionAlreadyPending):
        submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                          requested_clock_out=at(19, 45), now=at(20, 5))


def test_requested_times_validated(db, employee, provisional_record, at):
    with pytest.raises(ValidationFailed):
        submit_correction(db, employee, provisional_record.id, CorrectionType.BOTH, REASON,
                          requested_clock_in=at(9, 0), now=at(20, 0))
    with pytest.raises(ValidationFailed):
        submit_correction(db, employee, provisional_record.id, CorrectionType.BOTH, REASON,
                          requested_clock_in=at(18, 0), requested_clock_out=at(9, 0), now=at(20, 0))


def test_cannot_correct_someone_elses_record(db, make_employee, provisional_record, at):
    stranger = make_employee("EMP050")
    with pytest.raises(NotFound):
        submit_correction(db, stranger, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                          requested_clock_out=at(19, 30), now=at(20, 0))


def test_locked_record_refuses_correction(db, employee, hr_user, provisional_record, at):
    correction = submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                                   requested_clock_out=at(19, 30), now=at(20, 0))
    provisional_record.locked_for_payroll = True
    db.commit()

    with pytest.raises(RecordLocked):
        review_correction(db, correction.id, hr_user, ReviewAction.APPROVE, now=at(21, 0))
    with pytest.raises(RecordLocked):
        submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                          requested_clock_out=at(19, 30), now=at(20, 0))


def test_disabled_notification_type_is_not_recorded(db, employee, admin_user, provisional_record, at):
    upsert_attendance_config(db, COMPANY_ID, AttendanceConfigUpdate(
        notification_settings={NotificationType.CORRECTION_SUBMITTED.value: False},
    ), actor_id=admin_user.id)

    submit_correction(db, employee, provisional_record.id, CorrectionType.CLOCK_OUT, REASON,
                      requested_clock_out=at(19, 30), now=at(20, 0))
    assert db.query(NotificationLog).count() == 0
