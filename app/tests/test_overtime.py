"""
Tests for overtime sessions and their review
"""
from decimal import Decimal

import pytest

from app.core.errors import (
    AlreadyReviewed,
    NoActiveOTSession,
    NotesRequiredForRejection,
    OTSessionAlreadyActive,
    OutOfRange,
    ParentRecordNotClockedOut,
    RecordLocked,
    ValidationFailed,
)
from app.models.correction import ReviewAction
from app.models.overtime import OvertimeSession, OvertimeStatus
from app.services.attendance_recorder import clock_in, clock_out, ot_clock_in, ot_clock_out
from app.services.overtime_review_service import list_unreviewed_sessions, review_ot_session
from app.tests.constants import COMPANY_ID, SITE_LAT, SITE_LNG


@pytest.fixture
def closed_record(db, employee, site, general_shift, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))
    return clock_out(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(18, 0))


def test_ot_requires_regular_clock_out(db, employee, site, at):
    record = clock_in(db, employee, SITE_LAT, SITE_LNG, now=at(9, 0))

    with pytest.raises(ParentRecordNotClockedOut):
        ot_clock_in(db, employee, record.id, SITE_LAT, SITE_LNG, now=at(19, 0))


def test_ot_in_before_clock_out_time_refused(db, employee, closed_record, at):
    with pytest.raises(ParentRecordNotClockedOut):
        ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, timestamp=at(17, 59), now=at(18, 0))


def test_ot_session_lifecycle_updates_overtime_hours(db, employee, closed_record, at):
    session = ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))
    assert session.status == OvertimeStatus.ACTIVE.value
    assert session.ot_out_time is None

    session = ot_clock_out(db, employee, SITE_LAT, SITE_LNG, now=at(20, 45))
    assert session.status == OvertimeStatus.COMPLETED.value
    assert session.total_ot_hours == Decimal("2.25")

    db.refresh(closed_record)
    assert closed_record.overtime_hours == Decimal("2.25")


def test_overtime_hours_sum_multiple_sessions(db, employee, closed_record, at):
    ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))
    ot_clock_out(db, employee, SITE_LAT, SITE_LNG, now=at(19, 30))
    ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(20, 0))
    ot_clock_out(db, employee, SITE_LAT, SITE_LNG, now=at(20, 30))

    db.refresh(closed_record)
    assert closed_record.overtime_hours == Decimal("1.50")


def test_second_active_session_refused(db, employee, closed_record, at):
    ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))

    with pytest.raises(OTSessionAlreadyActive):
        ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(19, 0))
    assert db.query(OvertimeSession).filter(OvertimeSession.status == OvertimeStatus.ACTIVE.value).count() == 1


def test_ot_in_retry_returns_active_session(db, employee, closed_record, at):
    first = ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, timestamp=at(18, 30), now=at(18, 30))
    retry = ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, timestamp=at(18, 30), now=at(18, 31))
    assert retry.id == first.id


def test_ot_out_without_active_session(db, employee, closed_record, at):
    with pytest.raises(NoActiveOTSession):
        ot_clock_out(db, employee, SITE_LAT, SITE_LNG, now=at(20, 0))


def test_ot_out_retry_returns_completed_session(db, employee, closed_record, at):
    ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))
    first = ot_clock_out(db, employee, SITE_LAT, SITE_LNG, timestamp=at(20, 0), now=at(20, 0))
    retry = ot_clock_out(db, employee, SITE_LAT, SITE_LNG, timestamp=at(20, 0), now=at(20, 1))
    assert retry.id == first.id


def test_ot_out_outside_geofence(db, employee, closed_record, at, north_of_site):
    ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))
    lat, lng = north_of_site(500)

    with pytest.raises(OutOfRange):
        ot_clock_out(db, employee, lat, lng, now=at(20, 0))


def test_ot_on_locked_record(db, employee, closed_record, at):
    closed_record.locked_for_payroll = True
    db.commit()

    with pytest.raises(RecordLocked):
        ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))


def test_review_ot_session(db, employee, hr_user, closed_record, at):
    session = ot_clock_in(db, employee, closed_record.id, SITE_LAT, SITE_LNG, now=at(18, 30))

    with pytest.raises(ValidationFailed):
        review_ot_session(db, session.id, hr_user, ReviewAction.APPROVE, now=at(19, 0))

    ot_clock_out(db, employee, SITE_LAT, SITE_LNG, now=at(20, 0))
    assert [s.id for s in list_unreviewed_sessions(db, COMPANY_ID)] == [session.id]

    with pytest.raises(NotesRequiredForRejection):
        review_ot_session(db, session.id, hr_user, ReviewAction.REJECT, reason="  ", now=at(21, 0))

    reviewed = review_ot_session(db, session.id, hr_user, ReviewAction.APPROVE, now=at(21, 0))
    assert reviewed.is_approved is True
    assert reviewed.approved_by == hr_user.id
    assert list_unreviewed_sessions(db, COMPANY_ID) == []

    with pytest.raises(AlreadyReviewed):
        review_ot_session(db, session.id, hr_user, ReviewAction.REJECT, reason="Not authorised", now=at(21, 5))
