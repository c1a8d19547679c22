"""
Attendance correction workflow: pending -> approved | rejected (terminal).

Submission computes the deadline from the attendance date and the company
correction window; a late submission is accepted and flagged. Review re-evaluates
the flag for prioritisation only and never blocks an approval.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants import MIN_CORRECTION_REASON_LENGTH
from app.core.errors import (
    AlreadyReviewed,
    CorrectionAlreadyPending,
    NotFound,
    NotesRequiredForRejection,
    ReasonTooShort,
    RecordLocked,
    ValidationFailed,
)
from app.models.attendance_record import AttendanceRecord
from app.models.correction import AttendanceCorrection, CorrectionStatus, CorrectionType, ReviewAction
from app.models.employee import Employee
from app.models.notification import NotificationType
from app.schemas.config import AttendanceConfigSnapshot
from app.services import attendance_policy as policy
from app.services.attendance_config_service import load_config_snapshot
from app.services.audit_service import log_audit
from app.services.calendar_service import day_override
from app.services.notification_service import emit_notification
from app.services.shift_service import resolve_current_shift
from app.utils.datetime_utils import ensure_utc, iso_local, now_utc

logger = logging.getLogger(__name__)

_NEEDS_CLOCK_IN = {CorrectionType.CLOCK_IN, CorrectionType.BOTH, CorrectionType.FULL_RECORD}
_NEEDS_CLOCK_OUT = {CorrectionType.CLOCK_OUT, CorrectionType.BOTH, CorrectionType.FULL_RECORD}


def _requested_times(
    correction_type: CorrectionType,
    requested_clock_in: Optional[datetime],
    requested_clock_out: Optional[datetime],
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Validate and keep only the times the correction type overwrites."""
    if correction_type in _NEEDS_CLOCK_IN and requested_clock_in is None:
        raise ValidationFailed(f"requested_clock_in is required for a {correction_type.value} correction")
    if correction_type in _NEEDS_CLOCK_OUT and requested_clock_out is None:
        raise ValidationFailed(f"requested_clock_out is required for a {correction_type.value} correction")
    clock_in = ensure_utc(requested_clock_in) if correction_type in _NEEDS_CLOCK_IN else None
    clock_out = ensure_utc(requested_clock_out) if correction_type in _NEEDS_CLOCK_OUT else None
    if clock_in and clock_out and clock_out <= clock_in:
        raise ValidationFailed("requested_clock_out must be after requested_clock_in")
    return clock_in, clock_out


def submit_correction(
    db: Session,
    employee: Employee,
    attendance_record_id: int,
    correction_type: CorrectionType,
    reason: str,
    requested_clock_in: Optional[datetime] = None,
    requested_clock_out: Optional[datetime] = None,
    attachment_url: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[AttendanceConfigSnapshot] = None,
) -> AttendanceCorrection:
    """
    Submit a correction request for one of the employee's own records.

    Raises:
        ReasonTooShort, NotFound, RecordLocked, ValidationFailed, CorrectionAlreadyPending
    """
    now = ensure_utc(now) if now else now_utc()
    reason = (reason or "").strip()
    if len(reason) < MIN_CORRECTION_REASON_LENGTH:
        raise ReasonTooShort(
            f"Reason must be at least {MIN_CORRECTION_REASON_LENGTH} characters",
            context={"length": len(reason), "minimum": MIN_CORRECTION_REASON_LENGTH},
        )

    record = db.query(AttendanceRecord).filter(
        AttendanceRecord.id == attendance_record_id,
        AttendanceRecord.employee_id == employee.id,
    ).first()
    if not record:
        raise NotFound("Attendance record not found")
    if record.locked_for_payroll:
        raise RecordLocked()

    correction_type = CorrectionType(correction_type)
    clock_in, clock_out = _requested_times(correction_type, requested_clock_in, requested_clock_out)

    pending = db.query(AttendanceCorrection.id).filter(
        AttendanceCorrection.attendance_record_id == record.id,
        AttendanceCorrection.status == CorrectionStatus.PENDING.value,
    ).first()
    if pending:
        raise CorrectionAlreadyPending(context={"correction_id": pending[0]})

    config = config or load_config_snapshot(db, employee.company_id)
    deadline = policy.correction_deadline(record.attendance_date, config.correction_window_hours)
    within_deadline = now <= deadline

    correction = AttendanceCorrection(
        employee_id=employee.id,
        attendance_record_id=record.id,
        correction_type=correction_type.value,
        requested_clock_in=clock_in,
        requested_clock_out=clock_out,
        reason=reason,
        attachment_url=attachment_url,
        status=CorrectionStatus.PENDING.value,
        submission_deadline=deadline,
        is_within_deadline=within_deadline,
        created_at=now,
    )
    db.add(correction)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise CorrectionAlreadyPending()

    log_audit(
        db=db,
        actor_id=employee.id,
        action="CORRECTION_SUBMITTED",
        entity_type="attendance_corrections",
        entity_id=correction.id,
        meta={
            "attendance_id": record.id,
            "correction_type": correction_type.value,
            "requested_clock_in": clock_in,
            "requested_clock_out": clock_out,
            "is_within_deadline": within_deadline,
        },
    )
    db.commit()
    db.refresh(correction)
    if not within_deadline:
        logger.warning(
            "Correction %s submitted after deadline %s for record %s",
            correction.id, deadline.isoformat(), record.id,
        )

    if config.notification_enabled(NotificationType.CORRECTION_SUBMITTED.value):
        emit_notification(
            db,
            employee.id,
            NotificationType.CORRECTION_SUBMITTED,
            title="Correction Submitted",
            message=f"Your attendance correction for {record.attendance_date} is pending review.",
            data={
                "correction_id": correction.id,
                "attendance_id": record.id,
                "submission_deadline": iso_local(deadline),
                "is_within_deadline": within_deadline,
            },
            sent_at=now,
        )
    return correction


def get_correction(db: Session, correction_id: int, company_id: Optional[int] = None) -> AttendanceCorrection:
    query = db.query(AttendanceCorrection).filter(AttendanceCorrection.id == correction_id)
    if company_id is not None:
        query = query.join(Employee, Employee.id == AttendanceCorrection.employee_id).filter(
            Employee.company_id == company_id
        )
    correction = query.first()
    if not correction:
        raise NotFound("Correction request not found")
    return correction


def _approved_record_values(
    db: Session,
    correction: AttendanceCorrection,
    record: AttendanceRecord,
) -> dict:
    """New field values for the record; only fields covered by the correction type change."""
    correction_type = CorrectionType(correction.correction_type)
    clock_in = ensure_utc(record.clock_in_time)
    clock_out = ensure_utc(record.clock_out_time)
    values = {}
    if correction_type in _NEEDS_CLOCK_IN:
        clock_in = ensure_utc(correction.requested_clock_in)
        values["clock_in_time"] = clock_in
    if correction_type in _NEEDS_CLOCK_OUT:
        clock_out = ensure_utc(correction.requested_clock_out)
        values["clock_out_time"] = clock_out
    if clock_in and clock_out and clock_out <= clock_in:
        raise ValidationFailed("Corrected clock-out would not be after clock-in")

    if "clock_in_time" in values:
        employee = record.employee
        config = load_config_snapshot(db, employee.company_id)
        shift = record.shift or resolve_current_shift(db, employee.id, record.attendance_date)
        timing = policy.timing_for(shift, config)
        override = day_override(db, employee, record.attendance_date)
        values["status"] = policy.classify_for_day(clock_in, record.attendance_date, timing, config, override).value
        if record.shift_id is None and timing.shift_id is not None:
            values["shift_id"] = timing.shift_id
    if clock_in and clock_out:
        values["hours_worked"] = policy.hours_worked(clock_in, clock_out)
    return values


def review_correction(
    db: Session,
    correction_id: int,
    reviewer: Employee,
    action: ReviewAction,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AttendanceCorrection:
    """
    Approve or reject a pending correction.

    Approval overwrites the record fields named by the correction type, clears
    is_provisional and links the record to this correction. Rejection leaves the
    record untouched.

    Raises:
        NotFound, AlreadyReviewed, NotesRequiredForRejection, RecordLocked
    """
    now = ensure_utc(now) if now else now_utc()
    action = ReviewAction(action)
    correction = get_correction(db, correction_id, reviewer.company_id)
    if correction.status != CorrectionStatus.PENDING.value:
        raise AlreadyReviewed(context={"status": correction.status})

    notes = (notes or "").strip() or None
    if action == ReviewAction.REJECT and not notes:
        raise NotesRequiredForRejection()

    record = correction.attendance_record
    if record.locked_for_payroll:
        raise RecordLocked()

    config = load_config_snapshot(db, record.employee.company_id)
    deadline = policy.correction_deadline(record.attendance_date, config.correction_window_hours)
    within_deadline = ensure_utc(correction.created_at) <= deadline

    record_values = _approved_record_values(db, correction, record) if action == ReviewAction.APPROVE else None
    new_status = CorrectionStatus.APPROVED if action == ReviewAction.APPROVE else CorrectionStatus.REJECTED

    result = db.execute(
        update(AttendanceCorrection)
        .where(
            AttendanceCorrection.id == correction.id,
            AttendanceCorrection.status == CorrectionStatus.PENDING.value,
        )
        .values(
            status=new_status.value,
            reviewed_by=reviewer.id,
            reviewer_notes=notes,
            reviewed_at=now,
            is_within_deadline=within_deadline,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise AlreadyReviewed()

    if record_values is not None:
        record_values.update(is_provisional=False, correction_id=correction.id)
        result = db.execute(
            update(AttendanceRecord)
            .where(AttendanceRecord.id == record.id, AttendanceRecord.locked_for_payroll.is_(False))
            .values(**record_values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # Locked between the read and the write
            db.rollback()
            raise RecordLocked()

    log_audit(
        db=db,
        actor_id=reviewer.id,
        action="CORRECTION_APPROVED" if action == ReviewAction.APPROVE else "CORRECTION_REJECTED",
        entity_type="attendance_corrections",
        entity_id=correction.id,
        meta={
            "attendance_id": record.id,
            "notes": notes,
            "is_within_deadline": within_deadline,
            "record_changes": record_values,
        },
    )
    db.commit()
    db.refresh(correction)
    logger.info(
        "Correction %s %s by employee_id=%s (within_deadline=%s)",
        correction.id, new_status.value, reviewer.id, within_deadline,
    )
    return correction


def list_my_corrections(db: Session, employee_id: int) -> List[AttendanceCorrection]:
    return (
        db.query(AttendanceCorrection)
        .filter(AttendanceCorrection.employee_id == employee_id)
        .order_by(AttendanceCorrection.created_at.desc())
        .all()
    )


def list_pending_corrections(db: Session, company_id: int) -> List[AttendanceCorrection]:
    """Pending requests, within-deadline first, then oldest first."""
    return (
        db.query(AttendanceCorrection)
        .join(Employee, Employee.id == AttendanceCorrection.employee_id)
        .filter(
            Employee.company_id == company_id,
            AttendanceCorrection.status == CorrectionStatus.PENDING.value,
        )
        .order_by(AttendanceCorrection.is_within_deadline.desc(), AttendanceCorrection.created_at)
        .all()
    )
