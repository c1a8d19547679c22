"""
HR review of closed overtime sessions.
"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import AlreadyReviewed, NotFound, NotesRequiredForRejection, RecordLocked, ValidationFailed
from app.models.correction import ReviewAction
from app.models.employee import Employee
from app.models.overtime import CLOSED_OT_STATUSES, OvertimeSession
from app.services.audit_service import log_audit
from app.utils.datetime_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)


def list_unreviewed_sessions(db: Session, company_id: int) -> List[OvertimeSession]:
    """Closed sessions still awaiting a decision, oldest first."""
    return (
        db.query(OvertimeSession)
        .join(Employee, Employee.id == OvertimeSession.employee_id)
        .filter(
            Employee.company_id == company_id,
            OvertimeSession.status.in_(CLOSED_OT_STATUSES),
            OvertimeSession.approved_at.is_(None),
        )
        .order_by(OvertimeSession.ot_in_time)
        .all()
    )


def review_ot_session(
    db: Session,
    session_id: int,
    reviewer: Employee,
    action: ReviewAction,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> OvertimeSession:
    """
    Approve or reject a completed/auto-closed overtime session. A session is reviewed once.

    Raises:
        NotFound, ValidationFailed (session still active), RecordLocked,
        NotesRequiredForRejection, AlreadyReviewed
    """
    now = ensure_utc(now) if now else now_utc()
    action = ReviewAction(action)
    session = (
        db.query(OvertimeSession)
        .join(Employee, Employee.id == OvertimeSession.employee_id)
        .filter(OvertimeSession.id == session_id, Employee.company_id == reviewer.company_id)
        .first()
    )
    if not session:
        raise NotFound("Overtime session not found")
    if session.status not in CLOSED_OT_STATUSES:
        raise ValidationFailed("Only closed overtime sessions can be reviewed")
    if session.attendance_record.locked_for_payroll:
        raise RecordLocked()
    if session.approved_at is not None:
        raise AlreadyReviewed()

    reason = (reason or "").strip()
    if action == ReviewAction.REJECT and not reason:
        raise NotesRequiredForRejection("A rejection reason is required")

    result = db.execute(
        update(OvertimeSession)
        .where(OvertimeSession.id == session.id, OvertimeSession.approved_at.is_(None))
        .values(
            is_approved=action == ReviewAction.APPROVE,
            approved_by=reviewer.id,
            approved_at=now,
            rejection_reason=reason if action == ReviewAction.REJECT else None,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        raise AlreadyReviewed()

    log_audit(
        db=db,
        actor_id=reviewer.id,
        action="OT_APPROVED" if action == ReviewAction.APPROVE else "OT_REJECTED",
        entity_type="overtime_sessions",
        entity_id=session.id,
        meta={"total_ot_hours": session.total_ot_hours, "reason": reason or None},
    )
    db.commit()
    db.refresh(session)
    logger.info("OT session %s %s by employee_id=%s", session.id, action.value, reviewer.id)
    return session
