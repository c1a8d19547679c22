"""
Payroll lock: marks attendance records immutable once payroll has consumed them.

The flag only moves false -> true; there is no unlock.
"""
import logging
from datetime import date, datetime
from typing import Iterable, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import ValidationFailed
from app.models.attendance_record import AttendanceRecord
from app.models.employee import Employee
from app.services.audit_service import log_audit
from app.utils.datetime_utils import ensure_utc, now_utc

logger = logging.getLogger(__name__)


def lock_records_for_payroll(
    db: Session,
    company_id: int,
    record_ids: Optional[Iterable[int]] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Lock records by id or by date range (inclusive) within a company.

    Returns:
        Number of records newly locked; already-locked rows are left as they are.
    """
    now = ensure_utc(now) if now else now_utc()
    ids = sorted(set(record_ids or []))
    if not ids and (from_date is None or to_date is None):
        raise ValidationFailed("Provide record_ids or both from_date and to_date")
    if from_date and to_date and from_date > to_date:
        raise ValidationFailed("from_date must be <= to_date")

    company_employees = db.query(Employee.id).filter(Employee.company_id == company_id)
    conditions = [
        AttendanceRecord.locked_for_payroll.is_(False),
        AttendanceRecord.employee_id.in_(company_employees.scalar_subquery()),
    ]
    if ids:
        conditions.append(AttendanceRecord.id.in_(ids))
    if from_date is not None and to_date is not None:
        conditions.append(AttendanceRecord.attendance_date >= from_date)
        conditions.append(AttendanceRecord.attendance_date <= to_date)

    result = db.execute(
        update(AttendanceRecord)
        .where(*conditions)
        .values(locked_for_payroll=True, locked_at=now)
        .execution_options(synchronize_session=False)
    )
    locked = result.rowcount
    log_audit(
        db=db,
        actor_id=actor_id,
        action="ATTENDANCE_PAYROLL_LOCKED",
        entity_type="attendance_records",
        meta={"company_id": company_id, "record_ids": ids or None, "from_date": from_date,
              "to_date": to_date, "locked": locked},
    )
    db.commit()
    logger.info("Payroll lock: company_id=%s locked=%s", company_id, locked)
    return locked
