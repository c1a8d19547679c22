"""
Shift definitions and employee shift assignments.
"""
import logging
from datetime import date, time
from typing import Iterable, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.errors import NotFound, ValidationFailed
from app.models.employee import Employee
from app.models.shift import Shift, EmployeeShift
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def normalize_work_days(days: Iterable[str]) -> List[str]:
    """Canonical weekday names ("monday", "Mon" -> "Monday"); unknown names are rejected."""
    result = []
    for raw in days:
        key = str(raw).strip().lower()
        match = next((name for name in WEEKDAY_NAMES if name.lower() == key or name[:3].lower() == key), None)
        if match is None:
            raise ValidationFailed(f"Unknown work day '{raw}'")
        if match not in result:
            result.append(match)
    if not result:
        raise ValidationFailed("At least one work day is required")
    return result


def is_work_day(assignment: EmployeeShift, day: date) -> bool:
    names = {str(d).strip().lower() for d in (assignment.work_days or [])}
    return WEEKDAY_NAMES[day.weekday()].lower() in names


def create_shift(
    db: Session,
    company_id: int,
    name: str,
    start_time: time,
    end_time: time,
    grace_period_minutes: int = 10,
    actor_id: Optional[int] = None,
) -> Shift:
    if grace_period_minutes < 0:
        raise ValidationFailed("grace_period_minutes must not be negative")
    shift = Shift(
        company_id=company_id,
        name=name,
        start_time=start_time,
        end_time=end_time,
        grace_period_minutes=grace_period_minutes,
        is_active=True,
    )
    db.add(shift)
    db.flush()
    log_audit(db, actor_id, "SHIFT_CREATED", "shifts", shift.id,
              {"name": name, "start_time": start_time, "end_time": end_time, "grace": grace_period_minutes})
    db.commit()
    db.refresh(shift)
    return shift


def list_shifts(db: Session, company_id: int) -> List[Shift]:
    return db.query(Shift).filter(Shift.company_id == company_id).order_by(Shift.start_time).all()


def assign_shift(
    db: Session,
    employee_id: int,
    shift_id: int,
    work_days: Iterable[str],
    effective_from: date,
    effective_until: Optional[date] = None,
    actor_id: Optional[int] = None,
) -> EmployeeShift:
    """Add a shift assignment; older assignments stay and lose to the newer effective_from."""
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFound("Employee not found")
    shift = db.query(Shift).filter(Shift.id == shift_id, Shift.company_id == employee.company_id).first()
    if not shift:
        raise NotFound("Shift not found")
    if effective_until is not None and effective_until < effective_from:
        raise ValidationFailed("effective_until must be on or after effective_from")

    assignment = EmployeeShift(
        employee_id=employee_id,
        shift_id=shift_id,
        work_days=normalize_work_days(work_days),
        effective_from=effective_from,
        effective_until=effective_until,
    )
    db.add(assignment)
    db.flush()
    log_audit(db, actor_id, "SHIFT_ASSIGNED", "employee_shifts", assignment.id,
              {"employee_id": employee_id, "shift_id": shift_id, "work_days": assignment.work_days,
               "effective_from": effective_from, "effective_until": effective_until})
    db.commit()
    db.refresh(assignment)
    return assignment


def _current_assignments_query(db: Session, day: date):
    return (
        db.query(EmployeeShift)
        .options(joinedload(EmployeeShift.shift))
        .join(Shift, EmployeeShift.shift_id == Shift.id)
        .filter(
            Shift.is_active.is_(True),
            EmployeeShift.effective_from <= day,
            or_(EmployeeShift.effective_until.is_(None), EmployeeShift.effective_until >= day),
        )
    )


def resolve_current_assignment(db: Session, employee_id: int, day: date) -> Optional[EmployeeShift]:
    """
    The assignment in force on ``day``: most recent effective_from <= day whose
    effective_until is unset or >= day.
    """
    return (
        _current_assignments_query(db, day)
        .filter(EmployeeShift.employee_id == employee_id)
        .order_by(EmployeeShift.effective_from.desc(), EmployeeShift.id.desc())
        .first()
    )


def resolve_current_shift(db: Session, employee_id: int, day: date) -> Optional[Shift]:
    assignment = resolve_current_assignment(db, employee_id, day)
    return assignment.shift if assignment else None


def current_assignments_for_day(db: Session, day: date) -> List[EmployeeShift]:
    """One current assignment per employee (the winning one) for every employee with a shift on ``day``."""
    rows = (
        _current_assignments_query(db, day)
        .order_by(EmployeeShift.employee_id, EmployeeShift.effective_from.desc(), EmployeeShift.id.desc())
        .all()
    )
    winners = {}
    for row in rows:
        winners.setdefault(row.employee_id, row)
    return list(winners.values())
