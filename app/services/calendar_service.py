"""
Day overrides from the leave-approval and holiday-calendar modules.

Both modules are external; this service only reads their tables to decide
whether a date short-circuits the time-based attendance classification.
"""
from datetime import date
from typing import Optional
from sqlalchemy.orm import Session

from app.models.attendance_record import AttendanceStatus
from app.models.employee import Employee
from app.models.holiday import Holiday
from app.models.leave import LeaveRequest, LeaveStatus


def is_holiday(db: Session, company_id: int, day: date) -> bool:
    return db.query(Holiday.id).filter(
        Holiday.company_id == company_id,
        Holiday.date == day,
        Holiday.active.is_(True),
    ).first() is not None


def is_on_approved_leave(db: Session, employee_id: int, day: date) -> bool:
    return db.query(LeaveRequest.id).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.status == LeaveStatus.APPROVED.value,
        LeaveRequest.from_date <= day,
        LeaveRequest.to_date >= day,
    ).first() is not None


def day_override(db: Session, employee: Employee, day: date) -> Optional[AttendanceStatus]:
    """LEAVE when an approved leave covers the day, else HOLIDAY on an active holiday, else None."""
    if is_on_approved_leave(db, employee.id, day):
        return AttendanceStatus.LEAVE
    if is_holiday(db, employee.company_id, day):
        return AttendanceStatus.HOLIDAY
    return None
