"""
Report service - daily attendance summary and record listings for export
"""
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.errors import ValidationFailed
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.utils.datetime_utils import iso_local

PRESENT_STATUSES = (AttendanceStatus.ON_TIME.value, AttendanceStatus.LATE.value, AttendanceStatus.HALF_DAY.value)

RECORD_CSV_HEADERS = [
    "date", "emp_code", "employee_name", "status", "clock_in", "clock_out",
    "hours_worked", "overtime_hours", "site", "is_provisional", "locked_for_payroll",
]


def get_daily_summary(db: Session, company_id: int, day: date) -> Dict:
    """
    Counts per status for one date.

    late counts strictly status == 'late'; free-text notes are not consulted.
    attendance_rate = present / total active employees * 100.
    """
    counts = dict(
        db.query(AttendanceRecord.status, func.count(AttendanceRecord.id))
        .join(Employee, Employee.id == AttendanceRecord.employee_id)
        .filter(Employee.company_id == company_id, AttendanceRecord.attendance_date == day)
        .group_by(AttendanceRecord.status)
        .all()
    )
    total_employees = db.query(func.count(Employee.id)).filter(
        Employee.company_id == company_id,
        Employee.active.is_(True),
    ).scalar() or 0
    avg_hours = db.query(func.avg(AttendanceRecord.hours_worked)).join(
        Employee, Employee.id == AttendanceRecord.employee_id
    ).filter(
        Employee.company_id == company_id,
        AttendanceRecord.attendance_date == day,
        AttendanceRecord.clock_out_time.isnot(None),
    ).scalar()

    present = sum(counts.get(s, 0) for s in PRESENT_STATUSES)
    rate = round(present * 100.0 / total_employees, 1) if total_employees else 0.0
    return {
        "date": day,
        "total_employees": total_employees,
        "present": present,
        "on_time": counts.get(AttendanceStatus.ON_TIME.value, 0),
        "late": counts.get(AttendanceStatus.LATE.value, 0),
        "half_day": counts.get(AttendanceStatus.HALF_DAY.value, 0),
        "absent": counts.get(AttendanceStatus.ABSENT.value, 0),
        "leave": counts.get(AttendanceStatus.LEAVE.value, 0),
        "holiday": counts.get(AttendanceStatus.HOLIDAY.value, 0),
        "attendance_rate": rate,
        "average_hours_worked": float(round(Decimal(str(avg_hours)), 2)) if avg_hours is not None else 0.0,
    }


def list_company_records(
    db: Session,
    company_id: int,
    from_date: date,
    to_date: date,
    employee_id: Optional[int] = None,
    status: Optional[AttendanceStatus] = None,
    provisional_only: bool = False,
) -> List[AttendanceRecord]:
    """Admin listing with filters, ordered by date then employee code."""
    if from_date > to_date:
        raise ValidationFailed("from_date must be <= to_date")
    query = (
        db.query(AttendanceRecord)
        .options(joinedload(AttendanceRecord.employee), joinedload(AttendanceRecord.site))
        .join(Employee, Employee.id == AttendanceRecord.employee_id)
        .filter(
            Employee.company_id == company_id,
            AttendanceRecord.attendance_date >= from_date,
            AttendanceRecord.attendance_date <= to_date,
        )
    )
    if employee_id:
        query = query.filter(AttendanceRecord.employee_id == employee_id)
    if status:
        query = query.filter(AttendanceRecord.status == AttendanceStatus(status).value)
    if provisional_only:
        query = query.filter(AttendanceRecord.is_provisional.is_(True))
    return query.order_by(AttendanceRecord.attendance_date, Employee.emp_code).all()


def record_csv_rows(records: List[AttendanceRecord]) -> List[Dict]:
    return [
        {
            "date": r.attendance_date.isoformat(),
            "emp_code": r.employee.emp_code,
            "employee_name": r.employee.name,
            "status": r.status,
            "clock_in": iso_local(r.clock_in_time),
            "clock_out": iso_local(r.clock_out_time),
            "hours_worked": r.hours_worked,
            "overtime_hours": r.overtime_hours,
            "site": r.site.name if r.site else None,
            "is_provisional": r.is_provisional,
            "locked_for_payroll": r.locked_for_payroll,
        }
        for r in records
    ]
