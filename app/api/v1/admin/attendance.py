"""
Admin attendance endpoints: daily summary, record listing and CSV export, payroll
lock, overtime review. HR and ADMIN only; results are scoped to the caller's company.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_attendance_admin
from app.models.attendance_record import AttendanceStatus
from app.models.employee import Employee
from app.schemas.attendance import (
    AttendanceListResponse,
    AttendanceRecordOut,
    DailySummaryOut,
    OvertimeReviewRequest,
    OvertimeSessionOut,
    PayrollLockRequest,
    PayrollLockResponse,
)
from app.services import overtime_review_service, report_service
from app.services.payroll_lock_service import lock_records_for_payroll
from app.utils.csv_export import stream_csv
from app.utils.datetime_utils import local_date

router = APIRouter()


@router.get("/summary", response_model=DailySummaryOut)
async def daily_summary_endpoint(
    day: Optional[date] = Query(None, alias="date", description="Date (YYYY-MM-DD); default today"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Status counts for one date. late is counted from the status field only."""
    return report_service.get_daily_summary(db, current_user.company_id, day or local_date())


@router.get("/records", response_model=AttendanceListResponse)
async def list_records_endpoint(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    employee_id: Optional[int] = Query(None),
    status: Optional[AttendanceStatus] = Query(None),
    provisional_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    records = report_service.list_company_records(
        db, current_user.company_id, from_date, to_date,
        employee_id=employee_id, status=status, provisional_only=provisional_only,
    )
    items = [AttendanceRecordOut.model_validate(r) for r in records]
    return AttendanceListResponse(items=items, total=len(items))


@router.get("/records.csv")
async def export_records_csv(
    from_date: date = Query(..., alias="from"),
    to_date: date = Query(..., alias="to"),
    employee_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Download records for a date range as CSV."""
    records = report_service.list_company_records(
        db, current_user.company_id, from_date, to_date, employee_id=employee_id,
    )
    filename = f"attendance_{from_date.strftime('%Y%m%d')}_{to_date.strftime('%Y%m%d')}.csv"
    return stream_csv(
        headers=report_service.RECORD_CSV_HEADERS,
        rows=report_service.record_csv_rows(records),
        filename=filename,
    )


@router.post("/payroll-lock", response_model=PayrollLockResponse)
async def payroll_lock_endpoint(
    payload: PayrollLockRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Lock records for payroll (irreversible). Returns the number of newly locked records."""
    locked = lock_records_for_payroll(
        db,
        current_user.company_id,
        record_ids=payload.record_ids,
        from_date=payload.from_date,
        to_date=payload.to_date,
        actor_id=current_user.id,
    )
    return PayrollLockResponse(locked=locked)


@router.get("/overtime/pending", response_model=List[OvertimeSessionOut])
async def pending_overtime_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Closed overtime sessions awaiting review, oldest first."""
    return [
        OvertimeSessionOut.model_validate(s)
        for s in overtime_review_service.list_unreviewed_sessions(db, current_user.company_id)
    ]


@router.post("/overtime/{session_id}/review", response_model=OvertimeSessionOut)
async def review_overtime_endpoint(
    session_id: int,
    payload: OvertimeReviewRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    session = overtime_review_service.review_ot_session(
        db, session_id, current_user, action=payload.action, reason=payload.reason,
    )
    return OvertimeSessionOut.model_validate(session)
