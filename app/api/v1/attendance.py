"""
Attendance endpoints for the current employee: clock-in/out, overtime in/out, today, history.
Every employee role can call these for their own records only.
"""
import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_user
from app.core.errors import ValidationFailed
from app.models.employee import Employee
from app.schemas.attendance import (
    AttendanceListResponse,
    AttendanceRecordOut,
    ClockInRequest,
    ClockOutRequest,
    OTClockInRequest,
    OTClockOutRequest,
    OvertimeSessionOut,
    TodayAttendanceOut,
)
from app.schemas.work_site import WorkSiteOut
from app.services import attendance_recorder as recorder
from app.services.work_site_service import list_employee_sites
from app.utils.datetime_utils import local_date

router = APIRouter()
_log = logging.getLogger(__name__)


@router.post("/clock-in", response_model=AttendanceRecordOut)
async def clock_in_endpoint(
    payload: ClockInRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Clock in at an assigned work site. site_id is optional; the nearest assigned
    site whose geofence contains the position is used when omitted.
    """
    record = recorder.clock_in(
        db,
        current_user,
        latitude=payload.latitude,
        longitude=payload.longitude,
        site_id=payload.site_id,
        timestamp=payload.timestamp,
    )
    return AttendanceRecordOut.model_validate(record)


@router.post("/clock-out", response_model=AttendanceRecordOut)
async def clock_out_endpoint(
    payload: ClockOutRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Clock out of one of your records. Late arrivals must complete the minimum working hours first."""
    record = recorder.clock_out(
        db,
        current_user,
        record_id=payload.record_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        timestamp=payload.timestamp,
    )
    return AttendanceRecordOut.model_validate(record)


@router.post("/ot-in", response_model=OvertimeSessionOut)
async def ot_clock_in_endpoint(
    payload: OTClockInRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Start overtime after the regular clock-out of the same record."""
    session = recorder.ot_clock_in(
        db,
        current_user,
        record_id=payload.record_id,
        latitude=payload.latitude,
        longitude=payload.longitude,
        site_id=payload.site_id,
        timestamp=payload.timestamp,
    )
    return OvertimeSessionOut.model_validate(session)


@router.post("/ot-out", response_model=OvertimeSessionOut)
async def ot_clock_out_endpoint(
    payload: OTClockOutRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Close your active overtime session."""
    session = recorder.ot_clock_out(
        db,
        current_user,
        latitude=payload.latitude,
        longitude=payload.longitude,
        timestamp=payload.timestamp,
    )
    return OvertimeSessionOut.model_validate(session)


@router.get("/today", response_model=TodayAttendanceOut)
async def today_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Today's record (ATTENDANCE_TZ date) and the active overtime session, if any."""
    today = local_date()
    record = recorder.get_record_for_day(db, current_user.id, today)
    active = recorder.get_active_ot_session(db, current_user.id)
    return TodayAttendanceOut(
        attendance_date=today,
        record=AttendanceRecordOut.model_validate(record) if record else None,
        active_overtime=OvertimeSessionOut.model_validate(active) if active else None,
    )


@router.get("/my", response_model=AttendanceListResponse)
async def my_endpoint(
    from_date: Optional[date] = Query(None, alias="from", description="Start date (YYYY-MM-DD)"),
    to_date: Optional[date] = Query(None, alias="to", description="End date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Your attendance records, newest first."""
    if from_date and to_date and from_date > to_date:
        raise ValidationFailed("from must be <= to")
    records = recorder.list_records(db, current_user.id, from_date, to_date)
    items = [AttendanceRecordOut.model_validate(r) for r in records]
    return AttendanceListResponse(items=items, total=len(items))


@router.get("/my-sites", response_model=List[WorkSiteOut])
async def my_sites_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Active work sites assigned to you, primary first."""
    return [WorkSiteOut.model_validate(s) for s in list_employee_sites(db, current_user.id)]


@router.get("/my-overtime", response_model=List[OvertimeSessionOut])
async def my_overtime_endpoint(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Your overtime sessions, newest first."""
    return [OvertimeSessionOut.model_validate(s) for s in recorder.list_ot_sessions(db, current_user.id, limit)]
