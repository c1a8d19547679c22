"""
Attendance schemas: clock-in/out and overtime requests, record and session output.
All response datetimes are rendered in ATTENDANCE_TZ with an explicit offset.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.attendance_record import AttendanceStatus
from app.models.correction import ReviewAction
from app.models.overtime import OvertimeStatus
from app.utils.datetime_utils import iso_local


class PositionRequest(BaseModel):
    """Device position and optional client event time"""
    latitude: float = Field(..., ge=-90, le=90, description="GPS latitude")
    longitude: float = Field(..., ge=-180, le=180, description="GPS longitude")
    timestamp: Optional[datetime] = Field(
        None, description="Client event time; must be within the allowed skew of server time"
    )


class ClockInRequest(PositionRequest):
    site_id: Optional[int] = Field(None, description="Work site; defaults to the nearest assigned site containing the position")


class ClockOutRequest(PositionRequest):
    record_id: int


class OTClockInRequest(PositionRequest):
    record_id: int
    site_id: Optional[int] = None


class OTClockOutRequest(PositionRequest):
    pass


class AttendanceRecordOut(BaseModel):
    """One employee-day. hours are decimal hours."""
    id: int
    employee_id: int
    attendance_date: date
    clock_in_time: Optional[datetime] = None
    clock_out_time: Optional[datetime] = None
    site_id: Optional[int] = None
    shift_id: Optional[int] = None
    status: AttendanceStatus
    hours_worked: Decimal
    overtime_hours: Decimal
    is_provisional: bool
    locked_for_payroll: bool
    correction_id: Optional[int] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("clock_in_time", "clock_out_time")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class OvertimeSessionOut(BaseModel):
    id: int
    employee_id: int
    attendance_record_id: int
    site_id: int
    ot_in_time: datetime
    ot_out_time: Optional[datetime] = None
    total_ot_hours: Optional[Decimal] = None
    status: OvertimeStatus
    auto_closed_at: Optional[datetime] = None
    is_approved: bool
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("ot_in_time", "ot_out_time", "auto_closed_at", "approved_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class TodayAttendanceOut(BaseModel):
    """Today's record (if any) plus the active OT session (if any)"""
    attendance_date: date
    record: Optional[AttendanceRecordOut] = None
    active_overtime: Optional[OvertimeSessionOut] = None


class AttendanceListResponse(BaseModel):
    items: List[AttendanceRecordOut]
    total: int


class OvertimeReviewRequest(BaseModel):
    action: ReviewAction
    reason: Optional[str] = Field(None, description="Required when rejecting")


class PayrollLockRequest(BaseModel):
    """Either explicit record ids or an inclusive date range"""
    record_ids: Optional[List[int]] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None


class PayrollLockResponse(BaseModel):
    locked: int


class DailySummaryOut(BaseModel):
    date: date
    total_employees: int
    present: int
    on_time: int
    late: int
    half_day: int
    absent: int
    leave: int
    holiday: int
    attendance_rate: float
    average_hours_worked: float
