"""
Attendance record model: one row per employee per attendance date.
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Boolean, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class AttendanceStatus(str, enum.Enum):
    ON_TIME = "on_time"
    LATE = "late"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    LEAVE = "leave"
    HOLIDAY = "holiday"


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_date = Column(Date, nullable=False, index=True)  # ATTENDANCE_TZ calendar date
    clock_in_time = Column(DateTime(timezone=True), nullable=True)
    clock_out_time = Column(DateTime(timezone=True), nullable=True)
    clock_in_latitude = Column(Numeric(10, 8), nullable=True)
    clock_in_longitude = Column(Numeric(11, 8), nullable=True)
    clock_out_latitude = Column(Numeric(10, 8), nullable=True)
    clock_out_longitude = Column(Numeric(11, 8), nullable=True)
    site_id = Column(Integer, ForeignKey("work_sites.id"), nullable=True, index=True)
    shift_id = Column(Integer, ForeignKey("shifts.id"), nullable=True)
    status = Column(String, nullable=False, default=AttendanceStatus.ABSENT.value)
    hours_worked = Column(Numeric(5, 2), nullable=False, default=0)
    overtime_hours = Column(Numeric(5, 2), nullable=False, default=0)
    is_provisional = Column(Boolean, nullable=False, default=False)  # clock-out generated by the system
    locked_for_payroll = Column(Boolean, nullable=False, default=False)  # monotonic false -> true
    locked_at = Column(DateTime(timezone=True), nullable=True)
    # Weak back-reference to the correction that last modified this row (no FK: lookup only)
    correction_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_id', 'attendance_date', name='uq_attendance_employee_date'),
    )

    employee = relationship("Employee")
    site = relationship("WorkSite")
    shift = relationship("Shift")
    overtime_sessions = relationship("OvertimeSession", back_populates="attendance_record", order_by="OvertimeSession.ot_in_time")
