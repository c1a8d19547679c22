"""
Overtime session model
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Boolean, Numeric, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class OvertimeStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    AUTO_CLOSED = "auto_closed"


CLOSED_OT_STATUSES = (OvertimeStatus.COMPLETED.value, OvertimeStatus.AUTO_CLOSED.value)


class OvertimeSession(Base):
    __tablename__ = "overtime_sessions"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("work_sites.id"), nullable=False)
    ot_in_time = Column(DateTime(timezone=True), nullable=False)
    ot_out_time = Column(DateTime(timezone=True), nullable=True)
    ot_in_latitude = Column(Numeric(10, 8), nullable=False)
    ot_in_longitude = Column(Numeric(11, 8), nullable=False)
    ot_out_latitude = Column(Numeric(10, 8), nullable=True)
    ot_out_longitude = Column(Numeric(11, 8), nullable=True)
    total_ot_hours = Column(Numeric(5, 2), nullable=True)
    status = Column(String, nullable=False, default=OvertimeStatus.ACTIVE.value)
    auto_closed_at = Column(DateTime(timezone=True), nullable=True)
    is_approved = Column(Boolean, nullable=False, default=False)
    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        # At most one active session per employee, enforced by the database
        Index(
            "uq_overtime_one_active_per_employee",
            "employee_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    attendance_record = relationship("AttendanceRecord", back_populates="overtime_sessions")
    site = relationship("WorkSite")
