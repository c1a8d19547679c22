"""
Attendance correction request model
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Boolean, Text, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class CorrectionType(str, enum.Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"
    BOTH = "both"
    FULL_RECORD = "full_record"


class CorrectionStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AttendanceCorrection(Base):
    __tablename__ = "attendance_corrections"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    attendance_record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False, index=True)
    correction_type = Column(String, nullable=False)
    requested_clock_in = Column(DateTime(timezone=True), nullable=True)
    requested_clock_out = Column(DateTime(timezone=True), nullable=True)
    reason = Column(Text, nullable=False)
    attachment_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default=CorrectionStatus.PENDING.value, index=True)
    submission_deadline = Column(DateTime(timezone=True), nullable=False)
    is_within_deadline = Column(Boolean, nullable=False, default=True)
    reviewed_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    reviewer_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)  # submission time, set explicitly
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        # At most one pending correction per attendance record
        Index(
            "uq_correction_one_pending_per_record",
            "attendance_record_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    attendance_record = relationship("AttendanceRecord")
