"""
Notification log model: outbound notification records (delivery happens elsewhere)
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, Text, JSON, Index, UniqueConstraint
import enum
from app.db.base import Base


class NotificationType(str, enum.Enum):
    MISSED_CLOCKOUT = "missed_clockout"
    LATE_ARRIVAL = "late_arrival"
    OT_AUTO_CLOSED = "ot_auto_closed"
    CORRECTION_SUBMITTED = "correction_submitted"
    LEAVE_APPROVED = "leave_approved"
    LEAVE_REJECTED = "leave_rejected"


class NotificationLog(Base):
    __tablename__ = "notification_log"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    notification_type = Column(String, nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    data = Column(JSON, nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    # Set for at-most-once notifications, e.g. "late_arrival:<employee_id>:<date>"
    dedupe_key = Column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_notification_employee_type_sent", "employee_id", "notification_type", "sent_at"),
        UniqueConstraint("dedupe_key", name="uq_notification_log_dedupe_key"),
    )
