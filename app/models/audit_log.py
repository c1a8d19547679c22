"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # NULL = system (scheduler)
    action = Column(String, nullable=False)  # e.g. "ATTENDANCE_CLOCK_IN", "CORRECTION_APPROVED"
    entity_type = Column(String, nullable=False)  # e.g. "attendance_records", "overtime_sessions"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    # Note: server_default handled by migration (CURRENT_TIMESTAMP for SQLite, now() for PostgreSQL)
    created_at = Column(DateTime(timezone=True), nullable=False)
