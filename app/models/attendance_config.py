"""
Per-company attendance configuration
"""
from sqlalchemy import Column, Integer, Boolean, DateTime, Numeric, Time, JSON
from sqlalchemy.sql import func
from app.db.base import Base


class AttendanceConfig(Base):
    __tablename__ = "attendance_config"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, unique=True, index=True)
    default_clock_in_time = Column(Time, nullable=True)
    default_clock_out_time = Column(Time, nullable=True)
    grace_period_minutes = Column(Integer, nullable=True)
    minimum_working_hours = Column(Numeric(4, 2), nullable=True)
    half_day_threshold_hours = Column(Numeric(4, 2), nullable=True)
    geofence_radius_meters = Column(Integer, nullable=True)
    correction_window_hours = Column(Integer, nullable=True)
    auto_clockout_enabled = Column(Boolean, nullable=True)
    notification_settings = Column(JSON, nullable=True)  # {"late_arrival": false, ...}
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)
