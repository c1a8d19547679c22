"""
Work site (geofence) and employee-site assignment models
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Numeric, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class WorkSite(Base):
    __tablename__ = "work_sites"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, nullable=True)
    latitude = Column(Numeric(10, 8), nullable=False)  # decimal degrees
    longitude = Column(Numeric(11, 8), nullable=False)  # decimal degrees
    radius_meters = Column(Integer, nullable=False)  # 50..500
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    __table_args__ = (
        CheckConstraint("radius_meters BETWEEN 50 AND 500", name="ck_work_sites_radius"),
    )

    assignments = relationship("EmployeeSite", back_populates="site", cascade="all, delete-orphan")


class EmployeeSite(Base):
    __tablename__ = "employee_sites"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    site_id = Column(Integer, ForeignKey("work_sites.id"), nullable=False, index=True)
    is_primary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('employee_id', 'site_id', name='uq_employee_site'),
    )

    site = relationship("WorkSite", back_populates="assignments")
