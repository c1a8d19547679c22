"""
Holiday calendar model (maintained by the holiday-calendar module; read here as a day override)
"""
from sqlalchemy import Column, Integer, Date, DateTime, String, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from app.db.base import Base


class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    __table_args__ = (
        UniqueConstraint('company_id', 'date', name='uq_holiday_company_date'),
    )
