"""
Reconciliation job schemas
"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_serializer

from app.utils.datetime_utils import iso_local


class ReconciliationResult(BaseModel):
    """Outcome of one job run: records examined vs. records changed."""
    job: str
    scanned: int = 0
    mutated: int = 0
    failed: int = 0
    work_date: Optional[date] = None
    ran_at: datetime

    @field_serializer("ran_at")
    def serialize_ran_at(self, dt: datetime, _info):
        return iso_local(dt)


class ReconciliationRunRequest(BaseModel):
    """Optional overrides for a manual run; both default to the current time."""
    now: Optional[datetime] = None
    work_date: Optional[date] = None
