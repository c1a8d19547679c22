"""
Correction request schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.models.correction import CorrectionStatus, CorrectionType, ReviewAction
from app.utils.datetime_utils import iso_local


class CorrectionSubmitRequest(BaseModel):
    """Reason length is checked by the workflow so the error carries its own code"""
    attendance_record_id: int
    correction_type: CorrectionType
    requested_clock_in: Optional[datetime] = None
    requested_clock_out: Optional[datetime] = None
    reason: str = Field(..., max_length=2000)
    attachment_url: Optional[str] = Field(None, max_length=1000)


class CorrectionReviewRequest(BaseModel):
    action: ReviewAction
    notes: Optional[str] = Field(None, max_length=2000)


class CorrectionOut(BaseModel):
    id: int
    employee_id: int
    attendance_record_id: int
    correction_type: CorrectionType
    requested_clock_in: Optional[datetime] = None
    requested_clock_out: Optional[datetime] = None
    reason: str
    attachment_url: Optional[str] = None
    status: CorrectionStatus
    submission_deadline: datetime
    is_within_deadline: bool
    reviewed_by: Optional[int] = None
    reviewer_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("requested_clock_in", "requested_clock_out", "submission_deadline", "reviewed_at", "created_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)
