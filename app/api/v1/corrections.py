"""
Attendance correction endpoints: employees submit, HR/ADMIN review.
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_user, require_attendance_admin
from app.models.employee import Employee
from app.schemas.correction import CorrectionOut, CorrectionReviewRequest, CorrectionSubmitRequest
from app.services import correction_service

router = APIRouter()


@router.post("", response_model=CorrectionOut, status_code=status.HTTP_201_CREATED)
async def submit_correction_endpoint(
    payload: CorrectionSubmitRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Submit a correction for one of your records. Late submissions are accepted and
    flagged with is_within_deadline=false.
    """
    correction = correction_service.submit_correction(
        db,
        current_user,
        attendance_record_id=payload.attendance_record_id,
        correction_type=payload.correction_type,
        reason=payload.reason,
        requested_clock_in=payload.requested_clock_in,
        requested_clock_out=payload.requested_clock_out,
        attachment_url=payload.attachment_url,
    )
    return CorrectionOut.model_validate(correction)


@router.get("/my", response_model=List[CorrectionOut])
async def my_corrections_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return [CorrectionOut.model_validate(c) for c in correction_service.list_my_corrections(db, current_user.id)]


@router.get("/pending", response_model=List[CorrectionOut])
async def pending_corrections_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Pending requests of your company, within-deadline first."""
    return [
        CorrectionOut.model_validate(c)
        for c in correction_service.list_pending_corrections(db, current_user.company_id)
    ]


@router.post("/{correction_id}/review", response_model=CorrectionOut)
async def review_correction_endpoint(
    correction_id: int,
    payload: CorrectionReviewRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Approve or reject a pending correction. Notes are required when rejecting."""
    correction = correction_service.review_correction(
        db,
        correction_id,
        current_user,
        action=payload.action,
        notes=payload.notes,
    )
    return CorrectionOut.model_validate(correction)
