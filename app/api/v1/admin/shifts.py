"""
Admin shift endpoints: shift definitions and employee shift assignments (HR/ADMIN).
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_attendance_admin
from app.models.employee import Employee
from app.schemas.work_site import ShiftAssignmentOut, ShiftAssignmentRequest, ShiftCreate, ShiftOut
from app.services import shift_service

router = APIRouter()


@router.get("", response_model=List[ShiftOut])
async def list_shifts_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    return [ShiftOut.model_validate(s) for s in shift_service.list_shifts(db, current_user.company_id)]


@router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
async def create_shift_endpoint(
    payload: ShiftCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Create a shift. An end_time at or before start_time means the shift ends the next day."""
    shift = shift_service.create_shift(
        db,
        current_user.company_id,
        name=payload.name,
        start_time=payload.start_time,
        end_time=payload.end_time,
        grace_period_minutes=payload.grace_period_minutes,
        actor_id=current_user.id,
    )
    return ShiftOut.model_validate(shift)


@router.post("/{shift_id}/assignments", response_model=ShiftAssignmentOut, status_code=status.HTTP_201_CREATED)
async def assign_shift_endpoint(
    shift_id: int,
    payload: ShiftAssignmentRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    assignment = shift_service.assign_shift(
        db,
        employee_id=payload.employee_id,
        shift_id=shift_id,
        work_days=payload.work_days,
        effective_from=payload.effective_from,
        effective_until=payload.effective_until,
        actor_id=current_user.id,
    )
    return ShiftAssignmentOut.model_validate(assignment)
