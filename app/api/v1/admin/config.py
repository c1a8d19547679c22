"""
Admin attendance configuration endpoints (HR/ADMIN)
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_attendance_admin
from app.models.employee import Employee
from app.schemas.config import AttendanceConfigSnapshot, AttendanceConfigUpdate
from app.services.attendance_config_service import load_config_snapshot, upsert_attendance_config

router = APIRouter()


@router.get("", response_model=AttendanceConfigSnapshot)
async def get_config_endpoint(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Effective configuration; defaults are returned when the company has none stored."""
    return load_config_snapshot(db, current_user.company_id)


@router.put("", response_model=AttendanceConfigSnapshot)
async def update_config_endpoint(
    payload: AttendanceConfigUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Create or update; omitted fields keep their value."""
    return upsert_attendance_config(db, current_user.company_id, payload, actor_id=current_user.id)
