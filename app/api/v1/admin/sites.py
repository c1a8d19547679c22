"""
Admin work site endpoints: geofence CRUD and employee assignments (HR/ADMIN).
"""
from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_attendance_admin
from app.models.employee import Employee
from app.schemas.work_site import (
    SiteAssignmentOut,
    SiteAssignmentRequest,
    WorkSiteCreate,
    WorkSiteOut,
    WorkSiteUpdate,
)
from app.services import work_site_service as svc

router = APIRouter()


@router.get("", response_model=List[WorkSiteOut])
async def list_sites_endpoint(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    return [WorkSiteOut.model_validate(s) for s in svc.list_sites(db, current_user.company_id, include_inactive)]


@router.post("", response_model=WorkSiteOut, status_code=status.HTTP_201_CREATED)
async def create_site_endpoint(
    payload: WorkSiteCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Create a geofence. radius_meters must be within 50..500."""
    site = svc.create_site(
        db,
        current_user.company_id,
        name=payload.name,
        latitude=payload.latitude,
        longitude=payload.longitude,
        radius_meters=payload.radius_meters,
        address=payload.address,
        actor_id=current_user.id,
    )
    return WorkSiteOut.model_validate(site)


@router.patch("/{site_id}", response_model=WorkSiteOut)
async def update_site_endpoint(
    site_id: int,
    payload: WorkSiteUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    site = svc.update_site(db, site_id, current_user.company_id, payload.model_dump(exclude_unset=True), current_user.id)
    return WorkSiteOut.model_validate(site)


@router.delete("/{site_id}", response_model=WorkSiteOut)
async def deactivate_site_endpoint(
    site_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    """Soft delete: the site stops accepting clock-ins; history keeps pointing at it."""
    return WorkSiteOut.model_validate(svc.deactivate_site(db, site_id, current_user.company_id, current_user.id))


@router.post("/{site_id}/assignments", response_model=SiteAssignmentOut, status_code=status.HTTP_201_CREATED)
async def assign_site_endpoint(
    site_id: int,
    payload: SiteAssignmentRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    assignment = svc.assign_site(db, payload.employee_id, site_id, payload.is_primary, current_user.id)
    return SiteAssignmentOut.model_validate(assignment)


@router.delete("/{site_id}/assignments/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unassign_site_endpoint(
    site_id: int,
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_attendance_admin),
):
    svc.unassign_site(db, employee_id, site_id, current_user.id)
