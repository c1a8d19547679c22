"""
Work site (geofence) management and employee-site assignments.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from app.constants import SITE_RADIUS_MAX_METERS, SITE_RADIUS_MIN_METERS
from app.core.errors import NotFound, ValidationFailed
from app.models.employee import Employee
from app.models.work_site import WorkSite, EmployeeSite
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def _validate_geometry(latitude: Optional[float], longitude: Optional[float], radius_meters: Optional[int]) -> None:
    if latitude is not None and not (-90 <= float(latitude) <= 90):
        raise ValidationFailed("latitude must be between -90 and 90")
    if longitude is not None and not (-180 <= float(longitude) <= 180):
        raise ValidationFailed("longitude must be between -180 and 180")
    if radius_meters is not None and not (SITE_RADIUS_MIN_METERS <= radius_meters <= SITE_RADIUS_MAX_METERS):
        raise ValidationFailed(
            f"radius_meters must be between {SITE_RADIUS_MIN_METERS} and {SITE_RADIUS_MAX_METERS}",
            context={"radius_meters": radius_meters},
        )


def create_site(
    db: Session,
    company_id: int,
    name: str,
    latitude: float,
    longitude: float,
    radius_meters: int,
    address: Optional[str] = None,
    actor_id: Optional[int] = None,
) -> WorkSite:
    """
    Create a work site geofence.

    Raises:
        ValidationFailed: coordinates out of range or radius outside [50, 500] m
    """
    _validate_geometry(latitude, longitude, radius_meters)
    site = WorkSite(
        company_id=company_id,
        name=name.strip(),
        address=address,
        latitude=latitude,
        longitude=longitude,
        radius_meters=radius_meters,
        is_active=True,
        created_by=actor_id,
    )
    db.add(site)
    db.flush()
    log_audit(db, actor_id, "WORK_SITE_CREATED", "work_sites", site.id,
              {"name": site.name, "latitude": latitude, "longitude": longitude, "radius_meters": radius_meters})
    db.commit()
    db.refresh(site)
    logger.info("Work site created: id=%s company_id=%s radius=%sm", site.id, company_id, radius_meters)
    return site


def get_site(db: Session, site_id: int, company_id: Optional[int] = None) -> WorkSite:
    query = db.query(WorkSite).filter(WorkSite.id == site_id)
    if company_id is not None:
        query = query.filter(WorkSite.company_id == company_id)
    site = query.first()
    if not site:
        raise NotFound("Work site not found")
    return site


def update_site(db: Session, site_id: int, company_id: int, changes: dict, actor_id: Optional[int] = None) -> WorkSite:
    site = get_site(db, site_id, company_id)
    _validate_geometry(changes.get("latitude"), changes.get("longitude"), changes.get("radius_meters"))
    for field in ("name", "address", "latitude", "longitude", "radius_meters", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(site, field, changes[field])
    log_audit(db, actor_id, "WORK_SITE_UPDATED", "work_sites", site.id, changes)
    db.commit()
    db.refresh(site)
    return site


def deactivate_site(db: Session, site_id: int, company_id: int, actor_id: Optional[int] = None) -> WorkSite:
    """Soft delete: existing records keep pointing at the site."""
    return update_site(db, site_id, company_id, {"is_active": False}, actor_id)


def list_sites(db: Session, company_id: int, include_inactive: bool = False) -> List[WorkSite]:
    query = db.query(WorkSite).filter(WorkSite.company_id == company_id)
    if not include_inactive:
        query = query.filter(WorkSite.is_active.is_(True))
    return query.order_by(WorkSite.name).all()


def assign_site(
    db: Session,
    employee_id: int,
    site_id: int,
    is_primary: bool = False,
    actor_id: Optional[int] = None,
) -> EmployeeSite:
    """Assign an employee to a site of their company (idempotent per pair)."""
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise NotFound("Employee not found")
    get_site(db, site_id, employee.company_id)

    assignment = db.query(EmployeeSite).filter(
        EmployeeSite.employee_id == employee_id,
        EmployeeSite.site_id == site_id,
    ).first()
    if assignment is None:
        assignment = EmployeeSite(employee_id=employee_id, site_id=site_id, is_primary=is_primary)
        db.add(assignment)
    else:
        assignment.is_primary = is_primary
    if is_primary:
        db.query(EmployeeSite).filter(
            EmployeeSite.employee_id == employee_id,
            EmployeeSite.site_id != site_id,
        ).update({EmployeeSite.is_primary: False}, synchronize_session=False)
    db.flush()
    log_audit(db, actor_id, "WORK_SITE_ASSIGNED", "employee_sites", assignment.id,
              {"employee_id": employee_id, "site_id": site_id, "is_primary": is_primary})
    db.commit()
    db.refresh(assignment)
    return assignment


def unassign_site(db: Session, employee_id: int, site_id: int, actor_id: Optional[int] = None) -> None:
    assignment = db.query(EmployeeSite).filter(
        EmployeeSite.employee_id == employee_id,
        EmployeeSite.site_id == site_id,
    ).first()
    if not assignment:
        raise NotFound("Site assignment not found")
    db.delete(assignment)
    log_audit(db, actor_id, "WORK_SITE_UNASSIGNED", "employee_sites", None,
              {"employee_id": employee_id, "site_id": site_id})
    db.commit()


def list_employee_sites(db: Session, employee_id: int) -> List[WorkSite]:
    """Active sites assigned to the employee, primary first."""
    return (
        db.query(WorkSite)
        .join(EmployeeSite, EmployeeSite.site_id == WorkSite.id)
        .filter(EmployeeSite.employee_id == employee_id, WorkSite.is_active.is_(True))
        .order_by(EmployeeSite.is_primary.desc(), WorkSite.name)
        .all()
    )
