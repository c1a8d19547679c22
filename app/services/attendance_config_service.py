"""
Attendance configuration: load immutable per-company snapshots, admin upsert.
"""
import logging
from typing import Optional
from sqlalchemy.orm import Session

from app.models.attendance_config import AttendanceConfig
from app.schemas.config import AttendanceConfigSnapshot, AttendanceConfigUpdate
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)


def get_config_row(db: Session, company_id: int) -> Optional[AttendanceConfig]:
    return db.query(AttendanceConfig).filter(AttendanceConfig.company_id == company_id).first()


def snapshot_from_row(company_id: int, row: Optional[AttendanceConfig]) -> AttendanceConfigSnapshot:
    """Build a snapshot; NULL columns (or a missing row) take the documented defaults."""
    if row is None:
        return AttendanceConfigSnapshot(company_id=company_id)
    values = {
        "default_clock_in_time": row.default_clock_in_time,
        "default_clock_out_time": row.default_clock_out_time,
        "grace_period_minutes": row.grace_period_minutes,
        "minimum_working_hours": float(row.minimum_working_hours) if row.minimum_working_hours is not None else None,
        "half_day_threshold_hours": float(row.half_day_threshold_hours) if row.half_day_threshold_hours is not None else None,
        "geofence_radius_meters": row.geofence_radius_meters,
        "correction_window_hours": row.correction_window_hours,
        "auto_clockout_enabled": row.auto_clockout_enabled,
        "notification_settings": dict(row.notification_settings) if row.notification_settings else None,
    }
    return AttendanceConfigSnapshot(
        company_id=company_id,
        **{k: v for k, v in values.items() if v is not None},
    )


def load_config_snapshot(db: Session, company_id: int) -> AttendanceConfigSnapshot:
    """Read the company's attendance configuration once and freeze it."""
    return snapshot_from_row(company_id, get_config_row(db, company_id))


def upsert_attendance_config(
    db: Session,
    company_id: int,
    update: AttendanceConfigUpdate,
    actor_id: Optional[int] = None,
) -> AttendanceConfigSnapshot:
    """Create or update the company's configuration; omitted fields are left unchanged."""
    row = get_config_row(db, company_id)
    if row is None:
        row = AttendanceConfig(company_id=company_id)
        db.add(row)

    changes = update.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(row, field, value)

    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="ATTENDANCE_CONFIG_UPDATED",
        entity_type="attendance_config",
        entity_id=row.id,
        meta={"company_id": company_id, "changes": changes},
    )
    db.commit()
    db.refresh(row)
    logger.info("Attendance config updated: company_id=%s fields=%s", company_id, sorted(changes))
    return snapshot_from_row(company_id, row)
