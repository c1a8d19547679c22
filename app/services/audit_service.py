"""
Audit logging service
"""
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import to_json_safe


def log_audit(
    db: Session,
    actor_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Stage an audit log entry in the caller's transaction.

    The entry is committed (or rolled back) together with the state change it
    describes; this function never commits.

    Args:
        db: Database session
        actor_id: Employee performing the action; None for scheduler jobs
        action: Action type (e.g. "ATTENDANCE_CLOCK_IN", "OT_AUTO_CLOSED")
        entity_type: Table of the affected entity
        entity_id: ID of the affected entity (optional)
        meta: Additional metadata (optional)

    Returns:
        Pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_json=to_json_safe(meta) if meta is not None else None,
        # Explicit created_at avoids SQLite issues with server_default
        created_at=now_utc(),
    )
    db.add(audit_log)
    return audit_log
