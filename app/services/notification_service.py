"""
Notification sink: writes structured notification records to notification_log.

Callers invoke ``emit_notification`` only after their own state change has been
committed. The notification is written in a separate commit, and a failure here
is logged and rolled back without touching the already-applied attendance change.
Push/email delivery of these rows is handled elsewhere.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.notification import NotificationLog, NotificationType
from app.utils.datetime_utils import ensure_utc, now_utc
from app.utils.json_serializer import to_json_safe

logger = logging.getLogger(__name__)


def emit_notification(
    db: Session,
    employee_id: int,
    notification_type: NotificationType,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
    sent_at: Optional[datetime] = None,
    dedupe_key: Optional[str] = None,
) -> Optional[NotificationLog]:
    """
    Record an outbound notification.

    A notification with a dedupe_key is stored at most once; a second insert with
    the same key hits the unique constraint and is dropped.

    Returns:
        The stored NotificationLog, or None when the write failed or was a duplicate.
    """
    notification = NotificationLog(
        employee_id=employee_id,
        notification_type=NotificationType(notification_type).value,
        title=title,
        message=message,
        data=to_json_safe(data) if data is not None else None,
        sent_at=ensure_utc(sent_at) if sent_at else now_utc(),
        dedupe_key=dedupe_key,
    )
    try:
        db.add(notification)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if dedupe_key is not None and isinstance(e, IntegrityError):
            logger.info("Notification %s already recorded, skipped", dedupe_key)
            return None
        logger.error(
            "Failed to record %s notification for employee_id=%s: %s",
            notification.notification_type, employee_id, e, exc_info=True,
        )
        return None
    db.refresh(notification)
    logger.info("Notification %s recorded for employee_id=%s", notification.notification_type, employee_id)
    return notification


def has_notification_since(
    db: Session,
    employee_id: int,
    notification_type: NotificationType,
    since: datetime,
    until: Optional[datetime] = None,
) -> bool:
    """True when a notification of this type was already recorded for the employee in [since, until)."""
    query = db.query(NotificationLog.id).filter(
        NotificationLog.employee_id == employee_id,
        NotificationLog.notification_type == NotificationType(notification_type).value,
        NotificationLog.sent_at >= ensure_utc(since),
    )
    if until is not None:
        query = query.filter(NotificationLog.sent_at < ensure_utc(until))
    return query.first() is not None


def list_notifications(db: Session, employee_id: int, unread_only: bool = False, limit: int = 50) -> List[NotificationLog]:
    query = db.query(NotificationLog).filter(NotificationLog.employee_id == employee_id)
    if unread_only:
        query = query.filter(NotificationLog.read_at.is_(None))
    return query.order_by(NotificationLog.sent_at.desc(), NotificationLog.id.desc()).limit(limit).all()
