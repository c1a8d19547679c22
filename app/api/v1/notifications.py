"""
Notification endpoints (current employee's notification log)
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_user
from app.models.employee import Employee
from app.schemas.notification import NotificationOut
from app.services.notification_service import list_notifications

router = APIRouter()


@router.get("/my", response_model=List[NotificationOut])
async def my_notifications_endpoint(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Your notifications, newest first."""
    return [
        NotificationOut.model_validate(n)
        for n in list_notifications(db, current_user.id, unread_only=unread_only, limit=limit)
    ]
