"""
Notification schemas
"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, field_serializer

from app.utils.datetime_utils import iso_local


class NotificationOut(BaseModel):
    id: int
    employee_id: int
    notification_type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    sent_at: datetime
    read_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("sent_at", "read_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)
