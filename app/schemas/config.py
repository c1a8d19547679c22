"""
Attendance configuration schemas: immutable snapshot passed into policy code, and admin I/O.
"""
from datetime import time
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_CLOCK_IN = time(9, 0)
DEFAULT_CLOCK_OUT = time(18, 0)


class AttendanceConfigSnapshot(BaseModel):
    """
    Company-wide timing policy as seen by one operation.

    Loaded once per request/job and passed explicitly so classification does not
    depend on reads performed mid-operation.
    """
    company_id: int
    default_clock_in_time: time = DEFAULT_CLOCK_IN
    default_clock_out_time: time = DEFAULT_CLOCK_OUT
    grace_period_minutes: int = 10
    minimum_working_hours: float = 8.0
    half_day_threshold_hours: float = 4.0
    geofence_radius_meters: int = 100
    correction_window_hours: int = 24
    auto_clockout_enabled: bool = True
    notification_settings: Dict[str, bool] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    def notification_enabled(self, notification_type: str) -> bool:
        """Types are enabled unless explicitly switched off."""
        return self.notification_settings.get(notification_type, True) is not False


class AttendanceConfigUpdate(BaseModel):
    """Admin upsert payload; omitted fields keep their current value."""
    default_clock_in_time: Optional[time] = None
    default_clock_out_time: Optional[time] = None
    grace_period_minutes: Optional[int] = Field(None, ge=0, le=240)
    minimum_working_hours: Optional[float] = Field(None, ge=0, le=24)
    half_day_threshold_hours: Optional[float] = Field(None, gt=0, le=24)
    geofence_radius_meters: Optional[int] = Field(None, ge=50, le=500)
    correction_window_hours: Optional[int] = Field(None, ge=1, le=24 * 31)
    auto_clockout_enabled: Optional[bool] = None
    notification_settings: Optional[Dict[str, bool]] = None
