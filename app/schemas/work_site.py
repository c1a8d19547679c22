"""
Work site and shift schemas
"""
from datetime import date, time
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.constants import SITE_RADIUS_MAX_METERS, SITE_RADIUS_MIN_METERS


class WorkSiteCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    radius_meters: int = Field(..., description=f"{SITE_RADIUS_MIN_METERS}..{SITE_RADIUS_MAX_METERS} meters")


class WorkSiteUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius_meters: Optional[int] = None
    is_active: Optional[bool] = None


class WorkSiteOut(BaseModel):
    id: int
    company_id: int
    name: str
    address: Optional[str] = None
    latitude: Decimal
    longitude: Decimal
    radius_meters: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class SiteAssignmentRequest(BaseModel):
    employee_id: int
    is_primary: bool = False


class SiteAssignmentOut(BaseModel):
    id: int
    employee_id: int
    site_id: int
    is_primary: bool

    model_config = ConfigDict(from_attributes=True)


class ShiftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    start_time: time
    end_time: time
    grace_period_minutes: int = Field(10, ge=0, le=240)


class ShiftOut(BaseModel):
    id: int
    company_id: int
    name: str
    start_time: time
    end_time: time
    grace_period_minutes: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ShiftAssignmentRequest(BaseModel):
    employee_id: int
    work_days: List[str] = Field(..., min_length=1, description='e.g. ["Monday", "Tuesday"]')
    effective_from: date
    effective_until: Optional[date] = None


class ShiftAssignmentOut(BaseModel):
    id: int
    employee_id: int
    shift_id: int
    work_days: List[str]
    effective_from: date
    effective_until: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)
