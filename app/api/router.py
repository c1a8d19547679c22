"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    attendance,
    corrections,
    notifications,
)
from app.api.v1.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(attendance.router, prefix="/attendance", tags=["attendance"])
api_router.include_router(corrections.router, prefix="/corrections", tags=["corrections"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin_router)
