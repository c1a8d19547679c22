"""Admin API (HR/ADMIN; reconciliation triggers ADMIN only)."""
from fastapi import APIRouter
from app.api.v1.admin import attendance as admin_attendance
from app.api.v1.admin import config as admin_config
from app.api.v1.admin import reconciliation as admin_reconciliation
from app.api.v1.admin import shifts as admin_shifts
from app.api.v1.admin import sites as admin_sites

admin_router = APIRouter(prefix="/admin", tags=["admin"])
admin_router.include_router(admin_attendance.router, prefix="/attendance", tags=["admin-attendance"])
admin_router.include_router(admin_sites.router, prefix="/sites", tags=["admin-sites"])
admin_router.include_router(admin_shifts.router, prefix="/shifts", tags=["admin-shifts"])
admin_router.include_router(admin_config.router, prefix="/config", tags=["admin-config"])
admin_router.include_router(admin_reconciliation.router, prefix="/reconciliation", tags=["admin-reconciliation"])
