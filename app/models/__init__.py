"""
Database models
"""
from app.models.employee import Employee, Role
from app.models.audit_log import AuditLog
from app.models.holiday import Holiday
from app.models.leave import LeaveRequest, LeaveStatus
from app.models.work_site import WorkSite, EmployeeSite
from app.models.shift import Shift, EmployeeShift
from app.models.attendance_config import AttendanceConfig
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.models.overtime import OvertimeSession, OvertimeStatus, CLOSED_OT_STATUSES
from app.models.correction import (
    AttendanceCorrection,
    CorrectionType,
    CorrectionStatus,
    ReviewAction,
)
from app.models.notification import NotificationLog, NotificationType

__all__ = [
    "Employee",
    "Role",
    "AuditLog",
    "Holiday",
    "LeaveRequest",
    "LeaveStatus",
    "WorkSite",
    "EmployeeSite",
    "Shift",
    "EmployeeShift",
    "AttendanceConfig",
    "AttendanceRecord",
    "AttendanceStatus",
    "OvertimeSession",
    "OvertimeStatus",
    "CLOSED_OT_STATUSES",
    "AttendanceCorrection",
    "CorrectionType",
    "CorrectionStatus",
    "ReviewAction",
    "NotificationLog",
    "NotificationType",
]
