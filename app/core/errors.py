"""
Central error handling: attendance domain errors and JSON exception handlers.

Domain errors are HTTPException subclasses so services can raise them the same
way they raise plain HTTPException; each carries a stable machine-readable
``code`` that clients switch on instead of parsing ``detail``.
"""
import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AttendanceError(HTTPException):
    """Base class for caller-visible, non-retryable-as-is attendance errors."""

    code: str = "ATTENDANCE_ERROR"
    status_code_default: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Attendance request rejected"

    def __init__(self, detail: Optional[str] = None, *, context: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code_default, detail=detail or self.default_detail)
        self.context = context or {}


# --- geofence ---

class OutOfRange(AttendanceError):
    code = "OUT_OF_RANGE"
    default_detail = "You are outside the permitted location radius of the work site"


# --- state conflicts ---

class AlreadyClockedIn(AttendanceError):
    code = "ALREADY_CLOCKED_IN"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Already clocked in today"


class AlreadyClockedOut(AttendanceError):
    code = "ALREADY_CLOCKED_OUT"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Already clocked out"


class OTSessionAlreadyActive(AttendanceError):
    code = "OT_SESSION_ALREADY_ACTIVE"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "An overtime session is already active"


class NoActiveOTSession(AttendanceError):
    code = "NO_ACTIVE_OT_SESSION"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "No active overtime session"


# --- preconditions ---

class NoSiteAssigned(AttendanceError):
    code = "NO_SITE_ASSIGNED"
    default_detail = "No active work site is assigned to this employee"


class ParentRecordNotClockedOut(AttendanceError):
    code = "PARENT_RECORD_NOT_CLOCKED_OUT"
    default_detail = "Overtime can only start after the regular clock-out"


# --- policy gate ---

class MinimumHoursNotMet(AttendanceError):
    code = "MINIMUM_HOURS_NOT_MET"
    default_detail = "Minimum working hours not yet completed"


# --- immutability ---

class RecordLocked(AttendanceError):
    code = "RECORD_LOCKED"
    status_code_default = status.HTTP_423_LOCKED
    default_detail = "Attendance record is locked for payroll"


# --- input validation ---

class ReasonTooShort(AttendanceError):
    code = "REASON_TOO_SHORT"
    default_detail = "Reason must be at least 20 characters"


class NotesRequiredForRejection(AttendanceError):
    code = "NOTES_REQUIRED_FOR_REJECTION"
    default_detail = "Reviewer notes are required when rejecting"


class ValidationFailed(AttendanceError):
    code = "VALIDATION_FAILED"
    default_detail = "Invalid request"


class InvalidTimestamp(AttendanceError):
    code = "INVALID_TIMESTAMP"
    default_detail = "Event timestamp is too far from server time"


# --- terminal state ---

class AlreadyReviewed(AttendanceError):
    code = "ALREADY_REVIEWED"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "Request has already been reviewed"


class CorrectionAlreadyPending(AttendanceError):
    code = "CORRECTION_ALREADY_PENDING"
    status_code_default = status.HTTP_409_CONFLICT
    default_detail = "A correction request for this record is already pending"


# --- lookup / access ---

class NotFound(AttendanceError):
    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Forbidden(AttendanceError):
    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN
    default_detail = "Access denied"


_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException (and attendance domain errors) with a consistent JSON body

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    content = {
        "error": True,
        "status_code": exc.status_code,
        "detail": exc.detail,
        "path": str(request.url.path)
    }
    if isinstance(exc, AttendanceError):
        content["code"] = exc.code
        if exc.context:
            content["context"] = exc.context
    headers = dict(_CORS_HEADERS)
    if getattr(exc, "headers", None):
        headers.update(exc.headers)
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    from app.core.config import settings

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "status_code": 422,
                "detail": "Validation error: Invalid request data",
                "path": str(request.url.path)
            }
        )

    # Sanitize for JSON: e.g. ctx.error ValueError -> str
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": True,
            "status_code": 422,
            "detail": "Validation error",
            "errors": errors,
            "path": str(request.url.path)
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions (including storage outages) as a generic infrastructure failure

    Does not leak internal error details in production.
    """
    from app.core.config import settings

    logger.error("Unhandled exception: %s", exc, exc_info=True)

    if settings.APP_ENV == "prod":
        detail = "Internal server error"
        tb = None
    else:
        detail = str(exc)
        tb = traceback.format_exc() if settings.APP_ENV == "local" else None

    content = {
        "error": True,
        "status_code": 500,
        "detail": detail,
        "path": str(request.url.path),
    }
    if tb:
        content["traceback"] = tb
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_CORS_HEADERS,
    )
