"""
Manual triggers for the reconciliation jobs (ADMIN). Schedulers normally use
scripts/run_reconciliation.py instead.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_db, require_roles
from app.core.errors import NotFound
from app.models.employee import Employee, Role
from app.schemas.reconciliation import ReconciliationResult, ReconciliationRunRequest
from app.services.reconciliation_service import JOBS, run_job

router = APIRouter()
_log = logging.getLogger(__name__)


@router.post("/{job}", response_model=ReconciliationResult)
async def run_job_endpoint(
    job: str,
    payload: Optional[ReconciliationRunRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.ADMIN)),
):
    """Run one job now: auto-clockout, late-arrival, ot-auto-close or absent-marking."""
    if job not in JOBS:
        raise NotFound(f"Unknown reconciliation job '{job}'")
    payload = payload or ReconciliationRunRequest()
    _log.info("Reconciliation job %s triggered by employee_id=%s", job, current_user.id)
    return run_job(db, job, now=payload.now, work_date=payload.work_date)
