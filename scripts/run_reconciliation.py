#!/usr/bin/env python3
"""
Run one reconciliation job against the app database and print its result as JSON.
Meant for cron / external schedulers; each job is safe to re-run.

Run from project root:
    python scripts/run_reconciliation.py auto-clockout
    python scripts/run_reconciliation.py absent-marking --date 2026-03-02
    python scripts/run_reconciliation.py ot-auto-close --now 2026-03-02T14:01:00+05:30
"""
import argparse
import json
import os
import sys
from datetime import date, datetime

# Ensure app is importable when run from the repo root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def _parse_args(argv, job_names):
    parser = argparse.ArgumentParser(description="Run an attendance reconciliation job")
    parser.add_argument("job", choices=sorted(job_names))
    parser.add_argument("--now", type=datetime.fromisoformat, default=None,
                        help="Override current time (ISO-8601, offset recommended)")
    parser.add_argument("--date", dest="work_date", type=date.fromisoformat, default=None,
                        help="Attendance date for auto-clockout / absent-marking (YYYY-MM-DD)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    from app.core.logging import setup_logging
    from app.db.session import SessionLocal
    from app.services.reconciliation_service import JOBS, run_job

    args = _parse_args(argv, JOBS)
    setup_logging()

    db = SessionLocal()
    try:
        result = run_job(db, args.job, now=args.now, work_date=args.work_date)
    finally:
        db.close()

    print(json.dumps(result.model_dump(mode="json"), indent=2))
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
