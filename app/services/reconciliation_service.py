"""
Reconciliation jobs: auto-clockout, late-arrival notifier, OT auto-close, absent marking.

Each job is safe to re-run and to run concurrently with itself and with live
requests. Every mutation is a conditional UPDATE (or a constrained INSERT), so a
record already handled by another run is simply not counted as mutated. Each
record is processed in its own transaction; a failure is logged, rolled back and
skipped, and the record is retried on the next pass. Notifications are emitted
after the record's commit.
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Dict, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.constants import AUTO_CLOCKOUT_NOTE, SYSTEM_ACTOR
from app.core.config import settings
from app.models.attendance_record import AttendanceRecord, AttendanceStatus
from app.models.employee import Employee
from app.models.notification import NotificationType
from app.models.overtime import OvertimeSession, OvertimeStatus
from app.schemas.config import AttendanceConfigSnapshot
from app.schemas.reconciliation import ReconciliationResult
from app.services import attendance_policy as policy
from app.services.attendance_config_service import load_config_snapshot
from app.services.attendance_recorder import get_record_for_day, recompute_overtime_hours
from app.services.audit_service import log_audit
from app.services.calendar_service import day_override
from app.services.notification_service import emit_notification, has_notification_since
from app.services.shift_service import current_assignments_for_day, is_work_day, resolve_current_shift
from app.utils.datetime_utils import ensure_utc, iso_local, local_date, local_day_bounds, now_utc, to_local

logger = logging.getLogger(__name__)


class _ConfigCache:
    """Per-run config snapshots, loaded once per company."""

    def __init__(self, db: Session):
        self.db = db
        self._snapshots: Dict[int, AttendanceConfigSnapshot] = {}

    def get(self, company_id: int) -> AttendanceConfigSnapshot:
        if company_id not in self._snapshots:
            self._snapshots[company_id] = load_config_snapshot(self.db, company_id)
        return self._snapshots[company_id]


def run_auto_clockout(db: Session, now: Optional[datetime] = None, work_date: Optional[date] = None) -> ReconciliationResult:
    """
    Close records left open past shift end.

    For each unlocked record with a clock-in and no clock-out, once
    now >= shift_end + grace, set clock_out_time = shift_end, mark it provisional and
    append the system note. Records without a resolvable shift are skipped.

    Without work_date, yesterday's records are scanned as well: an overnight shift
    ends on the day after its attendance date. A clock-in later than shift end is
    closed at the clock-in itself, never before it.
    """
    now = ensure_utc(now) if now else now_utc()
    day = work_date or local_date(now)
    scan_dates = [day] if work_date else [day - timedelta(days=1), day]
    result = ReconciliationResult(job="auto_clockout", work_date=day, ran_at=now)
    configs = _ConfigCache(db)

    candidates = (
        db.query(AttendanceRecord.id, AttendanceRecord.employee_id, AttendanceRecord.attendance_date, Employee.company_id)
        .join(Employee, Employee.id == AttendanceRecord.employee_id)
        .filter(
            AttendanceRecord.attendance_date.in_(scan_dates),
            AttendanceRecord.clock_in_time.isnot(None),
            AttendanceRecord.clock_out_time.is_(None),
            AttendanceRecord.locked_for_payroll.is_(False),
        )
        .order_by(AttendanceRecord.id)
        .all()
    )

    for record_id, employee_id, record_date, company_id in candidates:
        result.scanned += 1
        try:
            config = configs.get(company_id)
            if not config.auto_clockout_enabled:
                continue
            record = db.get(AttendanceRecord, record_id)
            shift = record.shift or resolve_current_shift(db, employee_id, record_date)
            if shift is None:
                logger.debug("Auto-clockout: record %s has no resolvable shift, skipped", record_id)
                continue
            timing = policy.timing_for(shift, config)
            _, shift_end = policy.shift_window(record_date, timing)
            if not policy.auto_clockout_due(shift_end, now, settings.AUTO_CLOCKOUT_GRACE_MINUTES):
                continue

            clock_out_at = max(shift_end, ensure_utc(record.clock_in_time))
            worked = policy.hours_worked(record.clock_in_time, clock_out_at)
            notes = f"{record.notes}\n{AUTO_CLOCKOUT_NOTE}" if record.notes else AUTO_CLOCKOUT_NOTE
            updated = db.execute(
                update(AttendanceRecord)
                .where(
                    AttendanceRecord.id == record_id,
                    AttendanceRecord.clock_out_time.is_(None),
                    AttendanceRecord.locked_for_payroll.is_(False),
                )
                .values(clock_out_time=clock_out_at, hours_worked=worked, is_provisional=True, notes=notes)
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount == 0:
                db.rollback()
                continue

            log_audit(db, SYSTEM_ACTOR, "ATTENDANCE_AUTO_CLOCK_OUT", "attendance_records", record_id,
                      {"clock_out_time": clock_out_at, "hours_worked": worked, "shift_id": shift.id})
            db.commit()
            result.mutated += 1
            logger.info("Auto-clockout: record %s closed at %s", record_id, iso_local(clock_out_at))
        except Exception as e:
            db.rollback()
            result.failed += 1
            logger.error("Auto-clockout failed for record %s: %s", record_id, e, exc_info=True)
            continue

        if config.notification_enabled(NotificationType.MISSED_CLOCKOUT.value):
            deadline = shift_end + timedelta(hours=config.correction_window_hours)
            emit_notification(
                db,
                employee_id,
                NotificationType.MISSED_CLOCKOUT,
                title="Missed Clock-Out",
                message=(
                    f"You were automatically clocked out at {to_local(clock_out_at).strftime('%I:%M %p')}. "
                    f"Submit a correction before {to_local(deadline).strftime('%d %b %Y %I:%M %p')} if this is wrong."
                ),
                data={
                    "attendance_id": record_id,
                    "auto_clockout_time": iso_local(clock_out_at),
                    "deadline": iso_local(deadline),
                },
                sent_at=now,
            )

    logger.info("Auto-clockout run for %s: scanned=%s mutated=%s failed=%s",
                day, result.scanned, result.mutated, result.failed)
    return result


def run_late_arrival_notifier(db: Session, now: Optional[datetime] = None) -> ReconciliationResult:
    """
    Notify employees scheduled today who have not clocked in by shift start + grace.

    At most one late_arrival notification per employee per day: the notification
    log is checked before sending, and the per-day dedupe key drops a concurrent
    duplicate insert.
    """
    now = ensure_utc(now) if now else now_utc()
    day = local_date(now)
    day_start, day_end = local_day_bounds(day)
    result = ReconciliationResult(job="late_arrival", work_date=day, ran_at=now)
    configs = _ConfigCache(db)

    assignments = [a for a in current_assignments_for_day(db, day) if is_work_day(a, day)]
    for assignment in assignments:
        employee_id = assignment.employee_id
        result.scanned += 1
        try:
            employee = db.get(Employee, employee_id)
            if employee is None or not employee.active:
                continue
            config = configs.get(employee.company_id)
            if not config.notification_enabled(NotificationType.LATE_ARRIVAL.value):
                continue
            timing = policy.timing_for(assignment.shift, config)
            if now < policy.late_arrival_threshold(day, timing):
                continue
            record = get_record_for_day(db, employee_id, day)
            if record is not None and record.clock_in_time is not None:
                continue
            if day_override(db, employee, day) is not None:
                continue
            if has_notification_since(db, employee_id, NotificationType.LATE_ARRIVAL, day_start, day_end):
                continue
            shift_start, _ = policy.shift_window(day, timing)
            late_by = int((now - shift_start).total_seconds() // 60)
        except Exception as e:
            db.rollback()
            result.failed += 1
            logger.error("Late-arrival check failed for employee_id=%s: %s", employee_id, e, exc_info=True)
            continue

        sent = emit_notification(
            db,
            employee_id,
            NotificationType.LATE_ARRIVAL,
            title="Late Arrival Alert",
            message=(
                f"Your {timing.name or 'shift'} started at {timing.start_time.strftime('%I:%M %p')}. "
                f"You haven't clocked in yet."
            ),
            data={
                "shift_name": timing.name,
                "shift_start": timing.start_time.strftime("%H:%M"),
                "late_by_minutes": late_by,
            },
            sent_at=now,
            dedupe_key=f"{NotificationType.LATE_ARRIVAL.value}:{employee_id}:{day.isoformat()}",
        )
        if sent is None:
            if not has_notification_since(db, employee_id, NotificationType.LATE_ARRIVAL, day_start, day_end):
                result.failed += 1
        else:
            result.mutated += 1

    logger.info("Late-arrival run for %s: scanned=%s notified=%s failed=%s",
                day, result.scanned, result.mutated, result.failed)
    return result


def run_ot_auto_close(db: Session, now: Optional[datetime] = None) -> ReconciliationResult:
    """
    Close overtime sessions active for longer than the cap.

    ot_out_time = ot_in_time + cap and total_ot_hours = cap exactly, whatever the
    actual elapsed time; extra time needs a manual correction.
    """
    now = ensure_utc(now) if now else now_utc()
    cap_hours = settings.OT_AUTO_CLOSE_HOURS
    cap = timedelta(hours=cap_hours)
    credited = Decimal(str(cap_hours)).quantize(Decimal("0.01"))
    result = ReconciliationResult(job="ot_auto_close", ran_at=now)
    configs = _ConfigCache(db)

    candidates = (
        db.query(OvertimeSession.id, OvertimeSession.employee_id, Employee.company_id)
        .join(Employee, Employee.id == OvertimeSession.employee_id)
        .filter(
            OvertimeSession.status == OvertimeStatus.ACTIVE.value,
            OvertimeSession.ot_in_time < now - cap,
        )
        .order_by(OvertimeSession.id)
        .all()
    )

    for session_id, employee_id, company_id in candidates:
        result.scanned += 1
        try:
            session = db.get(OvertimeSession, session_id)
            record = session.attendance_record
            if record.locked_for_payroll:
                logger.warning("OT auto-close: session %s belongs to payroll-locked record %s, skipped",
                               session_id, record.id)
                continue
            ot_in_at = ensure_utc(session.ot_in_time)
            ot_out_at = ot_in_at + cap
            updated = db.execute(
                update(OvertimeSession)
                .where(OvertimeSession.id == session_id, OvertimeSession.status == OvertimeStatus.ACTIVE.value)
                .values(
                    ot_out_time=ot_out_at,
                    total_ot_hours=credited,
                    status=OvertimeStatus.AUTO_CLOSED.value,
                    auto_closed_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount == 0:
                db.rollback()
                continue
            recompute_overtime_hours(db, record.id)
            log_audit(db, SYSTEM_ACTOR, "OT_AUTO_CLOSED", "overtime_sessions", session_id,
                      {"ot_in_time": ot_in_at, "ot_out_time": ot_out_at, "total_ot_hours": credited})
            db.commit()
            result.mutated += 1
            logger.info("OT auto-close: session %s closed at %s", session_id, iso_local(ot_out_at))
        except Exception as e:
            db.rollback()
            result.failed += 1
            logger.error("OT auto-close failed for session %s: %s", session_id, e, exc_info=True)
            continue

        config = configs.get(company_id)
        if config.notification_enabled(NotificationType.OT_AUTO_CLOSED.value):
            emit_notification(
                db,
                employee_id,
                NotificationType.OT_AUTO_CLOSED,
                title="OT Session Auto-Closed",
                message=(
                    f"Your overtime session was automatically closed after {cap_hours:g} hours. "
                    f"Submit a correction if you worked longer."
                ),
                data={
                    "ot_session_id": session_id,
                    "auto_close_time": iso_local(ot_out_at),
                    "ot_in_time": iso_local(ot_in_at),
                },
                sent_at=now,
            )

    logger.info("OT auto-close run: scanned=%s mutated=%s failed=%s", result.scanned, result.mutated, result.failed)
    return result


def run_absent_marking(db: Session, work_date: Optional[date] = None, now: Optional[datetime] = None) -> ReconciliationResult:
    """
    Insert a record for every scheduled employee with none for the date (default:
    yesterday): absent, or leave/holiday when an override applies.
    """
    now = ensure_utc(now) if now else now_utc()
    day = work_date or (local_date(now) - timedelta(days=1))
    result = ReconciliationResult(job="absent_marking", work_date=day, ran_at=now)

    assignments = [a for a in current_assignments_for_day(db, day) if is_work_day(a, day)]
    for assignment in assignments:
        employee_id = assignment.employee_id
        result.scanned += 1
        try:
            employee = db.get(Employee, employee_id)
            if employee is None or not employee.active:
                continue
            if get_record_for_day(db, employee_id, day) is not None:
                continue
            status = day_override(db, employee, day) or AttendanceStatus.ABSENT
            record = AttendanceRecord(
                employee_id=employee_id,
                attendance_date=day,
                shift_id=assignment.shift_id,
                status=status.value,
            )
            db.add(record)
            try:
                db.flush()
            except IntegrityError:
                # Created concurrently (clock-in or another run)
                db.rollback()
                continue
            log_audit(db, SYSTEM_ACTOR, "ATTENDANCE_MARKED", "attendance_records", record.id,
                      {"attendance_date": day, "status": status.value})
            db.commit()
            result.mutated += 1
        except Exception as e:
            db.rollback()
            result.failed += 1
            logger.error("Absent marking failed for employee_id=%s: %s", employee_id, e, exc_info=True)

    logger.info("Absent marking for %s: scanned=%s mutated=%s failed=%s",
                day, result.scanned, result.mutated, result.failed)
    return result


JOBS: Dict[str, Callable[..., ReconciliationResult]] = {
    "auto-clockout": lambda db, now=None, work_date=None: run_auto_clockout(db, now=now, work_date=work_date),
    "late-arrival": lambda db, now=None, work_date=None: run_late_arrival_notifier(db, now=now),
    "ot-auto-close": lambda db, now=None, work_date=None: run_ot_auto_close(db, now=now),
    "absent-marking": lambda db, now=None, work_date=None: run_absent_marking(db, work_date=work_date, now=now),
}


def run_job(db: Session, name: str, now: Optional[datetime] = None, work_date: Optional[date] = None) -> ReconciliationResult:
    if name not in JOBS:
        raise ValueError(f"Unknown reconciliation job '{name}'. Choose from: {', '.join(sorted(JOBS))}")
    return JOBS[name](db, now=now, work_date=work_date)
