"""
Attendance event recorder: clock-in, clock-out, OT-in and OT-out.

Every write of an existing row is a conditional UPDATE restating the precondition
it depends on (clock_out_time IS NULL, status = 'active', not payroll-locked); the
affected row count decides whether the write won. Inserts rely on the unique
(employee_id, attendance_date) constraint and the one-active-OT partial index.

An identical retry (same event timestamp as the state already applied) returns
the stored row instead of raising the conflict error.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Sequence
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import (
    AlreadyClockedIn,
    AlreadyClockedOut,
    InvalidTimestamp,
    NoActiveOTSession,
    NoSiteAssigned,
    NotFound,
    OTSessionAlreadyActive,
    OutOfRange,
    ParentRecordNotClockedOut,
    RecordLocked,
    ValidationFailed,
)
from app.models.attendance_record import AttendanceRecord
from app.models.employee import Employee
from app.models.overtime import CLOSED_OT_STATUSES, OvertimeSession, OvertimeStatus
from app.models.work_site import WorkSite
from app.schemas.config import AttendanceConfigSnapshot
from app.services import attendance_policy as policy
from app.services.attendance_config_service import load_config_snapshot
from app.services.audit_service import log_audit
from app.services.calendar_service import day_override
from app.services.geo_validator import GeoPoint, distance_to_site, format_distance, nearest_site
from app.services.shift_service import resolve_current_shift
from app.services.work_site_service import list_employee_sites
from app.utils.datetime_utils import ensure_utc, hours_between, local_date, now_utc

logger = logging.getLogger(__name__)


def resolve_event_time(timestamp: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """
    Event instant for a client request: the client timestamp when it is within the
    allowed skew of server time, else server time when no timestamp was sent.
    """
    now = ensure_utc(now) if now else now_utc()
    if timestamp is None:
        return now
    timestamp = ensure_utc(timestamp)
    skew = abs((timestamp - now).total_seconds())
    if skew > settings.MAX_CLIENT_CLOCK_SKEW_SECONDS:
        raise InvalidTimestamp(
            f"Event timestamp differs from server time by {int(skew)} seconds",
            context={"max_skew_seconds": settings.MAX_CLIENT_CLOCK_SKEW_SECONDS},
        )
    return timestamp


def _same_instant(stored: Optional[datetime], event_at: datetime) -> bool:
    return stored is not None and ensure_utc(stored) == ensure_utc(event_at)


def _out_of_range(site: WorkSite, distance: float) -> OutOfRange:
    return OutOfRange(
        f"You are {format_distance(distance)} away from {site.name}. "
        f"Please be within {site.radius_meters}m to continue.",
        context={"site_id": site.id, "distance_meters": round(distance, 1), "radius_meters": site.radius_meters},
    )


def locate_site(point: GeoPoint, sites: Sequence[WorkSite], site_id: Optional[int] = None) -> WorkSite:
    """
    Pick the work site an event happens at.

    With ``site_id`` the site must be among ``sites`` and contain the point. Without it,
    the nearest containing site wins; when none contains the point, OutOfRange reports
    the distance to the nearest one.
    """
    if not sites:
        raise NoSiteAssigned()
    if site_id is not None:
        site = next((s for s in sites if s.id == site_id), None)
        if site is None:
            raise NoSiteAssigned(f"Work site {site_id} is not assigned to this employee")
        distance = distance_to_site(point, site)
        if distance > float(site.radius_meters):
            raise _out_of_range(site, distance)
        return site

    containing = [s for s in sites if distance_to_site(point, s) <= float(s.radius_meters)]
    if containing:
        return nearest_site(point, containing)[0]
    site, distance = nearest_site(point, sites)
    raise _out_of_range(site, distance)


def get_record_for_day(db: Session, employee_id: int, day: date) -> Optional[AttendanceRecord]:
    return db.query(AttendanceRecord).filter(
        AttendanceRecord.employee_id == employee_id,
        AttendanceRecord.attendance_date == day,
    ).first()


def get_own_record(db: Session, employee: Employee, record_id: int) -> AttendanceRecord:
    record = db.query(AttendanceRecord).filter(
        AttendanceRecord.id == record_id,
        AttendanceRecord.employee_id == employee.id,
    ).first()
    if not record:
        raise NotFound("Attendance record not found")
    return record


def get_active_ot_session(db: Session, employee_id: int) -> Optional[OvertimeSession]:
    return db.query(OvertimeSession).filter(
        OvertimeSession.employee_id == employee_id,
        OvertimeSession.status == OvertimeStatus.ACTIVE.value,
    ).first()


def list_records(db: Session, employee_id: int, from_date: Optional[date] = None, to_date: Optional[date] = None) -> List[AttendanceRecord]:
    query = db.query(AttendanceRecord).filter(AttendanceRecord.employee_id == employee_id)
    if from_date:
        query = query.filter(AttendanceRecord.attendance_date >= from_date)
    if to_date:
        query = query.filter(AttendanceRecord.attendance_date <= to_date)
    return query.order_by(AttendanceRecord.attendance_date.desc()).all()


def list_ot_sessions(db: Session, employee_id: int, limit: int = 50) -> List[OvertimeSession]:
    return (
        db.query(OvertimeSession)
        .filter(OvertimeSession.employee_id == employee_id)
        .order_by(OvertimeSession.ot_in_time.desc())
        .limit(limit)
        .all()
    )


def _raise_clock_in_conflict(record: AttendanceRecord) -> None:
    if record.locked_for_payroll:
        raise RecordLocked()
    context = {"attendance_id": record.id}
    if record.clock_in_time is not None:
        context["clock_in_time"] = ensure_utc(record.clock_in_time).isoformat()
    raise AlreadyClockedIn("Already clocked in today", context=context)


def clock_in(
    db: Session,
    employee: Employee,
    latitude: float,
    longitude: float,
    site_id: Optional[int] = None,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
    config: Optional[AttendanceConfigSnapshot] = None,
) -> AttendanceRecord:
    """
    Clock in for the attendance date of the event.

    Raises:
        NoSiteAssigned, OutOfRange, AlreadyClockedIn, RecordLocked, InvalidTimestamp
    """
    event_at = resolve_event_time(timestamp, now)
    day = local_date(event_at)

    existing = get_record_for_day(db, employee.id, day)
    if existing is not None and existing.clock_in_time is not None:
        if _same_instant(existing.clock_in_time, event_at) and not existing.locked_for_payroll:
            logger.info("Clock-in retry for employee_id=%s on %s returns record %s", employee.id, day, existing.id)
            return existing
        _raise_clock_in_conflict(existing)
    if existing is not None and existing.locked_for_payroll:
        raise RecordLocked()

    point = GeoPoint(float(latitude), float(longitude))
    site = locate_site(point, list_employee_sites(db, employee.id), site_id)

    config = config or load_config_snapshot(db, employee.company_id)
    shift = resolve_current_shift(db, employee.id, day)
    timing = policy.timing_for(shift, config)
    override = day_override(db, employee, day)
    status = policy.classify_for_day(event_at, day, timing, config, override)

    values = {
        "clock_in_time": event_at,
        "clock_in_latitude": latitude,
        "clock_in_longitude": longitude,
        "site_id": site.id,
        "shift_id": timing.shift_id,
        "status": status.value,
    }

    record = existing
    inserted = False
    if record is None:
        record = AttendanceRecord(employee_id=employee.id, attendance_date=day, **values)
        db.add(record)
        try:
            db.flush()
            inserted = True
        except IntegrityError:
            # Lost the insert race for (employee, date)
            db.rollback()
            record = get_record_for_day(db, employee.id, day)
            if record is None:
                raise
            if record.clock_in_time is not None:
                if _same_instant(record.clock_in_time, event_at):
                    return record
                _raise_clock_in_conflict(record)

    if not inserted:
        # Row exists without a clock-in (pre-created leave/holiday/absent day)
        result = db.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.id == record.id,
                AttendanceRecord.clock_in_time.is_(None),
                AttendanceRecord.locked_for_payroll.is_(False),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            db.refresh(record)
            if _same_instant(record.clock_in_time, event_at):
                return record
            _raise_clock_in_conflict(record)

    log_audit(
        db=db,
        actor_id=employee.id,
        action="ATTENDANCE_CLOCK_IN",
        entity_type="attendance_records",
        entity_id=record.id,
        meta={
            "attendance_date": day,
            "clock_in_time": event_at,
            "site_id": site.id,
            "status": status.value,
            "latitude": latitude,
            "longitude": longitude,
        },
    )
    db.commit()
    db.refresh(record)
    logger.info(
        "Clock-in: employee_id=%s record_id=%s date=%s status=%s site_id=%s",
        employee.id, record.id, day, status.value, site.id,
    )
    return record


def clock_out(
    db: Session,
    employee: Employee,
    record_id: int,
    latitude: float,
    longitude: float,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
    config: Optional[AttendanceConfigSnapshot] = None,
) -> AttendanceRecord:
    """
    Clock out of an attendance record.

    A late arrival may not clock out before clock_in + minimum_working_hours. A
    system-generated (provisional) clock-out is never cleared here; only an approved
    correction does that.

    Raises:
        NotFound, RecordLocked, AlreadyClockedOut, OutOfRange, MinimumHoursNotMet
    """
    event_at = resolve_event_time(timestamp, now)
    record = get_own_record(db, employee, record_id)

    if record.locked_for_payroll:
        raise RecordLocked()
    if record.clock_out_time is not None:
        if _same_instant(record.clock_out_time, event_at):
            logger.info("Clock-out retry for record %s returns stored result", record.id)
            return record
        raise AlreadyClockedOut(context={"attendance_id": record.id})
    if record.clock_in_time is None:
        raise ValidationFailed("Cannot clock out before clocking in")
    clock_in_at = ensure_utc(record.clock_in_time)
    if event_at < clock_in_at:
        raise ValidationFailed("Clock-out time is before clock-in time")

    point = GeoPoint(float(latitude), float(longitude))
    if record.site is not None:
        locate_site(point, [record.site], record.site.id)
    else:
        locate_site(point, list_employee_sites(db, employee.id))

    config = config or load_config_snapshot(db, employee.company_id)
    if record.status not in {s.value for s in policy.DAY_OVERRIDES}:
        timing = policy.timing_for(record.shift, config)
        policy.enforce_minimum_hours(clock_in_at, event_at, record.attendance_date, timing, config)

    worked = policy.hours_worked(clock_in_at, event_at)
    result = db.execute(
        update(AttendanceRecord)
        .where(
            AttendanceRecord.id == record.id,
            AttendanceRecord.clock_out_time.is_(None),
            AttendanceRecord.locked_for_payroll.is_(False),
        )
        .values(
            clock_out_time=event_at,
            clock_out_latitude=latitude,
            clock_out_longitude=longitude,
            hours_worked=worked,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        db.refresh(record)
        if record.locked_for_payroll:
            raise RecordLocked()
        if _same_instant(record.clock_out_time, event_at):
            return record
        raise AlreadyClockedOut(context={"attendance_id": record.id})

    log_audit(
        db=db,
        actor_id=employee.id,
        action="ATTENDANCE_CLOCK_OUT",
        entity_type="attendance_records",
        entity_id=record.id,
        meta={
            "clock_out_time": event_at,
            "hours_worked": worked,
            "latitude": latitude,
            "longitude": longitude,
        },
    )
    db.commit()
    db.refresh(record)
    logger.info("Clock-out: employee_id=%s record_id=%s hours=%s", employee.id, record.id, worked)
    return record


def recompute_overtime_hours(db: Session, record_id: int) -> Decimal:
    """
    Set the record's overtime_hours to the sum over its closed OT sessions.

    Runs inside the caller's transaction; does nothing to a payroll-locked record.
    """
    total = db.query(func.coalesce(func.sum(OvertimeSession.total_ot_hours), 0)).filter(
        OvertimeSession.attendance_record_id == record_id,
        OvertimeSession.status.in_(CLOSED_OT_STATUSES),
    ).scalar()
    total = Decimal(str(total or 0)).quantize(Decimal("0.01"))
    db.execute(
        update(AttendanceRecord)
        .where(AttendanceRecord.id == record_id, AttendanceRecord.locked_for_payroll.is_(False))
        .values(overtime_hours=total)
        .execution_options(synchronize_session=False)
    )
    return total


def ot_clock_in(
    db: Session,
    employee: Employee,
    record_id: int,
    latitude: float,
    longitude: float,
    site_id: Optional[int] = None,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> OvertimeSession:
    """
    Start an overtime session after the regular clock-out of the same record.

    Raises:
        NotFound, RecordLocked, ParentRecordNotClockedOut, OTSessionAlreadyActive, OutOfRange
    """
    event_at = resolve_event_time(timestamp, now)
    record = get_own_record(db, employee, record_id)
    if record.locked_for_payroll:
        raise RecordLocked()

    active = get_active_ot_session(db, employee.id)
    if active is not None:
        if active.attendance_record_id == record.id and _same_instant(active.ot_in_time, event_at):
            logger.info("OT-in retry for employee_id=%s returns session %s", employee.id, active.id)
            return active
        raise OTSessionAlreadyActive(context={"ot_session_id": active.id})

    previous = db.query(OvertimeSession).filter(
        OvertimeSession.employee_id == employee.id,
        OvertimeSession.attendance_record_id == record.id,
        OvertimeSession.ot_in_time == event_at,
    ).first()
    if previous is not None:
        return previous

    if record.clock_out_time is None or event_at < ensure_utc(record.clock_out_time):
        raise ParentRecordNotClockedOut(context={"attendance_id": record.id})

    point = GeoPoint(float(latitude), float(longitude))
    site = locate_site(point, list_employee_sites(db, employee.id), site_id)

    session = OvertimeSession(
        employee_id=employee.id,
        attendance_record_id=record.id,
        site_id=site.id,
        ot_in_time=event_at,
        ot_in_latitude=latitude,
        ot_in_longitude=longitude,
        status=OvertimeStatus.ACTIVE.value,
        is_approved=False,
    )
    db.add(session)
    try:
        db.flush()
    except IntegrityError:
        # Another active session was inserted concurrently
        db.rollback()
        active = get_active_ot_session(db, employee.id)
        if active is not None and active.attendance_record_id == record.id and _same_instant(active.ot_in_time, event_at):
            return active
        raise OTSessionAlreadyActive(context={"ot_session_id": active.id if active else None})

    log_audit(
        db=db,
        actor_id=employee.id,
        action="OT_CLOCK_IN",
        entity_type="overtime_sessions",
        entity_id=session.id,
        meta={"attendance_id": record.id, "ot_in_time": event_at, "site_id": site.id},
    )
    db.commit()
    db.refresh(session)
    logger.info("OT-in: employee_id=%s session_id=%s record_id=%s", employee.id, session.id, record.id)
    return session


def ot_clock_out(
    db: Session,
    employee: Employee,
    latitude: float,
    longitude: float,
    timestamp: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> OvertimeSession:
    """
    Close the employee's active overtime session.

    Raises:
        NoActiveOTSession, RecordLocked, OutOfRange
    """
    event_at = resolve_event_time(timestamp, now)
    session = get_active_ot_session(db, employee.id)
    if session is None:
        closed = db.query(OvertimeSession).filter(
            OvertimeSession.employee_id == employee.id,
            OvertimeSession.status == OvertimeStatus.COMPLETED.value,
            OvertimeSession.ot_out_time == event_at,
        ).first()
        if closed is not None:
            logger.info("OT-out retry for employee_id=%s returns session %s", employee.id, closed.id)
            return closed
        raise NoActiveOTSession()

    record = session.attendance_record
    if record.locked_for_payroll:
        raise RecordLocked()
    ot_in_at = ensure_utc(session.ot_in_time)
    if event_at < ot_in_at:
        raise ValidationFailed("OT clock-out time is before OT clock-in time")

    point = GeoPoint(float(latitude), float(longitude))
    locate_site(point, [session.site], session.site_id)

    total = hours_between(ot_in_at, event_at)
    result = db.execute(
        update(OvertimeSession)
        .where(OvertimeSession.id == session.id, OvertimeSession.status == OvertimeStatus.ACTIVE.value)
        .values(
            ot_out_time=event_at,
            ot_out_latitude=latitude,
            ot_out_longitude=longitude,
            total_ot_hours=total,
            status=OvertimeStatus.COMPLETED.value,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # Closed concurrently (auto-close or a parallel OT-out)
        db.rollback()
        db.refresh(session)
        if session.status == OvertimeStatus.COMPLETED.value and _same_instant(session.ot_out_time, event_at):
            return session
        raise NoActiveOTSession(context={"ot_session_id": session.id, "status": session.status})

    recompute_overtime_hours(db, record.id)
    log_audit(
        db=db,
        actor_id=employee.id,
        action="OT_CLOCK_OUT",
        entity_type="overtime_sessions",
        entity_id=session.id,
        meta={"attendance_id": record.id, "ot_out_time": event_at, "total_ot_hours": total},
    )
    db.commit()
    db.refresh(session)
    logger.info("OT-out: employee_id=%s session_id=%s hours=%s", employee.id, session.id, total)
    return session
