"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- Attendance dates and shift wall-clock times live in settings.ATTENDANCE_TZ.
- API responses expose datetimes in ATTENDANCE_TZ with an explicit offset; never Z.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc

_HOURS_QUANTUM = Decimal("0.01")


@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_tz() -> ZoneInfo:
    """Zone used for attendance dates and shift times."""
    return _zone(settings.ATTENDANCE_TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to ATTENDANCE_TZ. Naive datetimes are treated as UTC before converting."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(local_tz())


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in ATTENDANCE_TZ with offset. Used for all API response datetime fields."""
    if dt is None:
        return None
    return to_local(dt).isoformat()


def local_date(dt: Optional[datetime] = None) -> date:
    """Attendance date (calendar date in ATTENDANCE_TZ) for the given instant (default now)."""
    return to_local(dt or now_utc()).date()


def combine_local(day: date, at: time) -> datetime:
    """Wall-clock time on a local calendar day, returned as an aware UTC datetime."""
    return datetime.combine(day, at, tzinfo=local_tz()).astimezone(UTC)


def local_day_bounds(day: date):
    """(start, end) of a local calendar day as aware UTC datetimes; end is exclusive."""
    start = combine_local(day, time(0, 0))
    end = combine_local(day + timedelta(days=1), time(0, 0))
    return start, end


def hours_between(start: datetime, end: datetime) -> Decimal:
    """Elapsed decimal hours from start to end, floored at zero, rounded to 2 places."""
    seconds = (ensure_utc(end) - ensure_utc(start)).total_seconds()
    if seconds <= 0:
        return Decimal("0.00")
    return (Decimal(str(seconds)) / Decimal(3600)).quantize(_HOURS_QUANTUM, rounding=ROUND_HALF_UP)
