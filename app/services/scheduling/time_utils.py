# app/services/scheduling/time_utils.py
"""
Business time zone conversions and interval arithmetic.

All instants handled by the scheduling code are timezone-aware UTC datetimes.
Wall-clock inputs (a calendar date plus an HH:mm time) are interpreted in the
business time zone, using the zone's real offset for that date.
"""
from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from app.config.settings import get_settings


@lru_cache()
def business_zone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or get_settings().BUSINESS_TIMEZONE)


def ensure_utc(value: datetime) -> datetime:
    """Normalize an instant to aware UTC. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_wall_clock(day: date, time_of_day: time, tz: Optional[ZoneInfo] = None) -> datetime:
    """The absolute instant of `time_of_day` on `day` in the business zone."""
    tz = tz or business_zone()
    local = datetime.combine(day, time_of_day.replace(second=0, microsecond=0, tzinfo=None)).replace(tzinfo=tz)
    return local.astimezone(timezone.utc)


def to_business_local(instant: datetime, tz: Optional[ZoneInfo] = None) -> Tuple[date, time]:
    tz = tz or business_zone()
    local = ensure_utc(instant).astimezone(tz)
    return local.date(), local.time().replace(tzinfo=None)


def local_day_bounds(day: date, tz: Optional[ZoneInfo] = None) -> Tuple[datetime, datetime]:
    """Half-open [midnight(day), midnight(day + 1)) as UTC instants.

    Not always 24h long: DST transition days are 23 or 25 hours.
    """
    start = local_wall_clock(day, time(0, 0), tz)
    end = local_wall_clock(day + timedelta(days=1), time(0, 0), tz)
    return start, end


def business_today(now: Optional[datetime] = None, tz: Optional[ZoneInfo] = None) -> date:
    now = now or datetime.now(timezone.utc)
    return to_business_local(now, tz)[0]


def day_of_week(day: date) -> int:
    """Sunday=0 ... Saturday=6"""
    return (day.weekday() + 1) % 7


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return start_a < end_b and end_a > start_b


def add_minutes(instant: datetime, minutes: int) -> datetime:
    return instant + timedelta(minutes=minutes)


def minutes_of_day(value: time) -> int:
    return value.hour * 60 + value.minute


def time_from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def parse_hhmm(value: str) -> time:
    """Parse "HH:mm" (or "HH:mm:ss" as stored by postgres TIME columns)."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(hour, minute)


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
