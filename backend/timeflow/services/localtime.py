"""Company-local time helpers.

Timestamps are stored in UTC. Anything that looks at the wall clock (hour
buckets, day of event, "HH:MM" shift boundaries, month windows) converts to
the company timezone first.
"""
import logging
import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional, Set, Tuple

from dateutil import tz
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)


def get_timezone(name: Optional[str]) -> tzinfo:
    """Resolve an IANA zone name, falling back to UTC for unknown names."""
    zone = tz.gettz(name) if name else None
    if zone is None:
        logger.warning(f"Unknown timezone {name!r}, falling back to UTC")
        return tz.UTC
    return zone


def to_local(ts: datetime, zone: tzinfo) -> datetime:
    """Convert a stored timestamp to local wall-clock time. Naive means UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=tz.UTC)
    return ts.astimezone(zone)


def local_date(ts: datetime, zone: tzinfo) -> date:
    return to_local(ts, zone).date()


def at_local(day: date, hour: int, minute: int, zone: tzinfo, second: int = 0) -> datetime:
    """Aware datetime for a wall-clock moment on a local calendar day."""
    return datetime.combine(day, time(hour, minute, second)).replace(tzinfo=zone)


def parse_hhmm(value: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse "HH:MM" (a trailing ":SS" is tolerated). None when unusable."""
    if not value:
        return None
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        return None
    return hours, minutes


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def minutes_between(later: datetime, earlier: datetime) -> int:
    """Signed whole minutes from ``earlier`` to ``later``."""
    return round_half_up((later - earlier).total_seconds() / 60.0)


def month_start(day: date, months_back: int = 0) -> date:
    return day.replace(day=1) - relativedelta(months=months_back)


def expand_days(start: date, end: date) -> Iterable[date]:
    """Every calendar day in [start, end], inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def absence_days(absences) -> Set[date]:
    """Calendar days covered by approved absences."""
    days: Set[date] = set()
    for absence in absences:
        if absence.is_approved:
            days.update(expand_days(absence.start_date, absence.end_date))
    return days


def session_hours(session, now: datetime) -> float:
    """Worked hours for one session; open sessions count up to ``now``."""
    clock_in = to_local(session.clock_in_time, tz.UTC)
    clock_out = to_local(session.clock_out_time or now, tz.UTC)
    pause_ms = session.total_pause_duration or 0
    worked_ms = max(0.0, (clock_out - clock_in).total_seconds() * 1000 - pause_ms)
    return worked_ms / 3_600_000
