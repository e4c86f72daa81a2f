"""
Civil-time utilities

Every date/time computation in the service goes through this module so that
conflict detection, check-in windows and day cut-offs all use the same
fixed timezone (settings.TIMEZONE), never the host machine's local zone.
"""
from datetime import datetime, date, time, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo

from libseat.core.config import settings

TIMEZONE: tzinfo = ZoneInfo(settings.TIMEZONE)

DateLike = Union[datetime, str]


class ParseError(ValueError):
    """Raised when a date/time string cannot be parsed"""

    def __init__(self, value: str, reason: str = "unrecognised date/time format"):
        self.value = value
        super().__init__(f"Cannot parse '{value}': {reason}")


def to_civil(value: DateLike) -> datetime:
    """
    Convert a datetime (or ISO string) to the civil timezone.

    Naive datetimes are interpreted as civil wall-clock time, which is how
    SQLite hands timestamps back.
    """
    if isinstance(value, str):
        return parse_datetime(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=TIMEZONE)
    return value.astimezone(TIMEZONE)


def now() -> datetime:
    """Current instant in the civil timezone"""
    return datetime.now(TIMEZONE)


class Clock:
    """Injectable source of the current instant"""

    def now(self) -> datetime:
        return now()


system_clock = Clock()


def start_of_day(value: Optional[DateLike] = None) -> datetime:
    """00:00:00.000 of the civil day containing value"""
    d = to_civil(value) if value is not None else now()
    return datetime.combine(d.date(), time.min, tzinfo=TIMEZONE)


def end_of_day(value: Optional[DateLike] = None) -> datetime:
    """23:59:59.999 of the civil day containing value"""
    d = to_civil(value) if value is not None else now()
    return datetime.combine(d.date(), time(23, 59, 59, 999000), tzinfo=TIMEZONE)


def add_minutes(value: DateLike, minutes: float) -> datetime:
    return to_civil(value) + timedelta(minutes=minutes)


def add_hours(value: DateLike, hours: float) -> datetime:
    return to_civil(value) + timedelta(hours=hours)


def add_days(value: DateLike, days: int) -> datetime:
    """Shift by whole civil days, keeping the wall-clock time"""
    d = to_civil(value)
    shifted = datetime.combine(d.date() + timedelta(days=days), d.timetz().replace(tzinfo=None))
    return shifted.replace(tzinfo=TIMEZONE)


def diff_minutes(a: DateLike, b: DateLike) -> int:
    """Signed whole minutes a - b, truncated toward zero"""
    return int((to_civil(a) - to_civil(b)) / timedelta(minutes=1))


def next_24_hours(value: Optional[DateLike] = None) -> datetime:
    return add_hours(value if value is not None else now(), 24)


def set_time(value: DateLike, hour: int, minute: int = 0, second: int = 0) -> datetime:
    return to_civil(value).replace(hour=hour, minute=minute, second=second, microsecond=0)


def parse_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 string into a civil-timezone datetime.

    Strings without an offset are treated as civil time.
    """
    if not isinstance(value, str) or not value.strip():
        raise ParseError(str(value), "empty value")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise ParseError(value, str(e)) from e
    return to_civil(parsed)


def parse_date(value: str) -> datetime:
    """Parse YYYY-MM-DD into civil midnight of that day"""
    try:
        d = date.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise ParseError(str(value), "expected YYYY-MM-DD") from e
    return datetime.combine(d, time.min, tzinfo=TIMEZONE)


def format_time(value: DateLike) -> str:
    return to_civil(value).strftime("%H:%M")


def format_datetime(value: DateLike) -> str:
    return to_civil(value).strftime("%Y-%m-%d %H:%M")
