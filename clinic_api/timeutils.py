# clinic_api/timeutils.py
"""
Date/time normalization for client-supplied strings.

Every instant leaving this module is timezone-aware. Strings with an explicit
offset (or a trailing ``Z``) keep it; offset-less strings are read in the
clinic's local zone (``CLINIC_TIMEZONE``, or the server process's zone when
unset) unless ``REQUIRE_TZ_OFFSET`` is on, in which case they are rejected.
Instants are written in UTC; drivers without timezone support (SQLite) read
them back naive, which ``from_storage`` turns into UTC again.
"""

from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config
from .errors import InvalidDateFormat, ValidationError

END_OF_DAY = time(23, 59, 59, 999000)


def local_zone() -> Optional[tzinfo]:
    """Configured clinic zone, or None for the process's local zone."""
    if not config.CLINIC_TIMEZONE:
        return None
    try:
        return ZoneInfo(config.CLINIC_TIMEZONE)
    except ZoneInfoNotFoundError:
        raise RuntimeError(f"Unknown CLINIC_TIMEZONE {config.CLINIC_TIMEZONE!r}")


def localize(naive: datetime) -> datetime:
    zone = local_zone()
    if zone is None:
        # astimezone() on a naive value assumes the process's local time
        return naive.astimezone()
    return naive.replace(tzinfo=zone)


def parse_instant(value: str, require_offset: Optional[bool] = None) -> datetime:
    if require_offset is None:
        require_offset = config.REQUIRE_TZ_OFFSET
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateFormat("Date/time value is required")

    text = value.strip()
    if text[-1] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise InvalidDateFormat(f"Invalid date/time: {value!r}")

    if parsed.tzinfo is None:
        if require_offset:
            raise InvalidDateFormat(f"Date/time must include a UTC offset: {value!r}")
        parsed = localize(parsed)
    return parsed


def parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise InvalidDateFormat(f"Invalid date, expected YYYY-MM-DD: {value!r}")


def day_bounds(value: str) -> Tuple[datetime, datetime]:
    """Expand ``YYYY-MM-DD`` to [00:00:00.000, 23:59:59.999] local time."""
    day = parse_day(value)
    return (
        localize(datetime.combine(day, time.min)),
        localize(datetime.combine(day, END_OF_DAY)),
    )


def resolve_range(
    on_date: Optional[str] = None,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Tuple[datetime, datetime]:
    # explicit start/end win over date
    if start or end:
        if not (start and end):
            raise ValidationError("Both start and end are required for a range query")
        range_start, range_end = parse_instant(start), parse_instant(end)
        if range_end < range_start:
            raise ValidationError("Range end must not be before range start")
        return range_start, range_end
    if on_date:
        return day_bounds(on_date)
    raise ValidationError("Provide either date or start and end")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def to_storage(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        instant = localize(instant)
    return instant.astimezone(timezone.utc)


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return value
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)
