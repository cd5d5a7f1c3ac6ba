"""
Timezone-aware datetime utilities for the emergency alert service.

Call events arrive in UTC; alert records store property-local wall-clock
time as naive datetimes with whole-second precision. These helpers keep the
two representations from being mixed up.
"""

from datetime import datetime, timezone, timedelta
from typing import Optional
import pytz


def utc_now() -> datetime:
    """
    Get the current UTC time as a timezone-aware datetime object.

    Returns:
        datetime: Current UTC time with timezone information
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure a datetime object is timezone-aware and in UTC.

    If the datetime is naive (no timezone), it assumes UTC.
    If the datetime has a different timezone, it converts to UTC.

    Example:
        >>> utc_dt = ensure_utc(datetime(2024, 3, 1, 12, 0, 0))
        >>> print(utc_dt.tzinfo)  # UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    elif dt.tzinfo != timezone.utc:
        return dt.astimezone(timezone.utc)
    else:
        return dt


def to_wall_clock(dt: datetime) -> datetime:
    """
    Drop tzinfo and sub-second precision.

    Alert records are keyed on local time with second granularity, so every
    stored event time goes through here.
    """
    return dt.replace(tzinfo=None, microsecond=0)


def utc_to_zone(dt: datetime, zone_name: str) -> datetime:
    """
    Convert a UTC datetime to the wall-clock time of an IANA zone.

    Raises:
        pytz.UnknownTimeZoneError: If the zone name is not known
    """
    local_timezone = pytz.timezone(zone_name)
    return to_wall_clock(ensure_utc(dt).astimezone(local_timezone))


def shift_hours(dt: datetime, hours: int) -> datetime:
    """Apply a whole-hour offset to a UTC datetime and return wall-clock time"""
    return to_wall_clock(ensure_utc(dt) + timedelta(hours=hours))


def parse_utc_iso(iso_string: str) -> datetime:
    """
    Parse an ISO 8601 string to a timezone-aware UTC datetime.

    Example:
        >>> dt = parse_utc_iso('2024-03-01T12:00:00Z')
        >>> print(dt.tzinfo)  # UTC
    """
    if iso_string.endswith('Z'):
        iso_string = iso_string[:-1] + '+00:00'

    dt = datetime.fromisoformat(iso_string)
    return ensure_utc(dt)


def format_wall_clock(dt: Optional[datetime], date_format: str) -> str:
    """Format a datetime with an explicit format, empty string for None"""
    if dt is None:
        return ''
    return dt.strftime(date_format)
