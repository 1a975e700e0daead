"""Timezone helpers shared by the scheduling and client domains"""

from datetime import datetime, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse

from ..config import DEFAULT_TIMEZONE


def get_zone(name: Optional[str] = None) -> ZoneInfo:
    """Resolve a timezone name, falling back to the configured default"""
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            pass
    return ZoneInfo(DEFAULT_TIMEZONE)


def as_utc(value: Optional[datetime], tz_name: Optional[str] = None) -> Optional[datetime]:
    """
    Normalize a datetime to an aware UTC value.

    Naive values are read as wall-clock time in `tz_name` (or the default
    timezone). Values loaded back from SQLite come without tzinfo and are
    stored as UTC, so callers reading from the DB use `from_db` instead.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=get_zone(tz_name))
    return value.astimezone(timezone.utc)


def from_db(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes returned by backends without tz support"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_instant(value: Union[str, datetime], tz_name: Optional[str] = None) -> datetime:
    """Parse an ISO-8601 string (trailing Z allowed) into an aware UTC datetime"""
    if isinstance(value, datetime):
        return as_utc(value, tz_name)
    return as_utc(isoparse(value.strip()), tz_name)


def to_iso(value: datetime) -> str:
    """Serialize with an explicit +00:00 offset, never a trailing Z"""
    return as_utc(value).isoformat()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
