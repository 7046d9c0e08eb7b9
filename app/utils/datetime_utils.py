from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.config.settings import settings


def utc_now() -> datetime:
    """
    Get current UTC datetime as a timezone-aware datetime.

    Returns:
        datetime: Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def get_zone(zone_name: str | None = None) -> ZoneInfo:
    """Resolve the configured application timezone (or an explicit one)."""
    return ZoneInfo(zone_name or settings.TIMEZONE)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime object to UTC timezone-aware datetime.

    Args:
        dt: Datetime object to convert

    Returns:
        datetime: UTC timezone-aware datetime
    """
    if dt.tzinfo is None:
        # Assume naive datetime is in UTC
        return dt.replace(tzinfo=timezone.utc)
    else:
        # Convert to UTC
        return dt.astimezone(timezone.utc)


def to_local(dt: datetime, zone: ZoneInfo | None = None) -> datetime:
    """
    Convert a datetime to the application timezone.

    Naive datetimes are treated as UTC first.
    """
    return to_utc(dt).astimezone(zone or get_zone())


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since the Unix epoch for an (aware or naive UTC) datetime."""
    return int(to_utc(dt).timestamp() * 1000)
