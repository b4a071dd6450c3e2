"""
Date and time utilities.
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _zone(tz_name: str):
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def now_str(tz_name: str = "UTC") -> str:
    """
    Get current time formatted for message footers.

    Returns:
        Formatted string like "[ 2025/03/14 ] - [ 14:30:05 ]"
    """
    now = datetime.now(_zone(tz_name))
    return now.strftime("[ %Y/%m/%d ] - [ %H:%M:%S ]")


def format_date(value: Optional[datetime], tz_name: str = "UTC") -> str:
    """Date part of a timestamp in the display timezone, "-" when missing"""
    if value is None:
        return "-"
    return value.astimezone(_zone(tz_name)).strftime("%Y/%m/%d")


def format_datetime(value: Optional[datetime], tz_name: str = "UTC") -> str:
    """Convert a timestamp to a display string in the given timezone"""
    if value is None:
        return "-"
    return value.astimezone(_zone(tz_name)).strftime("%Y/%m/%d - %H:%M:%S")


def to_iso(value: Optional[datetime]) -> str:
    """ISO-8601 text for exports; empty string for missing values"""
    return value.isoformat() if value is not None else ""
