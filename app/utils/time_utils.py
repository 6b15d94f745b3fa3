"""
UTC helpers

Timestamps are handled as timezone-aware UTC in Python. Values read back
from databases that drop the offset (SQLite) are treated as UTC.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_duration(start: Optional[datetime], end: Optional[datetime]) -> Optional[dict]:
    """Whole hours plus remaining minutes between start and end"""
    if start is None or end is None:
        return None

    total_minutes = int((as_utc(end) - as_utc(start)).total_seconds() // 60)
    if total_minutes < 0:
        total_minutes = 0
    hours, minutes = divmod(total_minutes, 60)

    return {
        "hours": hours,
        "minutes": minutes,
        "formatted": f"{hours} hours {minutes} minutes",
    }
