"""
Database Utilities

Helper functions for timestamps read back from the database.
"""
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite returns DateTime(timezone=True) columns without tzinfo.

    Args:
        value: Datetime loaded from a row

    Returns:
        Aware datetime, or None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(value: Optional[datetime], now: Optional[datetime] = None) -> float:
    """
    Fractional days elapsed since a timestamp (0 when unknown or in the future).
    """
    value = ensure_aware(value)
    if value is None:
        return 0.0
    now = now or utcnow()
    return max(0.0, (now - value).total_seconds() / 86400)
