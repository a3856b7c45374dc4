"""
Clock helpers. All persisted timestamps are UTC.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def today() -> date:
    """Current UTC calendar date."""
    return utcnow().date()
