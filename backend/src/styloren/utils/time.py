"""Time helpers.

Timestamps are stored as naive UTC so that comparisons behave the same on
PostgreSQL and on SQLite.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
