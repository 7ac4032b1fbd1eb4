"""
Date utility functions shared by the cache layers and source clients.
"""

from datetime import UTC, datetime, timedelta


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Replaces deprecated datetime.utcnow() which is scheduled for removal in Python 3.14.
    See: https://docs.python.org/3/library/datetime.html#datetime.datetime.utcnow
    """
    return datetime.now(UTC)


def expires_at(written_at: datetime, ttl_seconds: float) -> datetime:
    """Absolute expiry for a value written at ``written_at`` with the given TTL."""
    return written_at + timedelta(seconds=ttl_seconds)
