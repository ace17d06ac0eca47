"""
Core Utilities.

Shared utility functions used across the package.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-naive datetime.

    All datetime values in the application are timezone-naive
    and assumed to be UTC.

    Returns:
        Current UTC time with tzinfo stripped
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def expires_at(seconds: int | str) -> datetime:
    """Return the naive UTC instant `seconds` from now (auth token lifetimes arrive as strings)."""
    return utc_now() + timedelta(seconds=int(seconds))
