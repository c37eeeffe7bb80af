"""
Time utility functions.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Current time as a naive UTC datetime, the form stored in the database.

    Returns:
        Naive datetime in UTC
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
