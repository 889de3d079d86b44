"""
utils/time_utils.py

Purpose: Timestamp helpers

- Naive UTC "now" for database columns (stored without tzinfo)
- ISO timestamps for API envelopes and stored form data
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_isoformat(dt: datetime = None) -> str:
    """
    ISO-8601 string of a UTC time (defaults to now).
    """
    return (dt or utc_now()).isoformat()


def utc_from_timestamp(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, timezone.utc).replace(tzinfo=None)
