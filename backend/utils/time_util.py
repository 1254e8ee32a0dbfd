"""
UTC helpers.

Orbital code works with timezone-aware UTC datetimes; the database stores
naive UTC (as datetime.utcnow() produces).
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> datetime:
    """Return an aware UTC datetime; naive input is taken to be UTC, None means now."""
    if value is None:
        return utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def naive_utc(value: datetime) -> datetime:
    """Strip the timezone after converting to UTC (database representation)."""
    return ensure_utc(value).replace(tzinfo=None)


def parse_datetime(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp (a trailing 'Z' is accepted) into aware UTC.

    Raises:
        ValueError: if the text is not a valid timestamp
    """
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return ensure_utc(datetime.fromisoformat(text))
