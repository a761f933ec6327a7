"""UTC datetime utilities."""

from datetime import datetime, timezone
from typing import Any, Optional


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Example:
        >>> utc_now().tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def isoformat_or_none(value: Optional[Any]) -> Optional[str]:
    """Render a datetime as ISO-8601; strings and None pass through unchanged."""
    if value is None or isinstance(value, str):
        return value
    return value.isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp coming from the marketplace backend.

    Returns None for empty or unparseable values so callers can sort them last.
    """
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
