"""
UTC timestamp utilities for AEO Visibility.

All timestamps MUST be in UTC with explicit timezone markers.

This module provides:
- utc_now(): Current time as timezone-aware datetime
- utc_timestamp(): ISO 8601 timestamp string with 'Z' suffix
- snapshot_date(): Calendar date (YYYY-MM-DD) keying daily snapshots

Examples:
    >>> from aeo_visibility.utils.time import utc_now, utc_timestamp, snapshot_date
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
    >>> snapshot_date()
    '2025-11-02'
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return current time in UTC with timezone info.

    Note:
        NEVER use datetime.now() without timezone parameter.
        NEVER use datetime.utcnow() (deprecated, returns naive datetime).
    """
    return datetime.now(UTC)


def utc_timestamp() -> str:
    """
    Return ISO 8601 timestamp string with 'Z' suffix.

    Format: YYYY-MM-DDTHH:MM:SSZ

    Example:
        >>> timestamp = utc_timestamp()
        >>> timestamp.endswith('Z')
        True
    """
    return utc_now().strftime("%Y-%m-%dT%H:%M:%SZ")


def snapshot_date(dt: datetime | None = None) -> str:
    """
    Return the UTC calendar date used as the key of a daily snapshot.

    Args:
        dt: Optional timezone-aware datetime. If None, uses utc_now().

    Returns:
        str: Date formatted as YYYY-MM-DD

    Raises:
        ValueError: If dt is provided but is naive (missing timezone)

    Examples:
        >>> from datetime import datetime, timezone
        >>> snapshot_date(datetime(2025, 11, 2, 23, 59, tzinfo=timezone.utc))
        '2025-11-02'
    """
    if dt is None:
        dt = utc_now()

    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use timezone.utc). "
            "Got naive datetime. Use utc_now() or ensure dt has tzinfo set."
        )

    return dt.astimezone(UTC).strftime("%Y-%m-%d")
