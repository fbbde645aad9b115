# File: utils/dt_utils.py
"""Date and time utilities for Class Conduct.

Pure Python date/time functions with ZERO Home Assistant dependencies.
Engines receive timestamps from callers; these helpers provide the default.
"""

from __future__ import annotations

from datetime import UTC, datetime


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware).

    Returns:
        Current UTC datetime.
    """
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC datetime as an ISO 8601 string."""
    return dt_now_utc().isoformat()


def dt_to_iso(value: datetime | str | None) -> str:
    """Normalize a datetime, ISO string or None to an ISO 8601 string.

    None means "now".
    """
    if value is None:
        return dt_now_iso()
    if isinstance(value, datetime):
        return value.isoformat()
    return value
