"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import utc_now

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    Always use this for timestamps in the database and in token claims.
    """
    return datetime.now(timezone.utc)


def utc_in(minutes: int) -> datetime:
    """Return the UTC datetime ``minutes`` from now (token expiry)."""
    return utc_now() + timedelta(minutes=minutes)
