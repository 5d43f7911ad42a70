"""Time source shared by the engine components."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Returns the current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
