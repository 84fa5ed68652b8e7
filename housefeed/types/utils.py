"""
Utility functions for timestamps.

These are pure functions with no dependencies on other types.
"""

from datetime import datetime, timezone
from time import monotonic_ns, time


def now_ms() -> int:
    """Get current monotonic timestamp in milliseconds."""
    return monotonic_ns() // 1_000_000


def wall_ms() -> int:
    """Get current wall clock timestamp in milliseconds."""
    return int(time() * 1000)


def iso_utc_now() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2026-01-22T14:00:00.123Z."""
    return iso_utc(datetime.now(timezone.utc))


def iso_utc(dt: datetime) -> str:
    """Format an aware datetime as ISO-8601 UTC with a Z suffix."""
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")
