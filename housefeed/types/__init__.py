"""
House feed types.

Re-exports the public types so callers can import from one place:

    from housefeed.types import KNOWN_HOUSES, ConnectorState, DataFrame
"""

# Core vocabulary
from .core import (
    KNOWN_HOUSES,
    RETAIN_MAX,
    EXPOSE_MAX,
    ConnectorState,
)

# Utility functions
from .utils import (
    now_ms,
    wall_ms,
    iso_utc,
    iso_utc_now,
)

# Protocol frames
from .frames import (
    Frame,
    OpenFrame,
    NamespaceOpenFrame,
    NamespaceCloseFrame,
    ProbeFrame,
    PingFrame,
    PongFrame,
    UpgradeFrame,
    DataFrame,
    UnknownFrame,
)

# History
from .history import (
    HistoryEntry,
    HistorySnapshot,
)

__all__ = [
    # Core
    "KNOWN_HOUSES",
    "RETAIN_MAX",
    "EXPOSE_MAX",
    "ConnectorState",
    # Utilities
    "now_ms",
    "wall_ms",
    "iso_utc",
    "iso_utc_now",
    # Frames
    "Frame",
    "OpenFrame",
    "NamespaceOpenFrame",
    "NamespaceCloseFrame",
    "ProbeFrame",
    "PingFrame",
    "PongFrame",
    "UpgradeFrame",
    "DataFrame",
    "UnknownFrame",
    # History
    "HistoryEntry",
    "HistorySnapshot",
]
