"""
Frame types for the predictor socket protocol.

Every inbound text message decodes to exactly one of these. The set is
closed: callers dispatch on the concrete class and treat UnknownFrame as
"drop silently".
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class OpenFrame:
    """Session open ("0{...}"). Heartbeat timing is advertised here."""
    sid: Optional[str] = None
    ping_interval_ms: Optional[int] = None
    ping_timeout_ms: Optional[int] = None


@dataclass(frozen=True, slots=True)
class NamespaceOpenFrame:
    """Namespace connected ("40")."""
    namespace: str = "/"


@dataclass(frozen=True, slots=True)
class NamespaceCloseFrame:
    """Namespace disconnected by the server ("41")."""
    namespace: str = "/"


@dataclass(frozen=True, slots=True)
class ProbeFrame:
    """Probe acknowledgement ("3probe"); answered with an upgrade."""


@dataclass(frozen=True, slots=True)
class PingFrame:
    """Server keep-alive ping ("2..."); answered with a pong."""
    payload: str = ""


@dataclass(frozen=True, slots=True)
class PongFrame:
    """Keep-alive pong ("3...")."""
    payload: str = ""


@dataclass(frozen=True, slots=True)
class UpgradeFrame:
    """Upgrade confirmation ("5")."""


@dataclass(frozen=True, slots=True)
class DataFrame:
    """Data event ('42["house", [1.1, 1.2]]')."""
    source: str
    values: tuple[float, ...]


@dataclass(frozen=True, slots=True)
class UnknownFrame:
    """Anything that did not decode; dropped by the connector."""
    raw: str
    reason: str = ""


Frame = Union[
    OpenFrame,
    NamespaceOpenFrame,
    NamespaceCloseFrame,
    ProbeFrame,
    PingFrame,
    PongFrame,
    UpgradeFrame,
    DataFrame,
    UnknownFrame,
]
