"""
Core vocabulary of the house feed.

The set of houses is fixed: the upstream predictor only ever publishes
these three, and anything else arriving on the wire is ignored.
"""

from enum import Enum, auto

KNOWN_HOUSES: tuple[str, ...] = ("placard", "bet888", "betway")

RETAIN_MAX = 120  # Values kept per house
EXPOSE_MAX = 60  # Values served per house


class ConnectorState(Enum):
    """Lifecycle of the single upstream session."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    HANDSHAKE_PROBE = auto()
    ACTIVE = auto()
    CLOSING = auto()

    @property
    def accepts_frames(self) -> bool:
        """Whether inbound frames are handed to the codec in this state."""
        return self in (ConnectorState.HANDSHAKE_PROBE, ConnectorState.ACTIVE)
