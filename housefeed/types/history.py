"""
History types.

HistoryEntry is what the store keeps per house; HistorySnapshot is the
read-side view served to API clients. Both are immutable so the store can
swap entries atomically and hand them to readers without copying.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """
    Retained window for one house.

    buffer is replaced wholesale on every accepted update; last_marker is
    the terminal value of the payload that produced it and is only used for
    the duplicate check.
    """
    buffer: tuple[float, ...] = ()
    last_marker: Optional[float] = None
    updated_at_ms: Optional[int] = None  # Wall clock of last accepted update
    update_count: int = 0


@dataclass(frozen=True, slots=True)
class HistorySnapshot:
    """Exposed window for one house."""
    house: str
    history: tuple[float, ...]

    @property
    def total(self) -> int:
        return len(self.history)

    @property
    def last(self) -> Optional[float]:
        """Last element of the exposed window, or None if empty."""
        return self.history[-1] if self.history else None

    def to_dict(self, include_house: bool = True) -> dict[str, Any]:
        """Convert to the JSON response shape."""
        data: dict[str, Any] = {}
        if include_house:
            data["house"] = self.house
        data["total"] = self.total
        data["last"] = self.last
        data["history"] = list(self.history)
        return data
