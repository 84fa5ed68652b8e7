"""
Per-house history cache.

Holds the retained window and dedup marker for every known house. Each
house is an independent LatestSnapshotStore of immutable HistoryEntry
objects, so an update is a single compare-and-swap and a reader always
sees a (buffer, marker) pair that belong together.
"""

import logging
from numbers import Real
from typing import Iterable, Optional, Sequence

from ..snapshot_store import LatestSnapshotStore
from ..types import (
    KNOWN_HOUSES,
    RETAIN_MAX,
    EXPOSE_MAX,
    HistoryEntry,
    HistorySnapshot,
    wall_ms,
)

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


class HistoryStore:
    """
    History store for all known houses.

    Written by the predictor feed thread, read by HTTP handlers.
    update() and snapshot() do no I/O and hold a per-house lock only for
    the duration of a tuple slice.
    """

    def __init__(
        self,
        houses: Iterable[str] = KNOWN_HOUSES,
        retain_max: int = RETAIN_MAX,
        expose_max: int = EXPOSE_MAX,
    ):
        self._houses = tuple(houses)
        self._retain_max = retain_max
        self._expose_max = expose_max
        self._stores: dict[str, LatestSnapshotStore[HistoryEntry]] = {
            house: LatestSnapshotStore[HistoryEntry](initial=HistoryEntry())
            for house in self._houses
        }

        # Stats
        self._accepted = 0
        self._duplicates = 0
        self._rejected = 0

    @property
    def houses(self) -> tuple[str, ...]:
        """Known houses, in configured order."""
        return self._houses

    @property
    def retain_max(self) -> int:
        return self._retain_max

    @property
    def expose_max(self) -> int:
        return self._expose_max

    def update(self, house: str, values: Sequence[float]) -> bool:
        """
        Apply a full-window update from the feed.

        The update is dropped if the house is unknown, the values are empty
        or non-numeric, or the terminal value equals the stored marker.
        Otherwise the buffer is replaced by the first retain_max values.

        Args:
            house: House id as sent by the feed (exact match)
            values: Full recent window, in feed order

        Returns:
            True if the entry was replaced
        """
        store = self._stores.get(house)
        if store is None:
            self._rejected += 1
            return False

        if not values or not all(_is_number(v) for v in values):
            self._rejected += 1
            return False

        candidate = float(values[-1])
        buffer = tuple(float(v) for v in values[: self._retain_max])

        def build(current: Optional[HistoryEntry]) -> Optional[HistoryEntry]:
            previous = current or HistoryEntry()
            if previous.last_marker == candidate:
                return None
            return HistoryEntry(
                buffer=buffer,
                last_marker=candidate,
                updated_at_ms=wall_ms(),
                update_count=previous.update_count + 1,
            )

        if store.publish_if(build) is None:
            self._duplicates += 1
            return False

        self._accepted += 1
        logger.info(f"[{house.upper()}] Updated | last: {candidate:.2f}x")
        return True

    def entry(self, house: str) -> HistoryEntry:
        """
        Get the raw retained entry for a house.

        Raises:
            KeyError: If the house is unknown
        """
        entry, _ = self._stores[house].read_latest()
        return entry or HistoryEntry()

    def snapshot(self, house: str) -> HistorySnapshot:
        """
        Get the exposed window for a house.

        Raises:
            KeyError: If the house is unknown
        """
        entry = self.entry(house)
        return HistorySnapshot(house=house, history=entry.buffer[: self._expose_max])

    def last_markers(self) -> dict[str, Optional[float]]:
        """Get the dedup marker of every house."""
        return {house: self.entry(house).last_marker for house in self._houses}

    def seq(self, house: str) -> int:
        """Number of accepted updates for a house."""
        return self._stores[house].get_seq()

    @property
    def stats(self) -> dict:
        """Get store statistics."""
        return {
            "accepted": self._accepted,
            "duplicates": self._duplicates,
            "rejected": self._rejected,
        }
