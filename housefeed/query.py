"""
Read-side query service.

Shapes HistoryStore contents into API responses. Never mutates anything
and never waits on the feed: every call is a handful of lock-guarded
reads of immutable entries.
"""

from typing import Any, Protocol

from .caches import HistoryStore
from .errors import InvalidSourceError
from .types import iso_utc_now


class ConnectionStatus(Protocol):
    """Anything that can report whether the upstream session is established."""

    @property
    def connected(self) -> bool: ...


class QueryService:
    """Answers per-house, all-houses and status queries."""

    def __init__(self, store: HistoryStore, connector: ConnectionStatus):
        self._store = store
        self._connector = connector

    def normalize_house(self, house: str) -> str:
        """
        Resolve a house name from a request (case-insensitive).

        Raises:
            InvalidSourceError: If the name is not a known house
        """
        name = (house or "").strip().lower()
        if name not in self._store.houses:
            raise InvalidSourceError(house, known=self._store.houses)
        return name

    def get_one(self, house: str) -> dict[str, Any]:
        """
        Get the exposed window for one house.

        Returns:
            {"house", "total", "last", "history"}

        Raises:
            InvalidSourceError: If the name is not a known house
        """
        name = self.normalize_house(house)
        return self._store.snapshot(name).to_dict()

    def get_all(self) -> dict[str, dict[str, Any]]:
        """Get the exposed window for every house, keyed by house."""
        return {
            house: self._store.snapshot(house).to_dict(include_house=False)
            for house in self._store.houses
        }

    def get_status(self) -> dict[str, Any]:
        """Get connection status and the last accepted value per house."""
        return {
            "connected": bool(self._connector.connected),
            "last_updates": self._store.last_markers(),
            "timestamp": iso_utc_now(),
        }
