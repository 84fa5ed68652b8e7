"""Custom exceptions for the house feed service."""

from typing import Iterable

from .types import KNOWN_HOUSES


class HouseFeedError(Exception):
    """Base exception for house feed errors."""
    pass


class InvalidSourceError(HouseFeedError):
    """Raised when a read names a house outside the known set."""

    def __init__(self, house: str, known: Iterable[str] = KNOWN_HOUSES):
        self.house = house
        self.known = tuple(known)
        super().__init__(f"Use: {_join_choices(self.known)}")


class FrameDecodeError(HouseFeedError):
    """Raised inside the frame codec when a frame does not decode."""
    pass


class ConfigurationError(HouseFeedError):
    """Raised when configuration is invalid."""
    pass


def _join_choices(choices: tuple[str, ...]) -> str:
    """Format choices as 'a, b or c'."""
    if len(choices) <= 1:
        return "".join(choices)
    return f"{', '.join(choices[:-1])} or {choices[-1]}"
