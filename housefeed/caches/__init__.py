"""
Cache modules for the house feed.

Contains thread-safe caches for feed data:
- HistoryStore: per-house retained window with terminal-value dedup
"""

from .history_cache import HistoryStore

__all__ = [
    "HistoryStore",
]
