"""
House Feed - real-time house history relay

Keeps a persistent session to the predictor socket feed, retains a bounded
recent window of values per house, and serves it over a read-only HTTP API.
"""

__version__ = "0.1.0"

# Types
from .types import (
    KNOWN_HOUSES,
    RETAIN_MAX,
    EXPOSE_MAX,
    ConnectorState,
    HistoryEntry,
    HistorySnapshot,
)

# Errors
from .errors import HouseFeedError, InvalidSourceError, ConfigurationError

# Store
from .snapshot_store import LatestSnapshotStore
from .caches import HistoryStore

# Feed
from .feeds import ExponentialBackoff, ThreadedWsClient, PredictorFeed, PREDICTOR_WS_URL, parse_frame

# Read side
from .query import QueryService
from .server import HistoryServer

# Application
from .config import AppConfig
from .app import HouseFeedApp

__all__ = [
    "__version__",
    # Types
    "KNOWN_HOUSES",
    "RETAIN_MAX",
    "EXPOSE_MAX",
    "ConnectorState",
    "HistoryEntry",
    "HistorySnapshot",
    # Errors
    "HouseFeedError",
    "InvalidSourceError",
    "ConfigurationError",
    # Store
    "LatestSnapshotStore",
    "HistoryStore",
    # Feed
    "ExponentialBackoff",
    "ThreadedWsClient",
    "PredictorFeed",
    "PREDICTOR_WS_URL",
    "parse_frame",
    # Read side
    "QueryService",
    "HistoryServer",
    # Application
    "AppConfig",
    "HouseFeedApp",
]
