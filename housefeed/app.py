"""
House feed application.

Wires all components together and manages application lifecycle.

Component layout:
- Thread: PredictorFeed (websocket-client) -> HistoryStore
- Event loop: HistoryServer (aiohttp) -> QueryService -> HistoryStore

The feed thread and the request handlers only meet at the HistoryStore,
whose per-house locks are never held across I/O.
"""

import asyncio
import logging
import signal
from typing import Optional

from .caches import HistoryStore
from .config import AppConfig
from .errors import ConfigurationError
from .feeds import PredictorFeed
from .query import QueryService
from .server import HistoryServer
from .types import ConnectorState
from .util import setup_logging

logger = logging.getLogger(__name__)


class HouseFeedApp:
    """
    Main application.

    Startup: build components, start HTTP server, start feed thread.
    Shutdown: stop feed (no reconnect), stop HTTP server.
    """

    def __init__(self, config: AppConfig):
        """
        Initialize the application.

        Args:
            config: Application configuration

        Raises:
            ConfigurationError: If the configuration does not validate
        """
        errors = config.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        self.config = config

        # Components
        self.store: Optional[HistoryStore] = None
        self.feed: Optional[PredictorFeed] = None
        self.query: Optional[QueryService] = None
        self.server: Optional[HistoryServer] = None

        # Control
        self._shutdown_event = asyncio.Event()

    def _setup_components(self) -> None:
        """Initialize all components."""
        cfg = self.config

        self.store = HistoryStore(
            retain_max=cfg.retain_max,
            expose_max=cfg.expose_max,
        )

        self.feed = PredictorFeed(
            store=self.store,
            ws_url=cfg.feed_url,
            reconnect_delay_s=cfg.reconnect_delay_s,
            reconnect_max_delay_s=cfg.reconnect_max_delay_s,
            handshake_timeout_s=cfg.handshake_timeout_s,
            state_listener=self._on_feed_state,
        )

        self.query = QueryService(store=self.store, connector=self.feed)

        self.server = HistoryServer(
            query=self.query,
            host=cfg.http_host,
            port=cfg.http_port,
        )

    def _on_feed_state(self, old: ConnectorState, new: ConnectorState) -> None:
        if new == ConnectorState.ACTIVE:
            logger.info("Predictor feed connected")
        elif old == ConnectorState.ACTIVE:
            logger.warning("Predictor feed lost")

    async def start(self) -> None:
        """Start the application."""
        logger.info("Starting house feed...")

        self._setup_components()

        await self.server.start()
        self.feed.start()

        logger.info("House feed started")

    async def stop(self) -> None:
        """Stop the application."""
        logger.info("Stopping house feed...")

        self._shutdown_event.set()

        if self.feed:
            # Joins a thread; keep the event loop free while it does
            await asyncio.get_running_loop().run_in_executor(None, self.feed.stop)

        if self.server:
            await self.server.stop()

        logger.info("House feed stopped")

    async def run(self) -> None:
        """
        Run the application until shutdown signal.

        Handles SIGINT and SIGTERM for graceful shutdown.
        """
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_signal)

        try:
            await self.start()
            await self._shutdown_event.wait()
        finally:
            await self.stop()

    def _handle_signal(self) -> None:
        """Handle shutdown signal."""
        logger.info("Received shutdown signal")
        self._shutdown_event.set()

    def get_stats(self) -> dict:
        """Get application statistics."""
        stats: dict = {}
        if self.feed:
            stats["feed"] = self.feed.stats
        if self.store:
            stats["store"] = self.store.stats
        return stats


def main() -> None:
    """Entry point."""
    config = AppConfig.from_env_file(".env")
    app = HouseFeedApp(config)

    setup_logging("housefeed", level=config.log_level)

    logger.info(f"Starting with config: feed={config.feed_url[:60]}, port={config.http_port}")

    asyncio.run(app.run())


if __name__ == "__main__":
    main()
