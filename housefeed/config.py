"""
Application configuration.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .feeds import PREDICTOR_WS_URL
from .types import RETAIN_MAX, EXPOSE_MAX


@dataclass
class AppConfig:
    """Application configuration."""

    # Upstream feed
    feed_url: str = PREDICTOR_WS_URL
    reconnect_delay_s: float = 3.0
    reconnect_max_delay_s: float = 3.0  # Equal to reconnect_delay_s = constant delay
    handshake_timeout_s: float = 1.0

    # History windows
    retain_max: int = RETAIN_MAX
    expose_max: int = EXPOSE_MAX

    # HTTP server
    http_host: str = "0.0.0.0"
    http_port: int = 3000

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            feed_url=os.getenv("FEED_WS_URL", PREDICTOR_WS_URL),
            reconnect_delay_s=float(os.getenv("RECONNECT_DELAY_S", "3.0")),
            reconnect_max_delay_s=float(os.getenv("RECONNECT_MAX_DELAY_S", "3.0")),
            handshake_timeout_s=float(os.getenv("HANDSHAKE_TIMEOUT_S", "1.0")),
            retain_max=int(os.getenv("RETAIN_MAX", str(RETAIN_MAX))),
            expose_max=int(os.getenv("EXPOSE_MAX", str(EXPOSE_MAX))),
            http_host=os.getenv("HTTP_HOST", "0.0.0.0"),
            http_port=int(os.getenv("PORT", "3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_env_file(cls, path: str = ".env") -> "AppConfig":
        """
        Load config from .env file, then environment variables.

        Environment variables override file values.
        """
        load_dotenv(path, override=False)
        return cls.from_env()

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if not self.feed_url.startswith(("ws://", "wss://")):
            errors.append("FEED_WS_URL must be a ws:// or wss:// URL")

        if self.reconnect_delay_s <= 0:
            errors.append("RECONNECT_DELAY_S must be positive")

        if self.reconnect_max_delay_s < self.reconnect_delay_s:
            errors.append("RECONNECT_MAX_DELAY_S must be >= RECONNECT_DELAY_S")

        if self.handshake_timeout_s < 0:
            errors.append("HANDSHAKE_TIMEOUT_S must not be negative")

        if self.expose_max < 1:
            errors.append("EXPOSE_MAX must be at least 1")

        if self.retain_max < self.expose_max:
            errors.append("RETAIN_MAX must be >= EXPOSE_MAX")

        if self.http_port < 1 or self.http_port > 65535:
            errors.append("PORT must be between 1 and 65535")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append("LOG_LEVEL must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

        return errors
