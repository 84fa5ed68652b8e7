"""Logging setup for the house feed service."""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that are noisy at INFO
_CHATTY_LOGGERS = ("websocket", "aiohttp.access")


def setup_logging(name: str, level: str = "INFO") -> logging.Logger:
    """
    Configure root logging and return the service logger.

    Below DEBUG the websocket-client and aiohttp access loggers are held
    at WARNING; every poll would otherwise produce a line.

    Args:
        name: Logger name
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Raises:
        ValueError: If level is not a logging level name
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=numeric,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    for chatty in _CHATTY_LOGGERS:
        logging.getLogger(chatty).setLevel(
            logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
        )

    return logging.getLogger(name)
