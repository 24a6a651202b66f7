"""Logging setup: quiet libraries, verbose ``hds_bridge``."""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_level(name: str) -> int | None:
    """Numeric level for ``name`` (any case), or None if it is not a level."""
    name = name.upper()
    if name not in VALID_LEVELS:
        return None
    return logging.getLevelName(name)


def setup_logging(level: str = "INFO") -> None:
    """Send all logs to stderr and set the ``hds_bridge`` logger to ``level``.

    Third-party loggers (aiohttp access logs, websockets frames) stay at
    WARNING whatever ``level`` is.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logging.basicConfig(level=logging.WARNING, handlers=[handler], force=True)

    app_logger = logging.getLogger(__package__)
    numeric = _resolve_level(level)
    app_logger.setLevel(logging.INFO if numeric is None else numeric)
    if numeric is None:
        app_logger.warning("Unknown log level '%s', defaulting to INFO", level)
