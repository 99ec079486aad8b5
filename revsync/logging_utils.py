"""Logging setup for applications embedding revsync."""

import json
import logging
from datetime import datetime, timezone

from .config import LoggingConfig

LEVELS = {
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per line, keyed by the emitting revsync module."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        # Anything json can't encode is logged as its str()
        return json.dumps(entry, default=str)


def setup_logging(log_level: str = "info", json_output: bool = False) -> logging.Handler:
    """Configure logging for the revsync loggers.

    Replaces any handler a previous call installed on the ``revsync`` logger.

    Args:
        log_level: Level name (warning, info, debug). Unknown names fall
            back to info.
        json_output: Output logs as JSON lines for machine parsing.

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler()
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger("revsync")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(LEVELS.get(log_level.lower(), logging.INFO))
    return handler


def setup_logging_from_config(config: LoggingConfig) -> logging.Handler:
    return setup_logging(config.level, config.json)
