from __future__ import annotations

import logging
import sys

from .errors import ConfigError

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def resolve_log_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.strip().upper())
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {level_name}")
    return level


def configure_logging(level_name: str = "INFO") -> None:
    """Log to stdout; the container runtime collects it."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=resolve_log_level(level_name), handlers=[handler], force=True)
