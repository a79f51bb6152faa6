"""Logging configuration for the API process and in-process jobs."""

import logging
import sys
from typing import Optional

from trading.config.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers held at a fixed level regardless of log_level
_LIBRARY_LEVELS = {
    "sqlalchemy.engine": logging.WARNING,
    "urllib3": logging.WARNING,
    "uvicorn": logging.INFO,
}


class _TradingHandler(logging.StreamHandler):
    """Marker type so repeated setup does not stack handlers."""


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging.

    level overrides settings.log_level (e.g. "DEBUG" for a reconciliation
    run). Safe to call more than once; later calls only change the level.
    """
    level_name = (level or get_settings().log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level_name}")

    root = logging.getLogger()
    if not any(isinstance(h, _TradingHandler) for h in root.handlers):
        handler = _TradingHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name, library_level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(library_level)
