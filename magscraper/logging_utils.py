"""
Logging helpers: structured event lines and CLI handler setup.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Union

LOGGER_NAME = "magscraper"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def configure_logging(level: Union[int, str] = "INFO", log_format: str = DEFAULT_FORMAT) -> logging.Logger:
    """
    (Re)configure the package logger with a single stdout handler.
    """

    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(log_format))
    lg.addHandler(handler)
    lg.propagate = False
    return lg
