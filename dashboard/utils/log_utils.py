"""
Logging setup for the dashboard sync layer.

Every module logs under the "dashboard" logger tree; the level comes from
DASHBOARD_LOG_LEVEL unless a caller passes one.
"""

import logging
import sys
from typing import Optional, Union

from dashboard.core.constants import LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"

_initialized = False


def setup_logging(
    level: Optional[Union[int, str]] = None,
    format_string: str = LOG_FORMAT,
) -> logging.Logger:
    """
    Attach a stdout handler to the "dashboard" logger.
    Only runs once; later calls return the configured logger.
    """
    global _initialized

    root = logging.getLogger("dashboard")
    if _initialized:
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string))
    root.addHandler(handler)
    root.setLevel(level if level is not None else LOG_LEVEL)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    _initialized = True
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for a module: get_logger("dashboard.store.state") -> "dashboard.store.state"."""
    setup_logging()
    if name.startswith("dashboard."):
        name = name[len("dashboard."):]
    return logging.getLogger(f"dashboard.{name}")
