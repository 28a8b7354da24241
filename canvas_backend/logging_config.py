"""
Logging setup, applied once when the app is created.
"""

from __future__ import annotations

import logging
import sys

from canvas_backend.config import Settings

# pymongo logs every heartbeat and server-selection attempt at DEBUG.
_QUIET_LOGGERS = ("pymongo", "pymongo.serverSelection", "pymongo.connection")


def _parse_level(value: str) -> int:
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
        )
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
