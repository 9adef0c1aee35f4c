"""Process-wide logging setup for updateq.

Every module asks for its logger through get_logger(); the first call attaches
one stream handler to the root logger. The API calls configure_logging() at
startup so the level can be changed without touching the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Chatty third-party loggers that drown out pipeline output at INFO
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("httpx", "urllib3", "google.auth")


def _resolve_level(level: str | int | None = None) -> int:
    if isinstance(level, int):
        return level
    level_name = (level or os.getenv("UPDATEQ_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(level: str | int | None = None) -> int:
    """Attach the stream handler (once) and set the root level.

    Returns:
        The numeric level that was applied.
    """
    global _HANDLER_ATTACHED

    resolved = _resolve_level(level)
    root = logging.getLogger()

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
        _HANDLER_ATTACHED = True

    root.setLevel(resolved)
    return resolved


def get_logger(name: str) -> logging.Logger:
    """Return a module logger, configuring the root handler on first use."""
    level = configure_logging()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
