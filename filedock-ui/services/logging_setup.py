"""Logging for filedock-ui.

Two size-rotated files live in ``Settings.log_dir``:

- ``core.log``: one line per file operation and archive export.
- ``access.log``: one line per request, only when access logging is on.

``configure_logging`` takes everything from ``Settings``. Calling it again
(another app in the same process) moves both loggers to the new settings;
handlers from the previous call are closed.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Dict, Tuple

from services.settings import Settings


CORE_LOGGER_NAME = "filedock"
ACCESS_LOGGER_NAME = "filedock.access"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

# logger name -> handler installed by the last configure_logging call
_installed: Dict[str, logging.Handler] = {}


def log_paths(log_dir: str) -> Tuple[str, str]:
    """Return (core_path, access_path)."""
    return os.path.join(log_dir, "core.log"), os.path.join(log_dir, "access.log")


def _rotating_handler(path: str, settings: Settings) -> RotatingFileHandler:
    h = RotatingFileHandler(
        path,
        maxBytes=settings.log_rotate_max_mb * 1024 * 1024,
        backupCount=settings.log_rotate_backups,
        encoding="utf-8",
        delay=True,
    )
    h.setFormatter(logging.Formatter(LOG_FORMAT))
    return h


def _attach(name: str, path: str, enabled: bool, level: int, settings: Settings) -> None:
    logger = logging.getLogger(name)
    logger.propagate = False
    old = _installed.pop(name, None)
    if old is not None:
        logger.removeHandler(old)
        old.close()
    logger.disabled = not enabled
    logger.setLevel(level)
    if enabled:
        handler = _rotating_handler(path, settings)
        logger.addHandler(handler)
        _installed[name] = handler


def configure_logging(settings: Settings) -> None:
    os.makedirs(settings.log_dir, exist_ok=True)
    core_path, access_path = log_paths(settings.log_dir)
    _attach(CORE_LOGGER_NAME, core_path, settings.log_core_enabled, settings.log_core_level, settings)
    _attach(ACCESS_LOGGER_NAME, access_path, settings.log_access_enabled, logging.INFO, settings)


def core_logger() -> logging.Logger:
    return logging.getLogger(CORE_LOGGER_NAME)


def access_logger() -> logging.Logger:
    return logging.getLogger(ACCESS_LOGGER_NAME)


def core_log(level: str, msg: str, **extra) -> None:
    """Write ``msg | key=value, ...`` into core.log (never raises)."""
    try:
        tail = ", ".join(f"{k}={v}" for k, v in extra.items())
        full = f"{msg} | {tail}" if tail else msg
        logger = core_logger()
        fn = getattr(logger, str(level or "info").lower(), None)
        if callable(fn):
            fn(full)
        else:
            logger.info(full)
    except Exception:
        pass
