"""Runtime settings for filedock-ui.

Everything is driven by env vars so the same tree runs on a server, in a
container or from a checkout. The environment is read once, in
``load_settings``; the rest of the app only sees the frozen ``Settings``.

Environment variables
- FILEDOCK_UPLOAD_DIR: content root shown in the UI (default: ./uploads)
- FILEDOCK_ZIP_DIR: scratch directory for folder archives (default: ./zip)
- FILEDOCK_LOG_DIR: directory for core/access logs (default: ./log)
- FILEDOCK_HOST / FILEDOCK_PORT: listen address (default: 0.0.0.0:89)
- FILEDOCK_MAX_UPLOAD_MB: request size cap in MB, 0 disables (default: 0)
- FILEDOCK_LOG_CORE_ENABLE: 0/1 (default: 1)
- FILEDOCK_LOG_CORE_LEVEL: ERROR|WARNING|INFO|DEBUG (default: INFO)
- FILEDOCK_LOG_ACCESS_ENABLE: 0/1 (default: 0)
- FILEDOCK_LOG_ROTATE_MAX_MB: size of each log file before rotation (default: 2)
- FILEDOCK_LOG_ROTATE_BACKUPS: rotated files to keep (default: 3)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional


DEFAULT_UPLOAD_DIR = "uploads"
DEFAULT_ZIP_DIR = "zip"
DEFAULT_LOG_DIR = "log"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 89
DEFAULT_ROTATE_MAX_MB = 2
DEFAULT_ROTATE_BACKUPS = 3

_TRUE = ("1", "true", "yes", "on", "y")
_FALSE = ("0", "false", "no", "off", "n")


def _read_str_env(name: str, default: str) -> str:
    v = str(os.getenv(name, "") or "").strip()
    return v or default


def _read_int_env(name: str, default: int = 0) -> int:
    try:
        v = str(os.getenv(name, "") or "").strip()
        if not v:
            return int(default)
        return int(float(v))
    except Exception:
        return int(default)


def _read_bool_env(name: str, default: bool) -> bool:
    v = str(os.getenv(name, "") or "").strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    return default


def parse_log_level(name: str) -> int:
    """Map a level name (``warn``, ``DEBUG``...) to its number; unknown names give INFO."""
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


@dataclass(frozen=True)
class Settings:
    upload_dir: str
    zip_dir: str
    log_dir: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_upload_mb: int = 0
    log_core_enabled: bool = True
    log_core_level: int = logging.INFO
    log_access_enabled: bool = False
    log_rotate_max_mb: int = DEFAULT_ROTATE_MAX_MB
    log_rotate_backups: int = DEFAULT_ROTATE_BACKUPS

    @property
    def max_content_length(self) -> Optional[int]:
        if self.max_upload_mb > 0:
            return self.max_upload_mb * 1024 * 1024
        return None


def load_settings() -> Settings:
    """Build ``Settings`` from the environment (relative dirs resolve against cwd)."""
    return Settings(
        upload_dir=os.path.abspath(_read_str_env("FILEDOCK_UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
        zip_dir=os.path.abspath(_read_str_env("FILEDOCK_ZIP_DIR", DEFAULT_ZIP_DIR)),
        log_dir=os.path.abspath(_read_str_env("FILEDOCK_LOG_DIR", DEFAULT_LOG_DIR)),
        host=_read_str_env("FILEDOCK_HOST", DEFAULT_HOST),
        port=_read_int_env("FILEDOCK_PORT", DEFAULT_PORT),
        max_upload_mb=max(0, _read_int_env("FILEDOCK_MAX_UPLOAD_MB", 0)),
        log_core_enabled=_read_bool_env("FILEDOCK_LOG_CORE_ENABLE", True),
        log_core_level=parse_log_level(_read_str_env("FILEDOCK_LOG_CORE_LEVEL", "INFO")),
        log_access_enabled=_read_bool_env("FILEDOCK_LOG_ACCESS_ENABLE", False),
        log_rotate_max_mb=max(1, _read_int_env("FILEDOCK_LOG_ROTATE_MAX_MB", DEFAULT_ROTATE_MAX_MB)),
        log_rotate_backups=max(1, _read_int_env("FILEDOCK_LOG_ROTATE_BACKUPS", DEFAULT_ROTATE_BACKUPS)),
    )
