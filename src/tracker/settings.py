from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """
    Tracker settings loaded from environment variables.

    Env vars:
    - TRACKER_BACKEND: storage backend, only 'memory' is available (default)
    - TRACKER_LOG_LEVEL: logging level name (default: INFO)
    - TRACKER_DATE_FORMAT: strftime pattern used when dumping dates (default: %Y-%m-%d)
    - TRACKER_LABEL_WIDTH: width of the label column in task dumps (default: 16)
    """

    backend: str
    log_level: str
    date_format: str
    label_width: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return tracker settings loaded from environment variables."""
    backend = _get_env("TRACKER_BACKEND", "memory").strip().lower()
    if backend not in {"memory"}:
        # Fallback to memory if unsupported
        backend = "memory"

    return Settings(
        backend=backend,
        log_level=_get_env("TRACKER_LOG_LEVEL", "INFO").strip().upper(),
        date_format=_get_env("TRACKER_DATE_FORMAT", "%Y-%m-%d"),
        label_width=_parse_int(_get_env("TRACKER_LABEL_WIDTH", "16"), 16),
    )
