from __future__ import annotations

import logging
import sys
from datetime import date, datetime, timezone
from typing import Optional

from .constants import TIMESTAMP_FORMAT


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> None:
    """Configure the `tracker` logger with a single stderr handler."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger("tracker")
    root.setLevel(numeric_level)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(handler)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO8601 date or datetime string into an aware UTC datetime.

    - A trailing 'Z' is read as UTC.
    - A bare date is promoted to midnight UTC.
    - Returns None when the string cannot be parsed.
    """
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(s))
    except ValueError:
        try:
            d = date.fromisoformat(s)
        except ValueError:
            return None
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


# PUBLIC_INTERFACE
def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime in the fixed serialized form, e.g. 2025-01-01T00:00:00.000000Z."""
    if value is None:
        return None
    return as_utc(value).strftime(TIMESTAMP_FORMAT)
