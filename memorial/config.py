from __future__ import annotations
import logging
import os
from typing import Optional

TREND_WINDOWS = (6, 12, 24)
DEFAULT_TREND_WINDOW = 12
MAX_TREND_WINDOW = 24
DEFAULT_ANNIVERSARY_DAYS = 30
DEFAULT_ANNIVERSARY_LIMIT = 5


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def get_trend_window() -> int:
    """Default trailing window (months) for the monthly trend.

    Environment variable: MEMORIAL_TREND_WINDOW (values: 6|12|24)
    Anything else falls back to 12.
    """
    v = _env_int("MEMORIAL_TREND_WINDOW", DEFAULT_TREND_WINDOW)
    return v if v in TREND_WINDOWS else DEFAULT_TREND_WINDOW


def get_anniversary_days() -> int:
    """Look-ahead window for the upcoming anniversaries feed.

    Environment variable: MEMORIAL_ANNIVERSARY_DAYS (default 30, negative -> 30)
    """
    v = _env_int("MEMORIAL_ANNIVERSARY_DAYS", DEFAULT_ANNIVERSARY_DAYS)
    return v if v >= 0 else DEFAULT_ANNIVERSARY_DAYS


def get_anniversary_limit() -> int:
    """Environment variable: MEMORIAL_ANNIVERSARY_LIMIT (default 5)."""
    v = _env_int("MEMORIAL_ANNIVERSARY_LIMIT", DEFAULT_ANNIVERSARY_LIMIT)
    return v if v >= 0 else DEFAULT_ANNIVERSARY_LIMIT


def get_log_level(default: str = "WARNING") -> int:
    """Environment variable: MEMORIAL_LOG_LEVEL (DEBUG|INFO|WARNING|ERROR)."""
    name: Optional[str] = os.getenv("MEMORIAL_LOG_LEVEL")
    level = logging.getLevelName((name or default).strip().upper())
    return level if isinstance(level, int) else logging.WARNING
