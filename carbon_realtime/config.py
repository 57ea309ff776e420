"""Central configuration for carbon_realtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


def _read_float(name: str, default: float) -> float:
    """Read a float environment variable.

    Args:
        name: Environment variable name
        default: Value used when the variable is unset, empty or invalid

    Returns:
        Parsed float or ``default``.

    Example:
        >>> os.environ["CACHE_DURATION_S"] = "12.5"
        >>> _read_float("CACHE_DURATION_S", 30.0)
        12.5
    """
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using %s", name, raw, default)
        return default


def _read_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r; using %s", name, raw, default)
        return default


@dataclass
class Settings:
    """Configuration settings for carbon_realtime.

    All settings are loaded from environment variables with sensible defaults.
    Durations and delays are in seconds.
    """

    API_BASE_URL: str
    HTTP_TIMEOUT_S: float
    CACHE_DURATION_S: float
    CRITICAL_CACHE_DURATION_S: float
    MAX_RETRIES: int
    BACKOFF_MULTIPLIER: float
    RETRY_BASE_DELAY_S: float


def _read_settings() -> Settings:
    """Read all configuration from environment variables.

    Returns:
        Settings object with all configuration values.

    Note:
        Invalid numeric values fall back to the defaults.
    """
    base_url = (os.environ.get("MARKET_API_BASE_URL") or "http://localhost:3000").rstrip(
        "/"
    )
    return Settings(
        API_BASE_URL=base_url,
        HTTP_TIMEOUT_S=_read_float("MARKET_HTTP_TIMEOUT_S", 10.0),
        CACHE_DURATION_S=_read_float("CACHE_DURATION_S", 30.0),
        CRITICAL_CACHE_DURATION_S=_read_float("CRITICAL_CACHE_DURATION_S", 5.0),
        MAX_RETRIES=_read_int("CACHE_MAX_RETRIES", 3),
        BACKOFF_MULTIPLIER=_read_float("CACHE_BACKOFF_MULTIPLIER", 1.5),
        RETRY_BASE_DELAY_S=_read_float("CACHE_RETRY_BASE_DELAY_S", 1.0),
    )


settings = _read_settings()


def validate_settings(current: Settings | None = None) -> list[str]:
    """Log warnings for settings that would make the cache misbehave.

    Returns the list of warning messages so callers can surface them.
    """
    s = current or settings
    problems: list[str] = []
    if s.CACHE_DURATION_S <= 0:
        problems.append("CACHE_DURATION_S must be positive")
    if s.CRITICAL_CACHE_DURATION_S <= 0:
        problems.append("CRITICAL_CACHE_DURATION_S must be positive")
    if s.MAX_RETRIES < 0:
        problems.append("CACHE_MAX_RETRIES must not be negative")
    if s.BACKOFF_MULTIPLIER < 1:
        problems.append("CACHE_BACKOFF_MULTIPLIER below 1 shrinks retry delays")
    if s.HTTP_TIMEOUT_S <= 0:
        problems.append("MARKET_HTTP_TIMEOUT_S must be positive")
    for msg in problems:
        logger.warning(msg)
    return problems


# Exported constants
API_BASE_URL: str = settings.API_BASE_URL
HTTP_TIMEOUT_S: float = settings.HTTP_TIMEOUT_S
