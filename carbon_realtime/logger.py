"""Process-wide logging setup for the marketplace watcher.

``LOG_LEVEL`` picks the root level unless a level is passed explicitly.
Records go to stderr, one line each, tagged with the emitting logger.
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Third-party loggers that only add noise at INFO.
_QUIET_LOGGERS = ("urllib3", "asyncio")


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.environ.get("LOG_LEVEL", "INFO")).strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str | None = None) -> int:
    """Configure the root logger once and return the level in effect."""
    resolved = _resolve_level(level)
    root = logging.getLogger()
    if not any(getattr(h, "_carbon_realtime", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._carbon_realtime = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(resolved)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(resolved, logging.WARNING))
    return resolved


__all__ = ["DATE_FORMAT", "LOG_FORMAT", "setup_logging"]
