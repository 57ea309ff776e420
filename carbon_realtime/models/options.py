"""Fetch options dataclass."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class FetchOptions:
    """Per-call fetch options.

    ``cache_duration_s`` of ``None`` means the manager's configured default.
    ``critical`` shortens the freshness window to the critical duration
    without changing how long the entry is kept.
    """

    cache_duration_s: float | None = None
    critical: bool = False
    auto_refresh: bool = True
    retry_on_error: bool = True

    def __post_init__(self) -> None:
        if self.cache_duration_s is not None and self.cache_duration_s <= 0:
            raise ValueError("cache_duration_s must be positive")

    def without_auto_refresh(self) -> "FetchOptions":
        return replace(self, auto_refresh=False)
