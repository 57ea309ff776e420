"""Cache-related dataclasses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with monotonic production and expiry timestamps."""

    value: T
    produced_at: float
    expires_at: float

    def age(self, now: float) -> float:
        return now - self.produced_at

    def expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass
class FetchState:
    in_flight: bool = False
    last_attempt_at: float = 0.0
    consecutive_failures: int = 0
    retry_not_before: float | None = None

    def in_backoff(self, now: float) -> bool:
        return self.retry_not_before is not None and now < self.retry_not_before
