"""Shared test fixtures and dummy classes."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any

from carbon_realtime.config import Settings

DEFAULT_SETTINGS = Settings(
    API_BASE_URL="http://market.test",
    HTTP_TIMEOUT_S=5.0,
    CACHE_DURATION_S=30.0,
    CRITICAL_CACHE_DURATION_S=5.0,
    MAX_RETRIES=3,
    BACKOFF_MULTIPLIER=1.5,
    RETRY_BASE_DELAY_S=1.0,
)


def make_settings(**overrides: Any) -> Settings:
    return replace(DEFAULT_SETTINGS, **overrides)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records requested delays and yields once."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._clock is not None:
            self._clock.advance(delay)
        await asyncio.sleep(0)


class CountingFetcher:
    """Async fetcher that replays a script of values and exceptions."""

    def __init__(self, *outcomes: object) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if len(self._outcomes) > 1:
            outcome = self._outcomes.pop(0)
        else:
            outcome = self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class DummyResponse:
    """Dummy HTTP response for testing."""

    def __init__(self, data: object, status: int = 200, text: str = "") -> None:
        self._data = data
        self.status_code = status
        self.text = text or str(data)
        self.ok = 200 <= status < 300

    def json(self) -> object:
        return self._data
