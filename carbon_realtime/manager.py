"""Real-time data manager: keyed cache, fetch deduplication and push updates.

One ``DataCacheManager`` is built at process start and handed to every
consumer. It owns four per-key maps (cache entries, fetch states, subscribers
and refresh tasks) plus the map of in-flight loads that concurrent callers
await instead of issuing duplicate requests.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, TypeVar

from . import config
from .config import Settings
from .models.cache import CacheEntry, FetchState
from .models.options import FetchOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[T]]
Subscriber = Callable[[Any], None]
Unsubscribe = Callable[[], None]

# Refresh pre-emptively once this share of the freshness window has passed.
_REFRESH_RATIO = 0.8


def _consume_result(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


class DataCacheManager:
    """In-memory cache-and-subscription layer for asynchronous data sources."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        s = settings or config.settings
        self.cache_duration_s = s.CACHE_DURATION_S
        self.critical_cache_duration_s = s.CRITICAL_CACHE_DURATION_S
        self.max_retries = s.MAX_RETRIES
        self.backoff_multiplier = s.BACKOFF_MULTIPLIER
        self.retry_base_delay_s = s.RETRY_BASE_DELAY_S

        self._clock = clock
        self._sleep = sleep

        self._cache: dict[str, CacheEntry[Any]] = {}
        self._states: dict[str, FetchState] = {}
        self._subscribers: dict[str, set[Subscriber]] = {}
        self._refresh_tasks: dict[str, asyncio.Task] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    async def fetch(
        self,
        key: str,
        fetcher: Fetcher[T],
        options: FetchOptions | None = None,
    ) -> T:
        """Return the value for ``key``, loading it through ``fetcher`` if needed.

        Order of preference: a fresh cache entry, the load already in flight
        for the key, a new load with retries, and finally the last cached
        value if the new load failed. The fetcher's error is raised only when
        no cached value exists.
        """
        opts = options or FetchOptions()
        entry = self._cache.get(key)
        if entry is not None and not self._should_refresh(entry, opts):
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            state = self._state(key)
            state.in_flight = True
            state.last_attempt_at = self._clock()
            task = asyncio.create_task(self._load(key, fetcher, opts), name=f"load:{key}")
            task.add_done_callback(_consume_result)
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight fetch for %s", key)
        return await asyncio.shield(task)

    def subscribe(self, key: str, callback: Subscriber) -> Unsubscribe:
        """Register ``callback`` for every successful value of ``key``.

        The returned function removes the callback. Removing the last one
        stops the key's auto-refresh; its cache entry is kept.
        """
        self._subscribers.setdefault(key, set()).add(callback)

        def unsubscribe() -> None:
            subs = self._subscribers.get(key)
            if not subs or callback not in subs:
                return
            subs.discard(callback)
            if not subs:
                del self._subscribers[key]
                self._cancel_refresh(key)

        return unsubscribe

    def get_cached(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        return entry.value if entry is not None else None

    def fetch_state(self, key: str) -> FetchState | None:
        return self._states.get(key)

    def subscriber_count(self, key: str) -> int:
        return len(self._subscribers.get(key, ()))

    def is_refreshing(self, key: str) -> bool:
        task = self._refresh_tasks.get(key)
        return isinstance(task, asyncio.Task) and not task.done()

    def destroy(self) -> None:
        """Cancel all refresh schedules and drop every cached value and state.

        Loads already in flight are not cancelled.
        """
        for task in self._refresh_tasks.values():
            task.cancel()
        self._refresh_tasks.clear()
        self._cache.clear()
        self._states.clear()
        self._subscribers.clear()
        self._inflight.clear()

    async def aclose(self) -> None:
        tasks = list(self._refresh_tasks.values())
        self.destroy()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _state(self, key: str) -> FetchState:
        return self._states.setdefault(key, FetchState())

    def _duration(self, opts: FetchOptions) -> float:
        return opts.cache_duration_s or self.cache_duration_s

    def _should_refresh(self, entry: CacheEntry[Any], opts: FetchOptions) -> bool:
        now = self._clock()
        if entry.expired(now):
            return True
        max_age = self.critical_cache_duration_s if opts.critical else self._duration(opts)
        return entry.age(now) >= max_age * _REFRESH_RATIO

    def _backoff_delay(self, exponent: int) -> float:
        return (self.backoff_multiplier**exponent) * self.retry_base_delay_s

    async def _load(self, key: str, fetcher: Fetcher[T], opts: FetchOptions) -> T:
        state = self._state(key)
        try:
            try:
                value = await self._execute_with_retry(key, state, fetcher, opts)
            except Exception as exc:
                now = self._clock()
                state.consecutive_failures += 1
                state.last_attempt_at = now
                state.retry_not_before = now + self._backoff_delay(
                    state.consecutive_failures
                )
                logger.error("Data fetch failed for %s: %s", key, exc)
                fallback = self._cache.get(key)
                if fallback is None:
                    raise
                logger.warning("Using cached data for %s due to fetch error", key)
                return fallback.value

            now = self._clock()
            self._cache[key] = CacheEntry(
                value=value, produced_at=now, expires_at=now + self._duration(opts)
            )
            self._notify(key, value)
            if opts.auto_refresh and self._subscribers.get(key):
                self._arm_refresh(key, fetcher, opts)
            state.consecutive_failures = 0
            state.retry_not_before = None
            state.last_attempt_at = now
            return value
        finally:
            state.in_flight = False
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    async def _execute_with_retry(
        self, key: str, state: FetchState, fetcher: Fetcher[T], opts: FetchOptions
    ) -> T:
        if not opts.retry_on_error or state.consecutive_failures >= self.max_retries:
            return await fetcher()

        attempt = 0
        while True:
            try:
                return await fetcher()
            except Exception as exc:
                if attempt >= self.max_retries:
                    raise
                delay = self._backoff_delay(attempt)
                logger.debug(
                    "Fetch attempt %d for %s failed (%s); retrying in %.2fs",
                    attempt + 1,
                    key,
                    exc,
                    delay,
                )
            await self._sleep(delay)
            attempt += 1

    def _notify(self, key: str, value: Any) -> None:
        for callback in list(self._subscribers.get(key, ())):
            try:
                callback(value)
            except Exception:
                logger.exception("Subscriber callback error for %s", key)

    def _arm_refresh(self, key: str, fetcher: Fetcher[Any], opts: FetchOptions) -> None:
        self._cancel_refresh(key)
        interval = self._duration(opts)
        self._refresh_tasks[key] = asyncio.create_task(
            self._refresh_loop(key, fetcher, opts.without_auto_refresh(), interval),
            name=f"refresh:{key}",
        )

    def _cancel_refresh(self, key: str) -> None:
        task = self._refresh_tasks.pop(key, None)
        if task is not None:
            task.cancel()
            logger.debug("Stopped auto-refresh for %s", key)

    async def _refresh_loop(
        self, key: str, fetcher: Fetcher[Any], opts: FetchOptions, interval: float
    ) -> None:
        logger.debug("Starting auto-refresh for %s (interval=%ss)", key, interval)
        elapsed = 0.0
        while True:
            # Fixed period: time spent in the tick comes off the next wait.
            await asyncio.sleep(max(0.0, interval - elapsed))
            start = time.monotonic()
            await self._refresh_tick(key, fetcher, opts)
            elapsed = time.monotonic() - start

    async def _refresh_tick(
        self, key: str, fetcher: Fetcher[Any], opts: FetchOptions
    ) -> None:
        if not self._subscribers.get(key):
            return
        state = self._states.get(key)
        if state is not None and state.in_backoff(self._clock()):
            logger.debug("Skipping auto-refresh for %s during backoff", key)
            return
        try:
            await self.fetch(key, fetcher, opts)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Auto-refresh failed for %s", key)


__all__ = ["DataCacheManager", "Fetcher", "Subscriber", "Unsubscribe"]
