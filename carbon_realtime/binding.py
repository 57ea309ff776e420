"""Consumer-side binding: keeps loading/error/data state for one cache key."""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, TypeVar

from .manager import DataCacheManager, Fetcher, Unsubscribe
from .models.options import FetchOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveData(Generic[T]):
    """Mounts a key on a manager and mirrors its value.

    ``start()`` subscribes before fetching so the first successful load can arm
    auto-refresh. ``close()`` unsubscribes; results that land afterwards are
    ignored.
    """

    def __init__(
        self,
        manager: DataCacheManager,
        key: str,
        fetcher: Fetcher[T],
        options: FetchOptions | None = None,
        on_change: Callable[["LiveData[T]"], Any] | None = None,
    ) -> None:
        self._manager = manager
        self.key = key
        self._fetcher = fetcher
        self._options = options
        self._on_change = on_change
        self._unsubscribe: Unsubscribe | None = None
        self._mounted = False

        self.data: T | None = None
        self.loading = True
        self.error: Exception | None = None

    @property
    def mounted(self) -> bool:
        return self._mounted

    async def start(self) -> "LiveData[T]":
        if self._mounted:
            return self
        self._mounted = True
        self.loading = True
        self.error = None
        self._unsubscribe = self._manager.subscribe(self.key, self._on_update)
        try:
            result = await self._manager.fetch(self.key, self._fetcher, self._options)
        except Exception as exc:
            if self._mounted:
                logger.debug("Initial load for %s failed: %s", self.key, exc)
                self.error = exc
                self.loading = False
                self._changed()
            return self
        if self._mounted:
            self.data = result
            self.loading = False
            self._changed()
        return self

    def close(self) -> None:
        self._mounted = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_update(self, value: T) -> None:
        if not self._mounted:
            return
        self.data = value
        self.error = None
        self._changed()

    def _changed(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self)
        except Exception:
            logger.exception("on_change callback failed for %s", self.key)

    async def __aenter__(self) -> "LiveData[T]":
        return await self.start()

    async def __aexit__(self, *_exc: object) -> None:
        self.close()


__all__ = ["LiveData"]
