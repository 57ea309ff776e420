"""Entrypoint for watching live marketplace data from the command line.

This module wires up one DataCacheManager for the process, mounts the market
insights and available-credits keys and logs every update until interrupted.
"""

from __future__ import annotations

import asyncio
import logging

from . import config
from .api import MarketplaceApi
from .binding import LiveData
from .logger import setup_logging
from .manager import DataCacheManager
from .marketplace import MARKET_INSIGHTS_KEY, MarketplaceData, credits_key
from .models.options import FetchOptions

logger = logging.getLogger(__name__)


def build_marketplace(settings: config.Settings | None = None) -> MarketplaceData:
    s = settings or config.settings
    manager = DataCacheManager(s)
    api = MarketplaceApi(base_url=s.API_BASE_URL, timeout_s=s.HTTP_TIMEOUT_S)
    return MarketplaceData(manager, api)


def _log_update(view: LiveData) -> None:
    if view.error is not None:
        logger.warning("%s unavailable: %s", view.key, view.error)
        return
    data = view.data
    if isinstance(data, dict) and "credits" in data:
        logger.info("%s: %d credits", view.key, len(data.get("credits") or []))
    else:
        logger.info("%s updated", view.key)


async def watch(marketplace: MarketplaceData) -> None:
    manager = marketplace.manager
    api = marketplace.api
    views = [
        LiveData(
            manager,
            MARKET_INSIGHTS_KEY,
            api.amarket_insights,
            FetchOptions(
                cache_duration_s=manager.critical_cache_duration_s, critical=True
            ),
            on_change=_log_update,
        ),
        LiveData(
            manager,
            credits_key({}),
            lambda: api.aavailable_credits({}),
            FetchOptions(critical=True),
            on_change=_log_update,
        ),
    ]
    try:
        for view in views:
            await view.start()
        await asyncio.Event().wait()
    finally:
        for view in views:
            view.close()
        await manager.aclose()
        api.close()


def run() -> None:
    setup_logging()
    config.validate_settings()
    logger.info("Watching marketplace data at %s", config.API_BASE_URL)
    try:
        asyncio.run(watch(build_marketplace()))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    run()
