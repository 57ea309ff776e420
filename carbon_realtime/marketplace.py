"""Keyed marketplace accessors built on the data manager.

Each accessor picks a cache key that encodes its parameters and the cache
policy that suits the data: market data is critical and auto-refreshes,
donation history and profiles are kept longer and never refresh on their own.
"""

from __future__ import annotations

import json
from typing import Any

from .api import MarketplaceApi
from .manager import DataCacheManager
from .models.marketplace import CreditFilters, CreditsPage
from .models.options import FetchOptions

_PROJECT_STATUS_TTL_S = 15.0
_DONATIONS_TTL_S = 60.0
_PROFILE_TTL_S = 120.0

MARKET_INSIGHTS_KEY = "market:insights"


def credits_key(filters: CreditFilters) -> str:
    return "credits:" + json.dumps(filters, sort_keys=True, separators=(",", ":"))


class MarketplaceData:
    def __init__(self, manager: DataCacheManager, api: MarketplaceApi) -> None:
        self.manager = manager
        self.api = api

    async def get_available_credits(
        self, filters: CreditFilters | None = None
    ) -> CreditsPage:
        payload = CreditFilters(**(filters or {}))
        return await self.manager.fetch(
            credits_key(payload),
            lambda: self.api.aavailable_credits(payload),
            FetchOptions(
                cache_duration_s=self.manager.cache_duration_s,
                critical=True,
                auto_refresh=True,
            ),
        )

    async def get_projects_by_status(self, status: str, role: str) -> dict[str, Any]:
        return await self.manager.fetch(
            f"projects:{status}:{role}",
            lambda: self.api.aprojects_by_status(status, role),
            FetchOptions(cache_duration_s=_PROJECT_STATUS_TTL_S, auto_refresh=True),
        )

    async def get_project_donations(self, project_id: str) -> dict[str, Any]:
        return await self.manager.fetch(
            f"donations:{project_id}",
            lambda: self.api.aproject_donations(project_id),
            FetchOptions(cache_duration_s=_DONATIONS_TTL_S, auto_refresh=False),
        )

    async def get_market_insights(self) -> dict[str, Any]:
        return await self.manager.fetch(
            MARKET_INSIGHTS_KEY,
            self.api.amarket_insights,
            FetchOptions(
                cache_duration_s=self.manager.critical_cache_duration_s,
                critical=True,
                auto_refresh=True,
            ),
        )

    async def get_user_profile(self, user_id: str, role: str) -> dict[str, Any]:
        return await self.manager.fetch(
            f"profile:{user_id}:{role}",
            lambda: self.api.auser_profile(role),
            FetchOptions(cache_duration_s=_PROFILE_TTL_S, auto_refresh=False),
        )


__all__ = ["MARKET_INSIGHTS_KEY", "MarketplaceData", "credits_key"]
