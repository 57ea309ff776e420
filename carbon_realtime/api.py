"""Marketplace HTTP API helpers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import requests

from . import config
from .models.marketplace import CreditFilters, CreditsPage

logger = logging.getLogger(__name__)

_USER_AGENT = "carbon-realtime/0.1"


class MarketplaceApi:
    """Thin blocking client for the marketplace JSON endpoints.

    The request timeout is the only timeout on a fetch; the cache manager
    adds none of its own. Each endpoint has an ``a``-prefixed coroutine
    variant that runs the blocking call in a worker thread.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_s: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.timeout_s = timeout_s or config.HTTP_TIMEOUT_S
        self.session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": _USER_AGENT, "Accept": "application/json"}
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    @staticmethod
    def _check(resp: requests.Response, prefix: str) -> Any:
        if not resp.ok:
            snippet = (resp.text or "")[:500].replace("\n", " ")
            raise RuntimeError(f"{prefix} {resp.status_code}: {snippet}")
        return resp.json()

    def get_json(
        self, path: str, params: dict[str, Any] | None = None, error_prefix: str | None = None
    ) -> Any:
        resp = self.session.get(self._url(path), params=params, timeout=self.timeout_s)
        return self._check(resp, error_prefix or "Marketplace HTTP")

    def post_json(
        self, path: str, payload: dict[str, Any], error_prefix: str | None = None
    ) -> Any:
        resp = self.session.post(self._url(path), json=payload, timeout=self.timeout_s)
        return self._check(resp, error_prefix or "Marketplace HTTP")

    def available_credits(self, filters: CreditFilters) -> CreditsPage:
        return self.post_json(
            "/api/credits/individual",
            dict(filters),
            error_prefix="Failed to fetch credits: HTTP",
        )

    def projects_by_status(self, status: str, role: str) -> dict[str, Any]:
        return self.get_json(
            "/api/projects/by-status", params={"status": status, "role": role}
        )

    def project_donations(self, project_id: str) -> dict[str, Any]:
        return self.get_json(f"/api/donations/project/{quote(str(project_id), safe='')}")

    def market_insights(self) -> dict[str, Any]:
        return self.get_json("/api/market-insights")

    def user_profile(self, role: str) -> dict[str, Any]:
        return self.get_json(f"/api/profile/{quote(role, safe='')}")

    async def aavailable_credits(self, filters: CreditFilters) -> CreditsPage:
        return await asyncio.to_thread(self.available_credits, filters)

    async def aprojects_by_status(self, status: str, role: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.projects_by_status, status, role)

    async def aproject_donations(self, project_id: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.project_donations, project_id)

    async def amarket_insights(self) -> dict[str, Any]:
        return await asyncio.to_thread(self.market_insights)

    async def auser_profile(self, role: str) -> dict[str, Any]:
        return await asyncio.to_thread(self.user_profile, role)

    def close(self) -> None:
        self.session.close()


__all__ = ["MarketplaceApi"]
