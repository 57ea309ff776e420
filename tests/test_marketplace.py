import pytest

from carbon_realtime.manager import DataCacheManager
from carbon_realtime.marketplace import MARKET_INSIGHTS_KEY, MarketplaceData, credits_key

from conftest import FakeClock, RecordingSleep, make_settings


class FakeApi:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def aavailable_credits(self, filters):
        self.calls.append(("credits", dict(filters)))
        return {"credits": [], "pagination": {"limit": 50, "offset": 0, "total": 0}}

    async def aprojects_by_status(self, status, role):
        self.calls.append(("projects", status, role))
        return {"projects": []}

    async def aproject_donations(self, project_id):
        self.calls.append(("donations", project_id))
        return {"donations": []}

    async def amarket_insights(self):
        self.calls.append(("insights",))
        return {"averagePrice": 12.5}

    async def auser_profile(self, role):
        self.calls.append(("profile", role))
        return {"role": role}


def _marketplace() -> tuple[MarketplaceData, FakeApi, DataCacheManager]:
    manager = DataCacheManager(
        make_settings(), clock=FakeClock(), sleep=RecordingSleep()
    )
    api = FakeApi()
    return MarketplaceData(manager, api), api, manager


def _lifetime(manager: DataCacheManager, key: str) -> float:
    entry = manager._cache[key]
    return entry.expires_at - entry.produced_at


def test_credits_key_is_order_independent() -> None:
    a = credits_key({"projectType": "forestry", "limit": 10})
    b = credits_key({"limit": 10, "projectType": "forestry"})
    assert a == b
    assert a == 'credits:{"limit":10,"projectType":"forestry"}'


@pytest.mark.asyncio
async def test_equal_filters_share_cache_entry() -> None:
    market, api, manager = _marketplace()

    await market.get_available_credits({"location": "Kenya", "limit": 5})
    await market.get_available_credits({"limit": 5, "location": "Kenya"})

    assert api.calls == [("credits", {"location": "Kenya", "limit": 5})]
    assert _lifetime(manager, credits_key({"limit": 5, "location": "Kenya"})) == 30.0
    await manager.aclose()


@pytest.mark.asyncio
async def test_accessor_keys_and_lifetimes() -> None:
    market, api, manager = _marketplace()

    await market.get_projects_by_status("pending", "admin")
    await market.get_project_donations("p-42")
    await market.get_market_insights()
    await market.get_user_profile("u-7", "seller")

    assert _lifetime(manager, "projects:pending:admin") == 15.0
    assert _lifetime(manager, "donations:p-42") == 60.0
    assert _lifetime(manager, MARKET_INSIGHTS_KEY) == 5.0
    assert _lifetime(manager, "profile:u-7:seller") == 120.0
    assert ("profile", "seller") in api.calls
    await manager.aclose()


@pytest.mark.asyncio
async def test_donations_never_auto_refresh() -> None:
    market, _, manager = _marketplace()
    manager.subscribe("donations:p-1", lambda _v: None)
    manager.subscribe(MARKET_INSIGHTS_KEY, lambda _v: None)

    await market.get_project_donations("p-1")
    await market.get_market_insights()

    assert manager.is_refreshing("donations:p-1") is False
    assert manager.is_refreshing(MARKET_INSIGHTS_KEY) is True
    await manager.aclose()
