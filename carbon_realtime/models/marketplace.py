"""Marketplace payload shapes."""

from __future__ import annotations

from typing import Any, Literal, TypedDict

ListingType = Literal["direct_sale", "marketplace_pool", "both"]


class CreditFilters(TypedDict, total=False):
    """Body of ``POST /api/credits/individual``."""

    projectType: str
    certificationStandard: str
    priceRange: list[float]
    location: str
    listingType: ListingType
    limit: int
    offset: int
    sortBy: Literal["price", "vintage", "quality", "type"]
    sortOrder: Literal["asc", "desc"]


class CreditRow(TypedDict, total=False):
    """Single credit as returned by the individual credits endpoint (partial)."""

    id: str
    serialNumber: str
    pricePerCredit: str
    availableQuantity: int
    type: str
    registry: str
    qualityScore: str | None
    vintageYear: int
    projectName: str


class CreditsPage(TypedDict, total=False):
    credits: list[CreditRow]
    pagination: dict[str, int]
    marketStats: dict[str, Any]
    timestamp: int


class PurchaseRequirements(TypedDict):
    quantity: int
    maxPrice: float
    preferredTypes: list[str]
    certificationStandards: list[str]
