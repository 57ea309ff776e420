"""Credit purchase optimization: score available credits and pick greedily."""

from __future__ import annotations

import logging
from typing import Any

from .marketplace import MarketplaceData
from .models.marketplace import CreditRow, PurchaseRequirements

logger = logging.getLogger(__name__)

_PRICE_WEIGHT = 0.3
_TYPE_WEIGHT = 0.3
_REGISTRY_WEIGHT = 0.2
_QUALITY_WEIGHT = 0.2
_QUALITY_SCALE = 5.0
# Load this many candidates per requested credit.
_CANDIDATE_FACTOR = 3


def _to_float(value: object) -> float | None:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def calculate_credit_score(credit: CreditRow, requirements: PurchaseRequirements) -> float:
    """Score a credit in [0, 1]; cheaper, preferred and higher quality scores more."""
    max_price = float(requirements["maxPrice"])
    if max_price <= 0:
        raise ValueError("maxPrice must be positive")
    score = 0.0

    price = _to_float(credit.get("pricePerCredit"))
    if price is not None:
        score += ((max_price - price) / max_price) * _PRICE_WEIGHT

    if credit.get("type") in requirements.get("preferredTypes", []):
        score += _TYPE_WEIGHT

    if credit.get("registry") in requirements.get("certificationStandards", []):
        score += _REGISTRY_WEIGHT

    quality = _to_float(credit.get("qualityScore"))
    if quality:
        score += (quality / _QUALITY_SCALE) * _QUALITY_WEIGHT

    return score


def select_optimal_combination(
    credits: list[dict[str, Any]], quantity: int
) -> dict[str, Any]:
    """Take credits in the given order until ``quantity`` is covered."""
    selected: list[dict[str, Any]] = []
    total_quantity = 0
    total_cost = 0.0

    for credit in credits:
        if total_quantity >= quantity:
            break
        available = int(credit.get("availableQuantity") or 0)
        can_add = min(available, quantity - total_quantity)
        if can_add <= 0:
            continue
        price = _to_float(credit.get("pricePerCredit")) or 0.0
        selected.append({**credit, "selectedQuantity": can_add})
        total_quantity += can_add
        total_cost += can_add * price

    return {
        "credits": selected,
        "total_quantity": total_quantity,
        "total_cost": total_cost,
        "average_price": (total_cost / total_quantity) if total_quantity else 0.0,
    }


class CreditPurchaseOptimizer:
    def __init__(self, marketplace: MarketplaceData) -> None:
        self.marketplace = marketplace

    async def find_optimal_credits(
        self, requirements: PurchaseRequirements
    ) -> dict[str, Any]:
        quantity = int(requirements["quantity"])
        max_price = float(requirements["maxPrice"])
        if quantity <= 0:
            raise ValueError("quantity must be positive")
        if max_price <= 0:
            raise ValueError("maxPrice must be positive")

        page = await self.marketplace.get_available_credits(
            {"priceRange": [0, max_price], "limit": quantity * _CANDIDATE_FACTOR}
        )
        candidates = page.get("credits") or []
        scored = [
            {**credit, "score": calculate_credit_score(credit, requirements)}
            for credit in candidates
        ]
        scored.sort(key=lambda c: c["score"], reverse=True)

        result = select_optimal_combination(scored, quantity)
        if result["total_quantity"] < quantity:
            logger.info(
                "Only %d of %d requested credits available under %.2f",
                result["total_quantity"],
                quantity,
                max_price,
            )
        return result


__all__ = [
    "CreditPurchaseOptimizer",
    "calculate_credit_score",
    "select_optimal_combination",
]
