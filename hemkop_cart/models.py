from __future__ import annotations

import enum
from dataclasses import dataclass


@dataclass(frozen=True)
class ShoppingItem:
    # Ingredient text as written; weight requirements are read from this.
    raw: str

    # Store search query derived from ``raw``.
    search_term: str


@dataclass
class CandidateProduct:
    """A single product result scraped from a store search."""

    title: str
    price: str | None = None           # e.g. "24,90 kr"
    compare_price: str | None = None   # jmf-pris, e.g. "Jmf-pris 146,47 kr/kg"
    display_volume: str | None = None  # e.g. "ca: 170g"
    quantity: int = 0

    # Opaque position in the search result page; only the store session resolves it.
    handle: int = 0


class SelectionMethod(str, enum.Enum):
    DETERMINISTIC_WEIGHT = "deterministic_weight"
    LLM_ARBITRATION = "llm_arbitration"
    FALLBACK_FIRST = "fallback_first"


@dataclass(frozen=True)
class SelectionDecision:
    chosen: CandidateProduct
    method: SelectionMethod
    index: int
    strategy: str | None = None  # name of the reply parser that found the index


@dataclass(frozen=True)
class QuantityPlan:
    unit_weight_grams: float
    required_weight_grams: float
    optimal_count: int

    @property
    def additional_count(self) -> int:
        # One unit is already in the cart after the initial buy.
        return max(self.optimal_count - 1, 0)
