from __future__ import annotations

import logging
import math
from typing import Protocol

from .models import CandidateProduct, QuantityPlan

logger = logging.getLogger(__name__)


class QuantityControl(Protocol):
    def increase_quantity(self, product: CandidateProduct) -> bool:
        ...


def plan_quantity(unit_weight_grams: float | None, required_weight_grams: float | None) -> QuantityPlan:
    """Smallest number of units whose combined weight covers the requirement.

    Without a positive weight on both sides one unit is the answer.
    """
    unit = unit_weight_grams or 0.0
    required = required_weight_grams or 0.0
    if unit <= 0 or required <= 0:
        return QuantityPlan(unit_weight_grams=unit, required_weight_grams=required, optimal_count=1)
    count = max(math.ceil(required / unit), 1)
    return QuantityPlan(unit_weight_grams=unit, required_weight_grams=required, optimal_count=count)


def apply_plan(store: QuantityControl, product: CandidateProduct, plan: QuantityPlan) -> int:
    """Ask *store* for ``plan.additional_count`` quantity increases, one at a time.

    ``product.quantity`` is bumped after every request even when the store
    cannot confirm it. Returns the number of requests made.
    """
    clicks = plan.additional_count
    for i in range(clicks):
        logger.debug("Increasing quantity (%d/%d) for %s", i + 1, clicks, product.title)
        if not store.increase_quantity(product):
            logger.warning("Store did not confirm quantity increase for %s", product.title)
        product.quantity += 1
    return clicks
