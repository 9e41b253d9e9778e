from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Protocol

from .browser import RecipeDocument, fetch_recipe_document
from .config import Config
from .extract import extract_ingredients, extract_ingredients_from_html
from .llm import TextGenerator
from .match import select_best
from .measure import parse_weight
from .models import CandidateProduct, ShoppingItem
from .normalize import IngredientNormalizer
from .quantity import apply_plan, plan_quantity
from .report import ItemReport

logger = logging.getLogger(__name__)


class StoreSession(Protocol):
    def search(self, term: str) -> list[CandidateProduct]:
        ...

    def buy(self, product: CandidateProduct) -> bool:
        ...

    def increase_quantity(self, product: CandidateProduct) -> bool:
        ...


def recipe_ingredients(
    url: str,
    cfg: Config,
    *,
    fetch: Callable[..., RecipeDocument] = fetch_recipe_document,
) -> list[str]:
    """Ingredients of the recipe at *url*: JSON-LD first, then the HTML heuristics.

    Returns an empty list if the page cannot be fetched or neither parser finds
    anything.
    """
    try:
        doc = fetch(url, timeout_ms=cfg.recipe_timeout_ms)
    except Exception as exc:
        logger.error("Could not fetch recipe %s: %s", url, exc)
        return []

    ingredients = extract_ingredients(doc.json_ld, cfg.excluded_ingredients)
    if ingredients:
        return ingredients

    logger.info("JSON-LD extraction found nothing, trying the HTML fallback parser")
    return extract_ingredients_from_html(doc.html, cfg.excluded_ingredients)


def build_shopping_list(
    cfg: Config,
    normalizer: IngredientNormalizer,
    *,
    recipe_url: str | None = None,
    fetch: Callable[..., RecipeDocument] = fetch_recipe_document,
) -> list[ShoppingItem]:
    raw_items: Sequence[str] = []
    if recipe_url:
        raw_items = recipe_ingredients(recipe_url, cfg, fetch=fetch)
        if not raw_items:
            logger.warning("No ingredients extracted from %s, using the default shopping list", recipe_url)
    if not raw_items:
        raw_items = cfg.shopping_list

    return [normalizer.item(raw) for raw in raw_items]


def _search(store: StoreSession, item: ShoppingItem) -> list[CandidateProduct]:
    candidates = store.search(item.search_term)
    if not candidates and item.search_term.strip().lower() != item.raw.strip().lower():
        logger.info("No results for %r, retrying with %r", item.search_term, item.raw)
        candidates = store.search(item.raw)
    return candidates


def resolve_item(
    item: ShoppingItem,
    store: StoreSession,
    llm: TextGenerator,
    cfg: Config,
    *,
    dry_run: bool = False,
) -> ItemReport:
    """Search, select, buy and top up one shopping item."""
    report = ItemReport(raw=item.raw, search_term=item.search_term)

    try:
        candidates = _search(store, item)
    except Exception as exc:
        logger.error("Search failed for %r: %s", item.search_term, exc)
        report.status = "FAILED"
        return report

    decision = select_best(candidates, item.raw, llm=llm, temperature=cfg.temperature)
    if decision is None:
        report.status = "SKIPPED_NO_MATCH"
        return report

    product = decision.chosen
    report.chosen_title = product.title
    report.chosen_price = product.price
    report.method = decision.method.value

    unit = parse_weight(product.display_volume)
    plan = plan_quantity(unit, parse_weight(item.raw))
    logger.debug(
        "Quantity plan for %s: %d x %sg for %sg",
        product.title, plan.optimal_count, plan.unit_weight_grams, plan.required_weight_grams,
    )

    if dry_run:
        report.quantity = plan.optimal_count
        report.status = "DRY_RUN"
    else:
        try:
            bought = store.buy(product)
        except Exception as exc:
            logger.error("Could not add %s to the cart: %s", product.title, exc)
            bought = False
        if not bought:
            report.status = "FAILED"
            return report

        product.quantity = 1
        try:
            apply_plan(store, product, plan)
        except Exception as exc:
            logger.error("Quantity update failed for %s: %s", product.title, exc)
        report.quantity = product.quantity
        report.status = "ADDED"

    if unit:
        report.total_grams = unit * report.quantity
    return report


def run(
    items: Sequence[ShoppingItem],
    store: StoreSession,
    llm: TextGenerator,
    cfg: Config,
    *,
    dry_run: bool = False,
    delay_s: float = 0.0,
    on_item: Callable[[int, ShoppingItem, ItemReport], None] | None = None,
) -> list[ItemReport]:
    """Resolve *items* strictly one after another."""
    reports: list[ItemReport] = []
    for idx, item in enumerate(items):
        if idx > 0 and delay_s > 0:
            time.sleep(delay_s)
        report = resolve_item(item, store, llm, cfg, dry_run=dry_run)
        reports.append(report)
        if on_item is not None:
            on_item(idx, item, report)
    return reports
