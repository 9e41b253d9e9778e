from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

RECIPE_TYPE = "Recipe"

# Primary schema.org field first; some sites use the older name.
INGREDIENT_FIELDS = ("recipeIngredient", "ingredients")


def parse_json_ld(html: str) -> list[dict[str, Any]]:
    """Collect every JSON-LD object embedded in *html*.

    Top-level arrays are flattened. Blocks that are not valid JSON are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    blocks: list[dict[str, Any]] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw_json = script.string or script.get_text()
        if not raw_json or not raw_json.strip():
            continue
        try:
            data = json.loads(raw_json)
        except json.JSONDecodeError:
            logger.debug("Skipping JSON-LD block that does not decode")
            continue
        if isinstance(data, list):
            blocks.extend(d for d in data if isinstance(d, dict))
        elif isinstance(data, dict):
            blocks.append(data)
    return blocks


def _is_recipe(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    t = obj.get("@type")
    if isinstance(t, list):
        return RECIPE_TYPE in t
    return t == RECIPE_TYPE


def find_recipe(blocks: Sequence[dict[str, Any]]) -> dict[str, Any] | None:
    for block in blocks:
        if _is_recipe(block):
            return block

    # One level deeper: a Recipe stored under some property of a block,
    # either directly or as a member of a list such as "@graph".
    for block in blocks:
        if not isinstance(block, dict):
            continue
        for value in block.values():
            if _is_recipe(value):
                return value
            if isinstance(value, list):
                for member in value:
                    if _is_recipe(member):
                        return member
    return None


def recipe_ingredients(recipe: dict[str, Any]) -> list[str]:
    for field in INGREDIENT_FIELDS:
        value = recipe.get(field)
        if isinstance(value, list):
            return [v for v in value if isinstance(v, str)]
    return []


def is_excluded(ingredient: str, exclusions: Iterable[str]) -> bool:
    low = ingredient.lower()
    return any(ex and ex.lower() in low for ex in exclusions)


def filter_ingredients(ingredients: Iterable[str], exclusions: Iterable[str]) -> list[str]:
    exclusions = list(exclusions)
    out: list[str] = []
    for ing in ingredients:
        ing = ing.strip()
        if not ing:
            continue
        if is_excluded(ing, exclusions):
            logger.debug("Excluding ingredient: %s", ing)
            continue
        out.append(ing)
    return out


def extract_ingredients(blocks: Sequence[dict[str, Any]], exclusions: Iterable[str] = ()) -> list[str]:
    """Return the filtered ingredient list of the first Recipe in *blocks*.

    An empty list means nothing usable was found; callers fall back to
    :func:`extract_ingredients_from_html` or a default shopping list.
    """
    recipe = find_recipe(blocks)
    if recipe is None:
        logger.info("No Recipe type found in %d JSON-LD blocks", len(blocks))
        return []

    ingredients = recipe_ingredients(recipe)
    if not ingredients:
        logger.info("Recipe JSON-LD has no ingredient list")
        return []

    filtered = filter_ingredients(ingredients, exclusions)
    logger.info("Extracted %d ingredients from JSON-LD", len(filtered))
    return filtered


_INGREDIENT_HINT_RE = re.compile(r"ingredient", re.IGNORECASE)
_HEADING_HINT_RE = re.compile(r"ingredien", re.IGNORECASE)


def _attr_text(tag, name: str) -> str:
    val = tag.get(name)
    if isinstance(val, list):
        return " ".join(val)
    return val or ""


def extract_ingredients_from_html(html: str, exclusions: Iterable[str] = ()) -> list[str]:
    """Heuristic fallback for pages without Recipe markup.

    Tries, in order: microdata ``itemprop="recipeIngredient"`` elements, list
    items inside containers whose class/id mentions "ingredient", and list
    items following an "Ingredienser"/"Ingredients" heading.
    """
    soup = BeautifulSoup(html, "html.parser")
    items: list[str] = []

    for el in soup.select('[itemprop="recipeIngredient"], [itemprop="ingredients"]'):
        txt = el.get_text(" ", strip=True)
        if txt:
            items.append(txt)

    if not items:
        for container in soup.find_all(["section", "div", "ul", "ol"]):
            hint = _attr_text(container, "class") + " " + _attr_text(container, "id")
            if not _INGREDIENT_HINT_RE.search(hint):
                continue
            for li in container.find_all("li"):
                txt = li.get_text(" ", strip=True)
                if txt:
                    items.append(txt)
            if items:
                break

    if not items:
        header = None
        for h in soup.find_all(["h2", "h3", "h4"]):
            if _HEADING_HINT_RE.search(h.get_text()):
                header = h
                break
        if header is not None:
            for el in header.find_all_next(["li", "h2", "h3", "h4"]):
                if el.name != "li":
                    break
                txt = el.get_text(" ", strip=True)
                if txt:
                    items.append(txt)

    seen: set[str] = set()
    unique: list[str] = []
    for it in items:
        key = re.sub(r"\s+", " ", it).lower()
        if key in seen:
            continue
        seen.add(key)
        unique.append(re.sub(r"\s+", " ", it))

    filtered = filter_ingredients(unique, exclusions)
    logger.info("Extracted %d ingredients with the HTML fallback parser", len(filtered))
    return filtered
