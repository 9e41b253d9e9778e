from __future__ import annotations

import logging

from .llm import LlmError, TextGenerator
from .models import ShoppingItem

logger = logging.getLogger(__name__)

NORMALIZE_PROMPT = """Convert this recipe ingredient into the simplest search term for a grocery store.

Ingredient: {ingredient}

Rules:
- Remove quantities, units and preparation words (chopped, grated, melted, ...).
- Keep the base product only, in the same language as the ingredient.
- Example: "4 egg yolks" -> egg
- Example: "2 dl finhackad gul lök" -> gul lök

Reply with ONLY the search term, nothing else."""


class IngredientNormalizer:
    def __init__(self, llm: TextGenerator, *, temperature: float = 0.1):
        self.llm = llm
        self.temperature = temperature

    def normalize(self, raw: str) -> str:
        """Return a store search term for *raw*, or *raw* itself if the LLM fails."""
        try:
            reply = self.llm.generate(
                NORMALIZE_PROMPT.format(ingredient=raw),
                temperature=self.temperature,
            )
        except LlmError as exc:
            logger.warning("Normalization failed for %r, using it verbatim: %s", raw, exc)
            return raw

        term = reply.strip()
        if not term:
            logger.warning("Empty normalization reply for %r, using it verbatim", raw)
            return raw

        logger.info("Normalized %r -> %r", raw, term)
        return term

    def item(self, raw: str) -> ShoppingItem:
        return ShoppingItem(raw=raw, search_term=self.normalize(raw))
