from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from playwright.sync_api import sync_playwright

from .extract import parse_json_ld

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecipeDocument:
    url: str
    html: str
    json_ld: list[dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def from_html(url: str, html: str) -> "RecipeDocument":
        return RecipeDocument(url=url, html=html, json_ld=parse_json_ld(html))


def fetch_recipe_document(url: str, *, timeout_ms: int = 60_000) -> RecipeDocument:
    """Render *url* in a headless browser and return its HTML and JSON-LD.

    Many recipe sites inject their structured data with JavaScript, so the
    page is loaded until the network is idle instead of fetched raw.
    """
    logger.debug("Fetching recipe page %s", url)
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=True)
        try:
            page = browser.new_context().new_page()
            page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            html = page.content()
        finally:
            browser.close()

    doc = RecipeDocument.from_html(url, html)
    logger.debug("Found %d JSON-LD blocks on %s", len(doc.json_ld), url)
    return doc
