from __future__ import annotations

import logging
import re
from pathlib import Path

from playwright.sync_api import sync_playwright, Page, Browser, Playwright

from .models import CandidateProduct

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.hemkop.se/"

SEARCH_BAR = '[data-testid="product-search"]'
PRODUCT_CONTAINER = 'div[data-testid="product-container"]'
PRODUCT_TITLE = '[data-testid="product-title"]'
PRICE_TEXT = '[data-testid="price-text"]'
COMPARE_PRICE = '[data-testid="compare-price"]'
DISPLAY_VOLUME = '[data-testid="display-volume"]'
BUY_BUTTON = 'button:has-text("Köp")'
PLUS_BUTTON = 'button[data-testid="plus-button"], button[aria-label="Öka antal"]'

COOKIE_SELECTORS = [
    "#onetrust-reject-all-handler",
    '[data-testid="consent-accept-cookies"]',
]

COOKIE_POLL_INTERVAL_MS = 1000
COOKIE_TIMEOUT_MS = 15_000


class HemkopSession:
    """One browser window on hemkop.se for an entire shopping run.

    Usage::

        with HemkopSession() as store:
            products = store.search("bananer")
            store.buy(products[0])
            store.increase_quantity(products[0])

    Products returned by :meth:`search` refer to their card by position
    (``CandidateProduct.handle``), so they are only valid until the next search.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        headless: bool = False,
        slow_mo_ms: int = 50,
        screenshot_dir: str | None = None,
    ):
        self.base_url = base_url
        self.headless = headless
        self.slow_mo_ms = slow_mo_ms
        self.screenshot_dir = screenshot_dir
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self.page: Page | None = None

    def __enter__(self) -> "HemkopSession":
        self._pw = sync_playwright().start()
        self._browser = self._pw.chromium.launch(headless=self.headless, slow_mo=self.slow_mo_ms)
        self.page = self._browser.new_context().new_page()
        self.page.goto(self.base_url, wait_until="domcontentloaded", timeout=30_000)
        _dismiss_cookie_dialog(self.page)
        return self

    def __exit__(self, *exc):
        try:
            if self._browser:
                self._browser.close()
        finally:
            if self._pw:
                self._pw.stop()
        self._pw = None
        self._browser = None
        self.page = None

    def _require_page(self) -> Page:
        if self.page is None:
            raise RuntimeError("HemkopSession is not open; use it as a context manager")
        return self.page

    def search(self, term: str, *, limit: int = 0) -> list[CandidateProduct]:
        """Search hemkop.se for *term* and scrape the result cards."""
        page = self._require_page()

        search_bar = page.wait_for_selector(SEARCH_BAR, timeout=5_000)
        if search_bar is None:
            raise RuntimeError("Hemköp search bar not found")
        search_bar.click()
        search_bar.fill("")
        search_bar.type(term)
        search_bar.press("Enter")

        page.wait_for_url(re.compile(r".*sok.*"), timeout=15_000)
        page.wait_for_load_state("domcontentloaded")
        page.wait_for_timeout(2000)

        if self.screenshot_dir:
            out = Path(self.screenshot_dir) / (re.sub(r"\s+", "-", term) + "-search-results.png")
            out.parent.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=str(out))

        products: list[CandidateProduct] = []
        for handle, card in enumerate(page.query_selector_all(PRODUCT_CONTAINER)):
            if limit and len(products) >= limit:
                break
            parsed = _parse_product_card(card, handle)
            if parsed is not None:
                products.append(parsed)

        logger.debug("Found %d products for %r", len(products), term)
        return products

    def _card(self, product: CandidateProduct):
        return self._require_page().locator(PRODUCT_CONTAINER).nth(product.handle)

    def buy(self, product: CandidateProduct) -> bool:
        """Click "Köp" on the product's card. Returns False when there is no button."""
        card = self._card(product)
        button = card.locator(BUY_BUTTON)
        if button.count() == 0:
            logger.warning("Buy button not found for %s", product.title)
            return False
        button.first.click()
        self._require_page().wait_for_timeout(1000)
        return True

    def increase_quantity(self, product: CandidateProduct) -> bool:
        card = self._card(product)
        plus = card.locator(PLUS_BUTTON)
        if plus.count() == 0:
            logger.debug("Plus button not found for %s", product.title)
            return False
        plus.first.click()
        self._require_page().wait_for_timeout(500)
        return True


def _dismiss_cookie_dialog(page: Page) -> bool:
    """Poll for the cookie dialog and reject it. Returns True if it was handled."""
    elapsed = 0
    while elapsed < COOKIE_TIMEOUT_MS:
        for sel in COOKIE_SELECTORS:
            btn = page.query_selector(sel)
            if btn and btn.is_visible():
                page.wait_for_timeout(500)
                btn.click()
                logger.debug("Dismissed cookie dialog via %s", sel)
                return True
        page.wait_for_timeout(COOKIE_POLL_INTERVAL_MS)
        elapsed += COOKIE_POLL_INTERVAL_MS
    logger.debug("Cookie dialog not found, continuing")
    return False


def _text(card, selector: str) -> str | None:
    el = card.query_selector(selector)
    if el is None:
        return None
    txt = (el.inner_text() or "").strip()
    return txt or None


def _parse_product_card(card, handle: int) -> CandidateProduct | None:
    """Extract structured data from a single Hemköp product card."""
    title = _text(card, PRODUCT_TITLE)
    if not title:
        return None
    return CandidateProduct(
        title=title,
        price=_text(card, PRICE_TEXT),
        compare_price=_text(card, COMPARE_PRICE),
        display_volume=_text(card, DISPLAY_VOLUME),
        handle=handle,
    )
