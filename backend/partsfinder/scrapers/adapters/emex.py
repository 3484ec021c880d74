"""Emex.ru scraper adapter.

Searches emex.ru through its header search box and parses the product
cards of the results page. Emex runs the most aggressive bot checks of
the supported shops, so sessions get the stealth init script, a Moscow
locale and the longest human-pacing delays.
"""

import time
from typing import Optional

from bs4 import Tag

from partsfinder.core.exceptions import RowExtractionError
from partsfinder.scrapers.base import BaseSiteAdapter, Listing
from partsfinder.scrapers.utils.browser_manager import SessionProfile
from partsfinder.scrapers.utils.normalizer import (
    BRAND_UNKNOWN,
    NAME_UNKNOWN,
    parse_delivery_days,
    parse_price,
    resolve_image,
    resolve_link,
)
from partsfinder.scrapers.utils.selectors import chain, select_attr, select_text


_SEARCH_INPUT = chain(
    'input[name="search"]',
    'input[placeholder*="Найти"]',
    "#search-input",
    "input.header-search__input",
    ".search-input input",
    'input[type="search"]',
    timeout_ms=3000,
)

_CARDS = (
    '[data-test="product-card"]',
    ".search-result__item",
    ".product-card",
    ".goods-item",
    ".detail-item",
    ".catalog-item",
)

_IMAGE = chain('[data-test="product-image"] img', '[data-test="product-image"]', ".product-image img", "img")
_BRAND = chain('[data-test="brand"]', ".product-brand", ".brand-name", ".manufacturer")
_ARTICLE = chain('[data-test="article"]', ".product-article", ".article", ".part-number")
_NAME = chain(
    '[data-test="product-name"]', ".product-name", ".product-title", ".title", "h3", "h4"
)
_PRICE = chain('[data-test="price"]', ".product-price", ".price", ".cost")
_DELIVERY = chain('[data-test="delivery"]', ".delivery-time", ".delivery", ".shipping")
_LINK = chain("a[href]")


class EmexAdapter(BaseSiteAdapter):
    """Emex.ru product search adapter."""

    source_id = "emex"
    source_name = "Emex"
    base_url = "https://emex.ru"

    profile = SessionProfile(
        locale="ru-RU",
        timezone_id="Europe/Moscow",
        stealth=True,
    )

    search_input_chain = _SEARCH_INPUT
    results_chain = chain(*_CARDS, timeout_ms=3000)
    row_chain = chain(*_CARDS)

    max_rows = 20

    navigation_timeout_ms = 30000
    results_timeout_ms = 20000
    settle_delay = (2.0, 3.0)
    typing_delay = (0.5, 1.0)
    results_settle_delay = (2.0, 4.0)

    def parse_row(self, row: Tag) -> Listing:
        """Parse one Emex product card."""
        if not row.get_text(strip=True):
            raise RowExtractionError("empty card")

        name = select_text(row, _NAME)
        article = select_text(row, _ARTICLE)
        price = parse_price(select_text(row, _PRICE))
        if not name and not article and price <= 0:
            raise RowExtractionError("card has no name, article or price")

        return Listing(
            image=resolve_image(self._image_src(row), self.base_url),
            brand=select_text(row, _BRAND) or BRAND_UNKNOWN,
            article=article or self._synthetic_article(),
            name=name or NAME_UNKNOWN,
            price=price,
            delivery=parse_delivery_days(select_text(row, _DELIVERY)),
            link=resolve_link(select_attr(row, _LINK, "href"), self.base_url),
        )

    @staticmethod
    def _image_src(row: Tag) -> Optional[str]:
        # Lazy-loaded cards keep the real URL in data-src
        return select_attr(row, _IMAGE, "src") or select_attr(row, _IMAGE, "data-src")

    @staticmethod
    def _synthetic_article() -> str:
        """Timestamp-based article for cards that do not show one."""
        return f"ART-{int(time.time() * 1000)}"
