"""Rulim.kz scraper adapter.

Rulim renders search results as a classic table: brand, article and
name in the first three cells, the price in the second-to-last one.
When the search box cannot be found the adapter runs the search
through the site's query-string URL instead.
"""

from typing import List, Optional
from urllib.parse import quote

from bs4 import Tag

from partsfinder.core.exceptions import RowExtractionError
from partsfinder.scrapers.base import BaseSiteAdapter, Listing
from partsfinder.scrapers.utils.browser_manager import SessionProfile
from partsfinder.scrapers.utils.normalizer import (
    ARTICLE_UNKNOWN,
    BRAND_UNKNOWN,
    NAME_UNKNOWN,
    clean_text,
    parse_delivery_days,
    parse_price,
    resolve_image,
    resolve_link,
)
from partsfinder.scrapers.utils.selectors import chain, select_attr


_MIN_CELLS = 4

# Cell text that carries a delivery estimate ("3 дня", "5-7 дн.")
_DELIVERY_HINTS = ("дн", "day")


class RulimAdapter(BaseSiteAdapter):
    """Rulim.kz product search adapter."""

    source_id = "rulim"
    source_name = "Rulim"
    base_url = "https://rulim.kz"

    profile = SessionProfile(locale="ru-RU", timezone_id="Asia/Almaty")

    search_input_chain = chain(
        'input[name="code"]',
        'input[name="search"]',
        "#search_input",
        ".search_input",
        'input[placeholder*="Артикул"]',
        'input[placeholder*="Поиск"]',
        'input[placeholder*="поиск"]',
        timeout_ms=5000,
    )
    results_chain = chain(
        "table.result",
        ".search-results",
        ".goods-table",
        'tr[class*="row"]',
        timeout_ms=5000,
    )
    row_chain = chain('tr[class*="row"]', "table.result tr", ".goods-item")

    max_rows = 20

    navigation_timeout_ms = 45000
    search_input_budget_ms = 20000
    results_timeout_ms = 20000
    settle_delay = (1.0, 2.0)
    typing_delay = (0.3, 0.8)

    def direct_search_url(self, query: str) -> Optional[str]:
        return f"{self.base_url}/?part=search&code={quote(query, safe='')}"

    def parse_row(self, row: Tag) -> Listing:
        """Parse one result table row."""
        cells = self._cells(row)
        if len(cells) < _MIN_CELLS:
            raise RowExtractionError(f"expected at least {_MIN_CELLS} cells, got {len(cells)}")

        texts = [clean_text(cell.get_text(" ", strip=True)) for cell in cells]
        brand, article, name = texts[0], texts[1], texts[2]
        if not (brand or article or name):
            raise RowExtractionError("row has no brand, article or name")

        return Listing(
            image=resolve_image(select_attr(row, chain("img"), "src"), self.base_url),
            brand=brand or BRAND_UNKNOWN,
            article=article or ARTICLE_UNKNOWN,
            name=name or NAME_UNKNOWN,
            price=parse_price(self._price_text(texts)),
            delivery=self._delivery_days(texts[3:]),
            link=resolve_link(select_attr(row, chain("a[href]"), "href"), self.base_url),
        )

    @staticmethod
    def _cells(row: Tag) -> List[Tag]:
        # Table rows own their cells directly; card layouts nest them
        return row.find_all("td", recursive=False) or row.select("td")

    @staticmethod
    def _price_text(texts: List[str]) -> str:
        # Wide rows end with an action cell after the price
        return texts[-2] if len(texts) > _MIN_CELLS else texts[-1]

    @staticmethod
    def _delivery_days(texts: List[str]) -> int:
        for text in texts:
            lowered = text.lower()
            if any(hint in lowered for hint in _DELIVERY_HINTS):
                return parse_delivery_days(text)
        return 0
