"""Spartex.kz scraper adapter.

Spartex results have no dependable cell structure, so each row's text
is split heuristically (see ``utils.row_text``). Rows without a
recognisable price are treated as headers or notices and skipped.
"""

from bs4 import Tag

from partsfinder.core.exceptions import RowExtractionError
from partsfinder.scrapers.base import BaseSiteAdapter, Listing
from partsfinder.scrapers.utils.browser_manager import SessionProfile
from partsfinder.scrapers.utils.normalizer import resolve_image, resolve_link
from partsfinder.scrapers.utils.row_text import split_row_text
from partsfinder.scrapers.utils.selectors import chain, select_attr


_MIN_ROW_TEXT = 10


class SpartexAdapter(BaseSiteAdapter):
    """Spartex.kz product search adapter."""

    source_id = "spartex"
    source_name = "Spartex"
    base_url = "https://www.spartex.kz/front/"

    profile = SessionProfile(locale="ru-RU", timezone_id="Asia/Almaty")

    # Spartex renders several hidden inputs (login, callback forms)
    search_input_chain = chain(
        'input[placeholder*="ртикул"]',
        'input[placeholder*="Article"]',
        "#search-input",
        ".search-field input",
        'input[type="search"]',
        "header input",
        "input",
        timeout_ms=3000,
        visible=True,
    )
    results_chain = chain(".products-list", ".list-view", "table", timeout_ms=5000)
    row_chain = chain(".product-item", "tr")

    max_rows = 30

    navigation_timeout_ms = 45000
    results_timeout_ms = 20000
    settle_delay = (2.0, 2.5)
    typing_delay = (0.3, 0.8)
    results_settle_delay = (2.0, 2.5)

    def parse_row(self, row: Tag) -> Listing:
        """Parse one row from its free text."""
        text = row.get_text(" ", strip=True)
        if len(text) < _MIN_ROW_TEXT:
            raise RowExtractionError("row text too short")

        fields = split_row_text(text)
        if fields.price <= 0:
            raise RowExtractionError("no price in row text")

        return Listing(
            image=resolve_image(select_attr(row, chain("img"), "src"), self.base_url),
            brand=fields.brand,
            article=fields.article,
            name=fields.name,
            price=fields.price,
            delivery=0,
            link=resolve_link(select_attr(row, chain("a[href]"), "href"), self.base_url),
        )
