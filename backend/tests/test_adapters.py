"""Tests for the site adapters.

Row parsing is tested against literal HTML fixtures; the search flow
runs against a real BrowserManager whose Chromium handle is a double.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError

from partsfinder.core.exceptions import ElementNotFound, RowExtractionError, SessionError
from partsfinder.scrapers.adapters import EmexAdapter, RulimAdapter, SpartexAdapter
from partsfinder.scrapers.degradation import DIAGNOSTIC_BRAND, DegradationCause
from partsfinder.scrapers.utils.browser_manager import STEALTH_JS, BrowserManager
from partsfinder.scrapers.utils.normalizer import (
    ARTICLE_UNKNOWN,
    BRAND_UNKNOWN,
    PLACEHOLDER_IMAGE,
)
from partsfinder.scrapers.utils.selectors import select_all

from conftest import FakeBrowser, attach_browser, make_handle, make_page


EMEX_INPUT = 'input[name="search"]'
RULIM_INPUT = 'input[name="code"]'

EMEX_RESULTS = """
<html><body><div class="search-results">
  <div class="product-card">
    <div data-test="product-image"><img src="//img.emex.ru/w712.jpg"></div>
    <span data-test="brand">MANN-FILTER</span>
    <span data-test="article">W712/95</span>
    <a data-test="product-name" href="/products/W71295/MANN">Фильтр масляный</a>
    <span data-test="price">1 450,00 ₽</span>
    <span data-test="delivery">2 дня</span>
  </div>
  <div class="product-card">
    <div class="title">Колодки тормозные передние</div>
    <div class="price">3 200 ₽</div>
  </div>
  <div class="product-card">   </div>
</div></body></html>
"""

RULIM_RESULTS = """
<html><body><table class="result">
  <tr class="row-head"><th>Бренд</th><th>Артикул</th><th>Наименование</th><th>Цена</th></tr>
  <tr class="row">
    <td>TOYOTA</td><td>04465-33450</td><td>Колодки тормозные</td>
    <td>3 дня</td><td>18 500 тг</td><td><a href="/cart/add?id=9">В корзину</a></td>
  </tr>
  <tr class="row">
    <td>SAKURA</td><td>C-1821</td><td>Фильтр масляный</td><td>2 100 тг</td>
  </tr>
</table></body></html>
"""

SPARTEX_RESULTS = """
<html><body><table>
  <tr><th>Артикул Наименование Цена</th></tr>
  <tr><td><img src="/img/bosch.jpg"></td><td>BOSCH 0986452041</td>
      <td>Фильтр масляный</td><td>2 350 тг</td><td><a href="item?id=7">Купить</a></td></tr>
  <tr><td>—</td></tr>
</table></body></html>
"""


def _rows(html: str, adapter) -> list:
    return select_all(BeautifulSoup(html, "html.parser"), adapter.row_chain)


# ============================================================================
# TESTS: ROW PARSING
# ============================================================================

class TestEmexParseRow:
    """Tests for Emex product card parsing."""

    def test_full_card(self):
        adapter = EmexAdapter()
        listing = adapter.parse_row(_rows(EMEX_RESULTS, adapter)[0])

        assert listing.brand == "MANN-FILTER"
        assert listing.article == "W712/95"
        assert listing.name == "Фильтр масляный"
        assert listing.price == 1450.0
        assert listing.delivery == 2
        assert listing.image == "https://img.emex.ru/w712.jpg"
        assert listing.link == "https://emex.ru/products/W71295/MANN"

    def test_sparse_card_gets_sentinels(self):
        adapter = EmexAdapter()
        listing = adapter.parse_row(_rows(EMEX_RESULTS, adapter)[1])

        assert listing.brand == BRAND_UNKNOWN
        assert listing.article.startswith("ART-")
        assert listing.name == "Колодки тормозные передние"
        assert listing.price == 3200.0
        assert listing.image == PLACEHOLDER_IMAGE
        assert listing.link == "https://emex.ru"

    def test_lazy_image(self):
        adapter = EmexAdapter()
        row = BeautifulSoup(
            '<div class="product-card"><img data-src="/i/1.jpg"><h3>Свеча</h3></div>',
            "html.parser",
        ).div

        assert adapter.parse_row(row).image == "https://emex.ru/i/1.jpg"

    def test_empty_card_rejected(self):
        adapter = EmexAdapter()
        with pytest.raises(RowExtractionError):
            adapter.parse_row(_rows(EMEX_RESULTS, adapter)[2])

    def test_card_without_product_data_rejected(self):
        row = BeautifulSoup('<div class="product-card"><span>Реклама</span></div>', "html.parser").div
        with pytest.raises(RowExtractionError):
            EmexAdapter().parse_row(row)


class TestRulimParseRow:
    """Tests for Rulim table row parsing."""

    def test_wide_row_price_before_action_cell(self):
        adapter = RulimAdapter()
        listing = adapter.parse_row(_rows(RULIM_RESULTS, adapter)[1])

        assert listing.brand == "TOYOTA"
        assert listing.article == "04465-33450"
        assert listing.name == "Колодки тормозные"
        assert listing.price == 18500.0
        assert listing.delivery == 3
        assert listing.link == "https://rulim.kz/cart/add?id=9"

    def test_four_cell_row_price_in_last_cell(self):
        adapter = RulimAdapter()
        listing = adapter.parse_row(_rows(RULIM_RESULTS, adapter)[2])

        assert listing.price == 2100.0
        assert listing.delivery == 0
        assert listing.link == "https://rulim.kz"

    def test_header_row_rejected(self):
        adapter = RulimAdapter()
        with pytest.raises(RowExtractionError):
            adapter.parse_row(_rows(RULIM_RESULTS, adapter)[0])

    def test_blank_cells_use_sentinels(self):
        row = BeautifulSoup(
            '<table><tr class="row"><td></td><td></td><td>Ремень</td><td>—</td></tr></table>',
            "html.parser",
        ).tr
        listing = RulimAdapter().parse_row(row)

        assert listing.brand == BRAND_UNKNOWN
        assert listing.article == ARTICLE_UNKNOWN
        assert listing.price == 0.0

    def test_direct_search_url_is_encoded(self):
        url = RulimAdapter().direct_search_url("04465 33450/A")

        assert url == "https://rulim.kz/?part=search&code=04465%2033450%2FA"


class TestSpartexParseRow:
    """Tests for Spartex free-text row parsing."""

    def test_priced_row(self):
        adapter = SpartexAdapter()
        listing = adapter.parse_row(_rows(SPARTEX_RESULTS, adapter)[1])

        assert listing.brand == "BOSCH"
        assert listing.article == "0986452041"
        assert listing.price == 2350.0
        assert listing.delivery == 0
        assert listing.image == "https://www.spartex.kz/img/bosch.jpg"
        assert listing.link == "https://www.spartex.kz/front/item?id=7"

    def test_header_without_price_rejected(self):
        adapter = SpartexAdapter()
        with pytest.raises(RowExtractionError):
            adapter.parse_row(_rows(SPARTEX_RESULTS, adapter)[0])

    def test_short_row_rejected(self):
        adapter = SpartexAdapter()
        with pytest.raises(RowExtractionError):
            adapter.parse_row(_rows(SPARTEX_RESULTS, adapter)[2])


# ============================================================================
# TESTS: EXTRACTION AND DEGRADATION
# ============================================================================

class TestExtractListings:
    """Tests for row enumeration and degradation."""

    def test_skipped_rows_counted(self):
        listings, report = RulimAdapter().extract_listings(RULIM_RESULTS)

        assert len(listings) == 2
        assert report.rows_seen == 3
        assert report.rows_skipped == 1
        assert report.degraded is None

    def test_empty_page_degrades_to_single_diagnostic(self):
        listings, report = EmexAdapter().extract_listings("<html><body></body></html>")

        assert len(listings) == 1
        assert listings[0].brand == DIAGNOSTIC_BRAND
        assert listings[0].article == "DEMO-NO_RESULTS"
        assert listings[0].link == "https://emex.ru"
        assert report.degraded is DegradationCause.NO_RESULTS
        assert report.listings == 0

    def test_unparsable_rows_degrade(self):
        html = '<table><tr class="row"><td>only</td></tr><tr class="row"><td>two</td></tr></table>'
        listings, report = RulimAdapter().extract_listings(html)

        assert [l.article for l in listings] == ["DEMO-ROWS_UNPARSED"]
        assert report.rows_skipped == 2

    def test_block_page_detected(self):
        html = "<html><body><h1>Подтвердите, что вы не робот</h1></body></html>"
        listings, report = SpartexAdapter().extract_listings(html)

        assert listings[0].article == "DEMO-BLOCKED"
        assert report.degraded is DegradationCause.BLOCKED

    def test_row_cap(self):
        row = "<tr><td>FEBI 1{0:03d} Свеча зажигания</td><td>1 500 тг</td></tr>"
        html = "<table>" + "".join(row.format(i) for i in range(40)) + "</table>"

        listings, report = SpartexAdapter().extract_listings(html)

        assert len(listings) == SpartexAdapter.max_rows == 30
        assert report.rows_seen == 30


# ============================================================================
# TESTS: SEARCH FLOW
# ============================================================================

def _manager(*pages) -> BrowserManager:
    return attach_browser(
        BrowserManager(headless=True, block_resources=True, extra_args=[]),
        FakeBrowser(*pages),
    )


class TestSearchFlow:
    """Tests for BaseSiteAdapter.search against mocked Playwright."""

    async def test_emex_search_happy_path(self):
        search_box = make_handle()
        page = make_page(
            html=EMEX_RESULTS,
            present={EMEX_INPUT: search_box, ".product-card": make_handle()},
        )
        manager = _manager(page)
        adapter = EmexAdapter()
        await adapter.init(manager)

        listings = await adapter.search("W712/95")

        assert [l.brand for l in listings] == ["MANN-FILTER", BRAND_UNKNOWN]
        page.goto.assert_awaited_once_with(
            "https://emex.ru", wait_until="domcontentloaded", timeout=EmexAdapter.navigation_timeout_ms
        )
        search_box.fill.assert_awaited_once_with("W712/95")
        search_box.press.assert_awaited_once_with("Enter")

        context = manager._browser.contexts[0]
        context.add_init_script.assert_awaited_once_with(STEALTH_JS)
        context.route.assert_awaited_once()
        assert context.options["locale"] == "ru-RU"
        assert context.options["timezone_id"] == "Europe/Moscow"
        context.close.assert_awaited_once()
        page.close.assert_awaited_once()
        assert manager.active_sessions == 0
        assert adapter.last_report.listings == 2

    async def test_each_call_returns_fresh_list(self):
        page = make_page(html=RULIM_RESULTS, present={RULIM_INPUT: make_handle()})
        adapter = RulimAdapter()
        await adapter.init(_manager(page))

        first = await adapter.search("C-1821")
        second = await adapter.search("C-1821")

        assert first == second
        assert first is not second

    async def test_empty_results_page_yields_one_diagnostic(self):
        page = make_page(present={EMEX_INPUT: make_handle()})
        adapter = EmexAdapter()
        manager = _manager(page)
        await adapter.init(manager)

        listings = await adapter.search("нет такого")

        assert len(listings) == 1
        assert listings[0].brand == DIAGNOSTIC_BRAND
        manager._browser.contexts[0].close.assert_awaited_once()
        page.close.assert_awaited_once()
        assert manager.active_sessions == 0

    async def test_last_report_tracks_latest_completed_search(self):
        page_a = make_page(html=RULIM_RESULTS, present={RULIM_INPUT: make_handle()})
        page_b = make_page(present={RULIM_INPUT: make_handle()})
        adapter = RulimAdapter()
        await adapter.init(_manager(page_a, page_b))

        await adapter.search("C-1821")
        assert adapter.last_report.listings == 2

        await adapter.search("нет такого")
        assert adapter.last_report.degraded is DegradationCause.NO_RESULTS
        assert adapter.last_report.rows_seen == 0

    async def test_missing_search_input_raises_and_releases_session(self):
        page = make_page(html=EMEX_RESULTS)
        manager = _manager(page)
        adapter = EmexAdapter()
        await adapter.init(manager)

        with pytest.raises(ElementNotFound) as exc_info:
            await adapter.search("W712")

        assert exc_info.value.source == "emex"
        manager._browser.contexts[0].close.assert_awaited_once()
        assert manager.active_sessions == 0

    async def test_rulim_falls_back_to_direct_url(self):
        page = make_page(html=RULIM_RESULTS)
        adapter = RulimAdapter()
        await adapter.init(_manager(page))

        listings = await adapter.search("04465 33450")

        assert len(listings) == 2
        urls = [call.args[0] for call in page.goto.await_args_list]
        assert urls == ["https://rulim.kz", "https://rulim.kz/?part=search&code=04465%2033450"]

    async def test_results_surface_timeout_is_absorbed(self):
        page = make_page(html=RULIM_RESULTS, present={RULIM_INPUT: make_handle()})
        adapter = RulimAdapter()
        await adapter.init(_manager(page))

        listings = await adapter.search("C-1821")

        assert len(listings) == 2
        assert adapter.last_report.degraded is None

    async def test_spartex_uses_visible_input_and_kz_profile(self):
        hidden = make_handle(visible=False)
        shown = make_handle(visible=True)
        page = make_page(html=SPARTEX_RESULTS, present={"header input": shown, "input": hidden})
        manager = _manager(page)
        adapter = SpartexAdapter()
        await adapter.init(manager)

        listings = await adapter.search("0986452041")

        shown.fill.assert_awaited_once_with("0986452041")
        hidden.fill.assert_not_awaited()
        assert listings[0].brand == "BOSCH"
        context = manager._browser.contexts[0]
        assert context.options["timezone_id"] == "Asia/Almaty"
        context.add_init_script.assert_not_awaited()

    async def test_navigation_failure_is_session_error(self):
        page = make_page()
        page.goto = AsyncMock(side_effect=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        manager = _manager(page)
        adapter = RulimAdapter()
        await adapter.init(manager)

        with pytest.raises(SessionError):
            await adapter.search("C-1821")

        assert page.goto.await_count >= 1
        assert manager.active_sessions == 0

    async def test_context_creation_failure_is_session_error(self):
        manager = _manager(make_page())
        manager._browser.new_context = AsyncMock(side_effect=PlaywrightError("Target closed"))
        adapter = EmexAdapter()
        await adapter.init(manager)

        with pytest.raises(SessionError):
            await adapter.search("W712")

        assert manager.active_sessions == 0

    async def test_search_before_init_is_session_error(self):
        with pytest.raises(SessionError):
            await EmexAdapter().search("W712")

    async def test_disconnected_driver_is_session_error(self):
        manager = _manager(make_page())
        manager._browser.connected = False
        adapter = RulimAdapter()
        await adapter.init(manager)

        with pytest.raises(SessionError):
            await adapter.search("C-1821")

    async def test_concurrent_searches_get_distinct_sessions(self):
        page_a = make_page(html=RULIM_RESULTS, present={RULIM_INPUT: make_handle()})
        page_b = make_page(html=RULIM_RESULTS, present={RULIM_INPUT: make_handle()})
        manager = _manager(page_a, page_b)
        adapter = RulimAdapter()
        await adapter.init(manager)

        results = await asyncio.gather(adapter.search("C-1821"), adapter.search("04465"))

        assert all(len(r) == 2 for r in results)
        contexts = manager._browser.contexts
        assert len(contexts) == 2
        assert contexts[0] is not contexts[1]
        assert all(c.close.await_count == 1 for c in contexts)
        assert manager.active_sessions == 0


# ============================================================================
# TESTS: LIFECYCLE
# ============================================================================

class TestAdapterLifecycle:
    """Tests for shared and private driver modes."""

    async def test_shared_driver_not_stopped_on_close(self):
        driver = MagicMock()
        driver.stop = AsyncMock()
        adapter = EmexAdapter()

        await adapter.init(driver)
        await adapter.close()

        assert adapter.owns_driver is False
        assert adapter.driver is driver
        driver.stop.assert_not_awaited()

    async def test_private_driver_started_and_stopped(self, monkeypatch):
        private = MagicMock()
        private.start = AsyncMock()
        private.stop = AsyncMock()
        monkeypatch.setattr("partsfinder.scrapers.base.BrowserManager", lambda: private)
        adapter = EmexAdapter()

        await adapter.init()
        assert adapter.owns_driver is True
        private.start.assert_awaited_once()

        await adapter.close()
        await adapter.close()

        private.stop.assert_awaited_once()
        assert adapter.driver is None

    async def test_reinit_with_shared_releases_private(self, monkeypatch):
        private = MagicMock()
        private.start = AsyncMock()
        private.stop = AsyncMock()
        monkeypatch.setattr("partsfinder.scrapers.base.BrowserManager", lambda: private)
        shared = MagicMock()
        adapter = RulimAdapter()

        await adapter.init()
        await adapter.init(shared)

        private.stop.assert_awaited_once()
        assert adapter.driver is shared
        assert adapter.owns_driver is False

    async def test_private_driver_launch_failure_releases_playwright(self, monkeypatch):
        playwright_driver = MagicMock()
        playwright_driver.stop = AsyncMock()
        starter = MagicMock()
        starter.start = AsyncMock(return_value=playwright_driver)
        monkeypatch.setattr(
            "partsfinder.scrapers.utils.browser_manager.async_playwright", lambda: starter
        )
        monkeypatch.setattr(
            BrowserManager,
            "_launch",
            AsyncMock(side_effect=PlaywrightError("Executable doesn't exist")),
        )
        adapter = EmexAdapter()

        with pytest.raises(SessionError):
            await adapter.init()

        playwright_driver.stop.assert_awaited_once()
        assert adapter.driver is None
        assert adapter.owns_driver is False
