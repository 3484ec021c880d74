"""Base site adapter.

Every shop-specific adapter inherits from BaseSiteAdapter and supplies
its selector chains, session profile and a ``parse_row()``
implementation. The search flow itself (session, navigation, query
submission, results wait, row enumeration, degradation) lives here so
that all adapters behave identically at the seams.
"""

import asyncio
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

import structlog
from bs4 import BeautifulSoup, Tag
from playwright.async_api import Error as PlaywrightError, Page

from partsfinder.core.exceptions import (
    ElementNotFound,
    ResultsSurfaceTimeout,
    RowExtractionError,
    SelectorBudgetExceeded,
    SessionError,
)
from partsfinder.scrapers.degradation import (
    DegradationCause,
    diagnostic_listing,
    looks_blocked,
)
from partsfinder.scrapers.listing import Availability, Listing
from partsfinder.scrapers.utils.browser_manager import BrowserManager, SessionProfile
from partsfinder.scrapers.utils.retry import navigation_retry
from partsfinder.scrapers.utils.selectors import (
    SelectorCandidate,
    resolve_first,
    select_all,
    wait_for_any,
)

logger = structlog.get_logger()

__all__ = [
    "Availability",
    "BaseSiteAdapter",
    "ExtractionReport",
    "Listing",
    "human_delay",
]


async def human_delay(min_seconds: float, max_seconds: float) -> None:
    """Sleep for a random interval to emulate human pacing."""
    if max_seconds <= 0:
        return
    await asyncio.sleep(random.uniform(min_seconds, max_seconds))


@dataclass(frozen=True)
class ExtractionReport:
    """Row-level outcome of one search call."""

    source: str
    rows_seen: int
    rows_skipped: int
    listings: int
    degraded: Optional[DegradationCause] = None


class BaseSiteAdapter(ABC):
    """Abstract base class for all site adapters.

    Lifecycle: ``init()`` binds a browser (shared or private),
    ``search()`` may then be called any number of times, concurrently,
    and ``close()`` releases a private browser.
    """

    source_id: str = ""  # Must be overridden in subclass (e.g., "emex")
    source_name: str = ""  # Human-readable name (e.g., "Emex")
    base_url: str = ""

    profile: SessionProfile = SessionProfile()

    # Selector chains, most stable first
    search_input_chain: Tuple[SelectorCandidate, ...] = ()
    results_chain: Tuple[SelectorCandidate, ...] = ()
    row_chain: Tuple[SelectorCandidate, ...] = ()

    max_rows: int = 20

    # Timeouts (ms) and pacing (seconds)
    navigation_timeout_ms: int = 45000
    search_input_budget_ms: Optional[int] = None
    results_timeout_ms: int = 20000
    settle_delay: Tuple[float, float] = (1.0, 2.0)
    typing_delay: Tuple[float, float] = (0.5, 1.0)
    results_settle_delay: Tuple[float, float] = (0.0, 0.0)

    def __init__(self):
        """Initialize the adapter; no browser is bound until init()."""
        self._driver: Optional[BrowserManager] = None
        self._owns_driver = False
        # Report of the most recently completed search; concurrent calls overwrite it
        self.last_report: Optional[ExtractionReport] = None
        self.logger = logger.bind(adapter=self.source_id)

    @property
    def owns_driver(self) -> bool:
        return self._owns_driver

    @property
    def driver(self) -> Optional[BrowserManager]:
        return self._driver

    async def init(self, driver: Optional[BrowserManager] = None) -> None:
        """Bind the adapter to a browser.

        Args:
            driver: Shared, externally owned browser. When omitted the
                adapter launches its own browser and stops it in close().

        Raises:
            SessionError: If a private browser could not be launched
        """
        if self._owns_driver:
            await self.close()

        if driver is not None:
            self._driver = driver
            self._owns_driver = False
            self.logger.info("adapter_initialized", mode="shared")
            return

        private = BrowserManager()
        await private.start()
        self._driver = private
        self._owns_driver = True
        self.logger.info("adapter_initialized", mode="private")

    async def close(self) -> None:
        """Release a privately owned browser. No-op for a shared one."""
        if not self._owns_driver:
            return
        driver, self._driver = self._driver, None
        self._owns_driver = False
        if driver is not None:
            await driver.stop()
            self.logger.info("private_browser_closed")

    async def search(self, query: str) -> List[Listing]:
        """Run one search and return normalized listings.

        Always returns at least one listing: real results, or a single
        diagnostic placeholder when nothing could be extracted.

        Args:
            query: Opaque free-text search query

        Returns:
            List of Listing objects (never empty)

        Raises:
            ElementNotFound: If the search input never resolved and the
                adapter has no direct search URL
            SessionError: If the browser is unavailable, the session
                could not be created, or navigation failed entirely
        """
        driver = self._driver
        if driver is None:
            raise SessionError(self.source_id, "adapter is not initialized")
        if not driver.is_connected:
            raise SessionError(self.source_id, "browser is disconnected")

        self.logger.info("search_started", query=query)

        async with driver.session(self.profile, owner=self.source_id) as page:
            await self._navigate(page, self.base_url)
            await self._submit_query(page, query)
            try:
                await self._await_results_surface(page)
            except ResultsSurfaceTimeout as e:
                self.logger.warning("results_surface_timeout", reason=e.message)
            await human_delay(*self.results_settle_delay)
            html = await self._page_html(page)

        listings, report = self.extract_listings(html)
        self.last_report = report
        self.logger.info(
            "search_finished",
            rows_seen=report.rows_seen,
            rows_skipped=report.rows_skipped,
            listings=report.listings,
            degraded=report.degraded.value if report.degraded else None,
            query=query,
        )
        return listings

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _navigate(self, page: Page, url: str) -> None:
        try:
            await self._goto(page, url)
        except PlaywrightError as e:
            raise SessionError(self.source_id, f"navigation to {url} failed: {e}") from e
        await human_delay(*self.settle_delay)

    @navigation_retry
    async def _goto(self, page: Page, url: str) -> None:
        # networkidle never settles on these storefronts
        await page.goto(url, wait_until="domcontentloaded", timeout=self.navigation_timeout_ms)

    async def _submit_query(self, page: Page, query: str) -> None:
        try:
            search_input = await resolve_first(
                page, self.search_input_chain, budget_ms=self.search_input_budget_ms
            )
        except SelectorBudgetExceeded as e:
            self.logger.warning("search_input_budget_exceeded", reason=e.message)
            search_input = None

        if search_input is None:
            fallback_url = self.direct_search_url(query)
            if fallback_url is None:
                raise ElementNotFound(self.source_id, "search input")
            self.logger.info("search_input_missing_using_url", url=fallback_url)
            await self._navigate(page, fallback_url)
            return

        try:
            await search_input.fill(query)
            await human_delay(*self.typing_delay)
            await search_input.press("Enter")
        except PlaywrightError as e:
            raise SessionError(self.source_id, f"could not submit query: {e}") from e
        self.logger.debug("query_submitted")

    async def _await_results_surface(self, page: Page) -> str:
        try:
            matched = await wait_for_any(
                page, self.results_chain, budget_ms=self.results_timeout_ms
            )
        except SelectorBudgetExceeded as e:
            raise ResultsSurfaceTimeout(e.message) from e
        if matched is None:
            raise ResultsSurfaceTimeout("no results container matched")
        self.logger.debug("results_surface_found", selector=matched)
        return matched

    async def _page_html(self, page: Page) -> str:
        try:
            return await page.content()
        except PlaywrightError as e:
            raise SessionError(self.source_id, f"could not read page content: {e}") from e

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def extract_listings(self, html: str) -> Tuple[List[Listing], ExtractionReport]:
        """Parse rendered HTML into listings, degrading when none survive.

        Args:
            html: Rendered page HTML

        Returns:
            Tuple of (listings, report); listings is never empty
        """
        soup = BeautifulSoup(html or "", "html.parser")
        rows = select_all(soup, self.row_chain)[: self.max_rows]

        listings: List[Listing] = []
        skipped = 0
        for index, row in enumerate(rows):
            try:
                listings.append(self.parse_row(row))
            except (RowExtractionError, ValueError) as e:
                skipped += 1
                self.logger.debug("row_skipped", index=index, reason=str(e))

        cause: Optional[DegradationCause] = None
        if not listings:
            if rows:
                cause = DegradationCause.ROWS_UNPARSED
            elif looks_blocked(html):
                cause = DegradationCause.BLOCKED
            else:
                cause = DegradationCause.NO_RESULTS
            self.logger.warning("search_degraded", cause=cause.value, rows=len(rows))
            listings = [self.diagnostic(cause)]

        report = ExtractionReport(
            source=self.source_id,
            rows_seen=len(rows),
            rows_skipped=skipped,
            listings=len(listings) if cause is None else 0,
            degraded=cause,
        )
        return listings, report

    def diagnostic(self, cause: DegradationCause) -> Listing:
        """Placeholder listing for this source."""
        return diagnostic_listing(self.source_name, self.base_url, cause)

    def direct_search_url(self, query: str) -> Optional[str]:
        """URL that runs the search without the form, if the site has one."""
        return None

    @abstractmethod
    def parse_row(self, row: Tag) -> Listing:
        """Turn one result row into a Listing.

        Raises:
            RowExtractionError: If the row holds no usable product data
        """
        pass
