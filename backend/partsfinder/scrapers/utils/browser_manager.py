"""Playwright browser lifecycle manager with anti-detection.

One Chromium process is shared by every adapter. Each search gets its
own isolated context (cookies, storage) through ``session()``, which
always closes the page and the context it created, whichever way the
caller leaves the ``async with`` block.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

import structlog
from playwright.async_api import (
    async_playwright,
    Browser,
    Error as PlaywrightError,
    Page,
    Playwright,
    Route,
)

from partsfinder.config import settings
from partsfinder.core.exceptions import SessionError
from partsfinder.scrapers.utils.retry import launch_retry
from partsfinder.scrapers.utils.user_agents import get_chrome_user_agent

logger = structlog.get_logger()


DEFAULT_BROWSER_ARGS: List[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]

# Sub-resources a listing page can render without
BLOCKED_RESOURCE_TYPES = frozenset({"image", "font", "media"})


@dataclass(frozen=True)
class SessionProfile:
    """Client identity presented by one browsing session."""

    locale: str = "ru-RU"
    timezone_id: str = "Europe/Moscow"
    user_agent: Optional[str] = None  # None picks a random desktop Chrome UA
    viewport_width: int = 1920
    viewport_height: int = 1080
    block_resources: bool = True
    stealth: bool = False


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


class BrowserManager:
    """Manages the shared Playwright browser and per-search sessions.

    Adapters only ever call ``session()``; starting and stopping the
    process belongs to whoever created the manager.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        block_resources: Optional[bool] = None,
        extra_args: Optional[List[str]] = None,
    ):
        self._headless = settings.HEADLESS if headless is None else headless
        self._block_resources = (
            settings.BLOCK_RESOURCES if block_resources is None else block_resources
        )
        self._args = DEFAULT_BROWSER_ARGS + (
            settings.get_browser_args() if extra_args is None else extra_args
        )
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        self._active_sessions = 0

    @property
    def is_connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    @property
    def active_sessions(self) -> int:
        """Number of sessions currently open (should return to 0 after every search)."""
        return self._active_sessions

    async def start(self) -> None:
        """Launch the browser. Safe to call again after a disconnect.

        Raises:
            SessionError: If Chromium could not be launched
        """
        async with self._lock:
            if self.is_connected:
                return
            await self._shutdown()
            self._playwright = await async_playwright().start()
            try:
                self._browser = await self._launch()
            except PlaywrightError as e:
                await self._shutdown()
                raise SessionError("browser", f"could not launch Chromium: {e}") from e
            self._browser.on("disconnected", lambda _: logger.warning("browser_disconnected"))
            logger.info("browser_started", headless=self._headless)

    @launch_retry
    async def _launch(self) -> Browser:
        return await self._playwright.chromium.launch(
            headless=self._headless,
            args=self._args,
        )

    async def stop(self) -> None:
        """Close the browser and Playwright driver."""
        async with self._lock:
            await self._shutdown()
            logger.info("browser_stopped")

    async def _shutdown(self) -> None:
        if self._browser:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.debug("browser_close_failed", error=str(e))
            self._browser = None
        if self._playwright:
            try:
                await self._playwright.stop()
            except PlaywrightError as e:
                logger.debug("playwright_stop_failed", error=str(e))
            self._playwright = None

    @asynccontextmanager
    async def session(self, profile: SessionProfile, owner: str = "") -> AsyncIterator[Page]:
        """Open an isolated context + page and guarantee both are closed.

        Args:
            profile: Client identity for the context
            owner: Name used in logs and errors (usually the source id)

        Yields:
            A fresh Page in a fresh BrowserContext

        Raises:
            SessionError: If the browser is gone or the context cannot be set up
        """
        if not self.is_connected:
            raise SessionError(owner, "browser is not running")

        try:
            context = await self._browser.new_context(
                user_agent=profile.user_agent or get_chrome_user_agent(),
                viewport={"width": profile.viewport_width, "height": profile.viewport_height},
                locale=profile.locale,
                timezone_id=profile.timezone_id,
                java_script_enabled=True,
            )
        except PlaywrightError as e:
            raise SessionError(owner, f"could not create browser context: {e}") from e

        self._active_sessions += 1
        page: Optional[Page] = None
        try:
            try:
                if profile.stealth:
                    await context.add_init_script(STEALTH_JS)
                if profile.block_resources and self._block_resources:
                    await context.route("**/*", _block_heavy_resources)
                page = await context.new_page()
            except PlaywrightError as e:
                raise SessionError(owner, f"could not open page: {e}") from e

            logger.debug("session_opened", owner=owner, locale=profile.locale)
            yield page
        finally:
            if page is not None:
                try:
                    await page.close()
                except PlaywrightError as e:
                    logger.debug("page_close_failed", owner=owner, error=str(e))
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug("context_close_failed", owner=owner, error=str(e))
            self._active_sessions -= 1
            logger.debug("session_closed", owner=owner, active=self._active_sessions)


# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['ru-RU', 'ru', 'en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
"""
