"""Pytest configuration and shared fixtures.

Playwright objects are replaced with ``unittest.mock`` doubles. The
``BrowserManager`` under test is real; only its Chromium handle is fake,
so session bookkeeping (context creation and release) is exercised as
written.
"""

from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from partsfinder.scrapers.utils.browser_manager import BrowserManager


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture(autouse=True)
def no_human_delay(monkeypatch):
    """Skip randomized pacing sleeps in adapter flows."""
    monkeypatch.setattr("partsfinder.scrapers.base.human_delay", AsyncMock())


def make_handle(visible: bool = True) -> MagicMock:
    """Element handle double supporting fill/press/is_visible."""
    handle = MagicMock()
    handle.fill = AsyncMock()
    handle.press = AsyncMock()
    handle.is_visible = AsyncMock(return_value=visible)
    return handle


def make_page(
    html: str = "<html><body></body></html>",
    present: Optional[Dict[str, MagicMock]] = None,
) -> MagicMock:
    """Page double.

    Args:
        html: What ``page.content()`` returns
        present: Selector expression -> handle for elements that exist;
            every other selector times out
    """
    present = present or {}
    page = MagicMock()
    page.goto = AsyncMock()
    page.close = AsyncMock()
    page.content = AsyncMock(return_value=html)

    async def wait_for_selector(expression, state="attached", timeout=None):
        if expression in present:
            return present[expression]
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {expression}")

    async def query_selector_all(expression):
        return [present[expression]] if expression in present else []

    page.wait_for_selector = AsyncMock(side_effect=wait_for_selector)
    page.query_selector_all = AsyncMock(side_effect=query_selector_all)
    return page


def make_context(page: MagicMock) -> MagicMock:
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.add_init_script = AsyncMock()
    context.route = AsyncMock()
    context.close = AsyncMock()
    return context


class FakeBrowser:
    """Stand-in for a launched Chromium that hands out prepared pages."""

    def __init__(self, *pages: MagicMock):
        self._pages = list(pages)
        self.contexts = []
        self.connected = True
        self.close = AsyncMock()

    def is_connected(self) -> bool:
        return self.connected

    def on(self, event, handler):
        pass

    async def new_context(self, **kwargs):
        page = self._pages.pop(0) if len(self._pages) > 1 else self._pages[0]
        context = make_context(page)
        context.options = kwargs
        self.contexts.append(context)
        return context


def attach_browser(manager: BrowserManager, browser: FakeBrowser) -> BrowserManager:
    """Make a BrowserManager look started without launching Chromium."""
    manager._browser = browser
    return manager


@pytest.fixture
def browser_manager() -> BrowserManager:
    """A started-looking BrowserManager serving one empty page."""
    return attach_browser(
        BrowserManager(headless=True, block_resources=True, extra_args=[]),
        FakeBrowser(make_page()),
    )
