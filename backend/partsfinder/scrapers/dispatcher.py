"""Search dispatcher.

Owns the process-wide browser, hands it to every registered adapter,
routes each search to the adapter for the requested source and decides
what a failed search turns into for the caller.
"""

import asyncio
import time
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from partsfinder.config import settings
from partsfinder.core.exceptions import (
    ElementNotFound,
    SearchTimeout,
    SessionError,
    UnknownSourceError,
    ValidationError,
)
from partsfinder.schemas.search import MIN_PART_NAME_LENGTH, SearchRequest
from partsfinder.scrapers.base import BaseSiteAdapter, Listing
from partsfinder.scrapers.degradation import DegradationCause
from partsfinder.scrapers.factory import AdapterFactory, SourceId, get_adapter_factory
from partsfinder.scrapers.utils.browser_manager import BrowserManager

logger = structlog.get_logger(__name__)

SearchInput = Union[SearchRequest, Mapping[str, Any], str]


def build_query(request: SearchInput) -> str:
    """Turn caller input into the opaque query string.

    Args:
        request: SearchRequest, a dict of its fields, or a raw query

    Returns:
        Query string

    Raises:
        ValidationError: If the input is malformed
    """
    if isinstance(request, str):
        query = " ".join(request.split())
        if len(query) < MIN_PART_NAME_LENGTH:
            raise ValidationError(
                f"Search query must contain at least {MIN_PART_NAME_LENGTH} characters"
            )
        return query

    if not isinstance(request, SearchRequest):
        try:
            request = SearchRequest.model_validate(request)
        except PydanticValidationError as e:
            messages = "; ".join(err["msg"] for err in e.errors())
            raise ValidationError(messages) from e

    return request.to_query()


class SearchDispatcher:
    """Routes searches to adapters bound to one shared browser.

    The browser is relaunched lazily when it is found disconnected, and
    every adapter is re-bound to it. Searches run concurrently; each
    one gets its own browsing session inside the adapter.
    """

    def __init__(
        self,
        factory: Optional[AdapterFactory] = None,
        driver: Optional[BrowserManager] = None,
        search_timeout: Optional[float] = None,
        degrade_on_error: Optional[bool] = None,
    ):
        self._factory = factory or get_adapter_factory()
        self._driver = driver or BrowserManager()
        self._search_timeout = (
            settings.SEARCH_TIMEOUT_SECONDS if search_timeout is None else search_timeout
        )
        self._degrade_on_error = (
            settings.DEGRADE_ON_ERROR if degrade_on_error is None else degrade_on_error
        )
        self._adapters: Dict[str, BaseSiteAdapter] = {}
        self._relaunch_lock = asyncio.Lock()
        self.logger = logger.bind(service="dispatcher")

    @property
    def driver(self) -> BrowserManager:
        return self._driver

    async def start(self) -> None:
        """Launch the shared browser and bind every registered adapter to it."""
        await self._driver.start()
        for source_id in self._factory.get_registered_sources():
            adapter = self._factory.create_adapter(source_id)
            await adapter.init(self._driver)
            self._adapters[source_id] = adapter
        self.logger.info("dispatcher_started", sources=list(self._adapters))

    async def stop(self) -> None:
        """Release adapters and shut the shared browser down."""
        for adapter in self._adapters.values():
            await adapter.close()
        self._adapters.clear()
        await self._driver.stop()
        self.logger.info("dispatcher_stopped")

    async def __aenter__(self) -> "SearchDispatcher":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def adapter_for(self, source: Union[SourceId, str]) -> BaseSiteAdapter:
        """Look up the adapter for a source identifier.

        Raises:
            UnknownSourceError: If the identifier is not a known source or
                no adapter is bound for it
        """
        try:
            source_id = SourceId(source).value
        except ValueError:
            raise UnknownSourceError(str(source)) from None

        adapter = self._adapters.get(source_id)
        if adapter is None:
            raise UnknownSourceError(source_id)
        return adapter

    async def _ensure_driver(self) -> None:
        if self._driver.is_connected:
            return
        async with self._relaunch_lock:
            if self._driver.is_connected:
                return
            self.logger.warning("browser_relaunching")
            await self._driver.start()
            for adapter in self._adapters.values():
                await adapter.init(self._driver)

    async def search(self, source: Union[SourceId, str], request: SearchInput) -> List[Listing]:
        """Run a search on one source.

        Args:
            source: Source identifier
            request: SearchRequest, dict of its fields, or a raw query

        Returns:
            Listings from the adapter; with DEGRADE_ON_ERROR set, a
            single diagnostic listing when the search failed

        Raises:
            UnknownSourceError: If the source is not registered
            ValidationError: If the request is malformed
            ElementNotFound, SessionError, SearchTimeout: If the search
                failed and DEGRADE_ON_ERROR is off
        """
        adapter = self.adapter_for(source)
        query = build_query(request)
        await self._ensure_driver()

        started = time.monotonic()
        try:
            listings = await asyncio.wait_for(adapter.search(query), timeout=self._search_timeout)
        except asyncio.TimeoutError:
            failure = SearchTimeout(adapter.source_id, self._search_timeout)
        except (ElementNotFound, SessionError) as e:
            failure = e
        else:
            self.logger.info(
                "search_dispatched",
                source=adapter.source_id,
                results=len(listings),
                duration_ms=int((time.monotonic() - started) * 1000),
            )
            return listings

        self.logger.error(
            "search_failed",
            source=adapter.source_id,
            error=failure.message,
            degrade=self._degrade_on_error,
        )
        if not self._degrade_on_error:
            raise failure
        return [adapter.diagnostic(DegradationCause.SEARCH_FAILED)]

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "version": settings.APP_VERSION,
            "driver_ready": self._driver.is_connected,
            "sources": sorted(self._adapters),
        }
