"""Selector candidate chains and their resolution.

Target markup is unversioned, so every semantic role (search box,
results container, row, cell) is described by an ordered chain of
alternative selectors. Chains are ordered from most to least stable:
data attributes, then semantic class names, then generic element
types as a last resort.

Two resolvers share the same chains:

* live resolution against a Playwright ``Page`` or ``ElementHandle``
  (used for the search box and the results surface, where we must
  wait for the element to materialise), and
* snapshot resolution against a BeautifulSoup tree built from
  ``page.content()`` (used for rows and cells; pure and testable
  against literal HTML).

Neither resolver raises for "not found". The only error is running out
of a caller-supplied budget before the chain has been tried in full.
"""

import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import structlog
from bs4 import Tag
from playwright.async_api import (
    ElementHandle,
    Error as PlaywrightError,
    Page,
    TimeoutError as PlaywrightTimeoutError,
)

from partsfinder.core.exceptions import SelectorBudgetExceeded

logger = structlog.get_logger()

DEFAULT_CANDIDATE_TIMEOUT_MS = 3000

LiveScope = Union[Page, ElementHandle]


@dataclass(frozen=True)
class SelectorCandidate:
    """One way of locating an element."""

    expression: str
    timeout_ms: int = DEFAULT_CANDIDATE_TIMEOUT_MS
    require_visible: bool = False


def chain(
    *expressions: str,
    timeout_ms: int = DEFAULT_CANDIDATE_TIMEOUT_MS,
    visible: bool = False,
) -> Tuple[SelectorCandidate, ...]:
    """Build a candidate chain sharing one timeout and visibility rule."""
    return tuple(
        SelectorCandidate(expression=e, timeout_ms=timeout_ms, require_visible=visible)
        for e in expressions
    )


# ---------------------------------------------------------------------------
# Live resolution (Playwright)
# ---------------------------------------------------------------------------

async def _first_visible(scope: LiveScope, expression: str) -> Optional[ElementHandle]:
    for handle in await scope.query_selector_all(expression):
        if await handle.is_visible():
            return handle
    return None


async def _resolve(
    scope: LiveScope,
    candidates: Sequence[SelectorCandidate],
    budget_ms: Optional[int],
) -> Tuple[Optional[SelectorCandidate], Optional[ElementHandle]]:
    started = time.monotonic()

    for tried, candidate in enumerate(candidates):
        timeout = candidate.timeout_ms
        if budget_ms is not None:
            remaining = budget_ms - int((time.monotonic() - started) * 1000)
            if remaining <= 0:
                raise SelectorBudgetExceeded(budget_ms, tried)
            timeout = min(timeout, remaining)

        try:
            handle = await scope.wait_for_selector(
                candidate.expression, state="attached", timeout=timeout
            )
        except PlaywrightTimeoutError:
            continue
        except PlaywrightError as e:
            # Malformed selector or detached scope; move on to the next one
            logger.debug(
                "selector_candidate_failed",
                selector=candidate.expression,
                error=str(e),
            )
            continue

        if handle is None:
            continue
        if not candidate.require_visible:
            return candidate, handle

        visible = await _first_visible(scope, candidate.expression)
        if visible is not None:
            return candidate, visible

    return None, None


async def resolve_first(
    scope: LiveScope,
    candidates: Sequence[SelectorCandidate],
    budget_ms: Optional[int] = None,
) -> Optional[ElementHandle]:
    """Return the first element any candidate resolves to.

    Candidates are tried in order, each with its own bounded wait. For
    candidates that require visibility the first visible match wins,
    hidden matches are passed over.

    Args:
        scope: Page or element to search within
        candidates: Ordered selector chain
        budget_ms: Optional hard limit across the whole chain

    Returns:
        Matching element handle, or None if no candidate resolved

    Raises:
        SelectorBudgetExceeded: If budget_ms ran out before the chain
            was exhausted
    """
    candidate, handle = await _resolve(scope, candidates, budget_ms)
    if candidate is not None:
        logger.debug("selector_resolved", selector=candidate.expression)
    return handle


async def wait_for_any(
    scope: LiveScope,
    candidates: Sequence[SelectorCandidate],
    budget_ms: Optional[int] = None,
) -> Optional[str]:
    """Wait until any candidate materialises and return its expression."""
    candidate, _ = await _resolve(scope, candidates, budget_ms)
    return candidate.expression if candidate else None


# ---------------------------------------------------------------------------
# Snapshot resolution (BeautifulSoup)
# ---------------------------------------------------------------------------

def select_first(scope: Tag, candidates: Sequence[SelectorCandidate]) -> Optional[Tag]:
    """First element matched by the first candidate that matches anything."""
    for candidate in candidates:
        found = scope.select_one(candidate.expression)
        if found is not None:
            return found
    return None


def select_all(scope: Tag, candidates: Sequence[SelectorCandidate]) -> List[Tag]:
    """All elements matched by the first candidate that matches anything."""
    for candidate in candidates:
        found = scope.select(candidate.expression)
        if found:
            return found
    return []


def select_text(scope: Tag, candidates: Sequence[SelectorCandidate]) -> Optional[str]:
    """Text of the first candidate match that has non-blank text."""
    for candidate in candidates:
        found = scope.select_one(candidate.expression)
        if found is None:
            continue
        text = found.get_text(" ", strip=True)
        if text:
            return text
    return None


def select_attr(
    scope: Tag, candidates: Sequence[SelectorCandidate], attr: str
) -> Optional[str]:
    """Attribute value of the first candidate match that carries it."""
    for candidate in candidates:
        for found in scope.select(candidate.expression):
            value = found.get(attr)
            if value:
                return value
    return None
