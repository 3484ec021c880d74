"""Degradation policy: a diagnostic placeholder instead of an empty result.

When a search yields no usable rows the adapter returns exactly one
synthetic listing. It carries the ``DEMO DATA`` brand and an article
naming the cause, so a consumer can render it like any other row yet
tell it apart from real inventory.
"""

from enum import Enum
from typing import Optional

from partsfinder.scrapers.listing import Listing
from partsfinder.scrapers.utils.normalizer import PLACEHOLDER_IMAGE

DIAGNOSTIC_BRAND = "DEMO DATA"

# Phrases of captcha / anti-bot interstitials seen on RU/KZ storefronts
BLOCK_MARKERS = (
    "captcha",
    "smartcaptcha",
    "подтвердите, что вы не робот",
    "вы не робот",
    "доступ ограничен",
    "access denied",
    "too many requests",
    "checking your browser",
)


class DegradationCause(str, Enum):
    """Why a search produced no real listings."""

    NO_RESULTS = "NO_RESULTS"  # no result rows were rendered
    ROWS_UNPARSED = "ROWS_UNPARSED"  # rows were found but none could be read
    BLOCKED = "BLOCKED"  # an anti-bot page was served instead of results
    SEARCH_FAILED = "SEARCH_FAILED"  # the search itself raised (set by the dispatcher)


_EXPLANATIONS = {
    DegradationCause.NO_RESULTS: "ничего не найдено или разметка сайта изменилась",
    DegradationCause.ROWS_UNPARSED: "не удалось разобрать строки результатов",
    DegradationCause.BLOCKED: "сайт заблокировал автоматический запрос",
    DegradationCause.SEARCH_FAILED: "поиск завершился ошибкой",
}


def looks_blocked(html: Optional[str]) -> bool:
    """True if the rendered page looks like a captcha or block page."""
    if not html:
        return False
    lowered = html.lower()
    return any(marker in lowered for marker in BLOCK_MARKERS)


def diagnostic_listing(source_name: str, base_url: str, cause: DegradationCause) -> Listing:
    """Build the single placeholder listing for a failed extraction.

    Args:
        source_name: Human-readable source name, e.g. "Emex"
        base_url: Source base URL, used as the listing link
        cause: Why no real listings were produced

    Returns:
        Listing with brand DIAGNOSTIC_BRAND and article DEMO-<cause>
    """
    return Listing(
        image=PLACEHOLDER_IMAGE,
        brand=DIAGNOSTIC_BRAND,
        article=f"DEMO-{cause.value}",
        name=f"Нет данных от {source_name}: {_EXPLANATIONS[cause]}",
        price=0,
        delivery=0,
        link=base_url,
    )


def is_diagnostic(listing: Listing) -> bool:
    return listing.brand == DIAGNOSTIC_BRAND
