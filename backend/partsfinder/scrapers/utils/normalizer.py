"""Record normalization: raw extracted text to typed listing fields.

Every function here is total. Unparsable input maps to the field's
"unknown" sentinel instead of raising, so a half-rendered row can
still produce a well-formed listing.
"""

import math
import re
from typing import Optional
from urllib.parse import urljoin, urlparse

import structlog

logger = structlog.get_logger()


# Sentinels for fields the page did not expose
BRAND_UNKNOWN = "N/A"
ARTICLE_UNKNOWN = "---"
NAME_UNKNOWN = "Запчасть"

# 60x60 grey "No Image" tile, inline so it never depends on a third-party host
PLACEHOLDER_IMAGE = (
    "data:image/svg+xml;base64,"
    "PHN2ZyB4bWxucz0iaHR0cDovL3d3dy53My5vcmcvMjAwMC9zdmciIHdpZHRoPSI2MCIgaGVp"
    "Z2h0PSI2MCIgdmlld0JveD0iMCAwIDYwIDYwIj48cmVjdCB3aWR0aD0iNjAiIGhlaWdodD0i"
    "NjAiIGZpbGw9IiNlNmU2ZTYiLz48dGV4dCB4PSI1MCUiIHk9IjUwJSIgZG9taW5hbnQtYmFz"
    "ZWxpbmU9Im1pZGRsZSIgdGV4dC1hbmNob3I9Im1pZGRsZSIgZm9udC1mYW1pbHk9InNhbnMt"
    "c2VyaWYiIGZvbnQtc2l6ZT0iMTAiIGZpbGw9IiM5OTkiPk5vIEltYWdlPC90ZXh0Pjwvc3Zn"
    "Pg=="
)

_PRICE_JUNK = re.compile(r"[^\d.,]")
_LEADING_NUMBER = re.compile(r"\d*\.?\d+")
_FIRST_DIGITS = re.compile(r"\d+")
_WHITESPACE = re.compile(r"\s+")


def parse_price(text: Optional[str]) -> float:
    """Parse a price string into a non-negative float.

    Handles formats seen on RU/KZ shops:
    - "1 234,56 ₽" -> 1234.56
    - "12 500 тг" -> 12500.0
    - "от 990 руб." -> 990.0

    Args:
        text: Raw price text

    Returns:
        Parsed price, or 0.0 when the text is empty or has no number
    """
    if not text:
        return 0.0

    cleaned = _PRICE_JUNK.sub("", text).replace(",", ".")
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return 0.0

    try:
        value = float(match.group(0))
    except ValueError:
        logger.debug("price_unparsable", raw=text)
        return 0.0
    if not math.isfinite(value):
        logger.debug("price_out_of_range", raw=text[:40])
        return 0.0
    return value


def parse_delivery_days(text: Optional[str]) -> int:
    """Extract the first run of digits as a delivery day count.

    Args:
        text: Raw delivery text, e.g. "доставка 5 дней"

    Returns:
        Day count, or 0 when the text holds no digits
    """
    if not text:
        return 0
    match = _FIRST_DIGITS.search(text)
    return int(match.group(0)) if match else 0


def resolve_link(href: Optional[str], base_url: str) -> str:
    """Make a link absolute against the site's base URL.

    Args:
        href: Raw href attribute value
        base_url: Site base URL

    Returns:
        Absolute URL; the base URL itself when href is empty or a
        script/fragment pseudo-link
    """
    if not href:
        return base_url

    href = href.strip()
    if not href or href.startswith("#"):
        return base_url

    scheme = urlparse(href).scheme.lower()
    if scheme in ("http", "https"):
        return href
    if scheme == "javascript":
        return base_url
    if href.startswith("//"):
        return "https:" + href

    return urljoin(base_url, href)


def resolve_image(src: Optional[str], base_url: str) -> str:
    """Make an image source absolute, or substitute the placeholder.

    Args:
        src: Raw src attribute value
        base_url: Site base URL

    Returns:
        Absolute image URL, an inline data URI, or PLACEHOLDER_IMAGE
    """
    if not src or not src.strip():
        return PLACEHOLDER_IMAGE

    src = src.strip()
    if src.startswith("data:"):
        return src
    return resolve_link(src, base_url)


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()
