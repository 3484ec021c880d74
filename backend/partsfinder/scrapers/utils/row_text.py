"""Best-effort structured extraction from unstructured row text.

Some shops render results as free-flowing blocks with no cell
structure. This module splits such text into listing fields by
convention: the row is assumed to read ``brand article ... price``.

The split is lossy. A row whose text does not follow that ordering
will get the wrong brand/article (e.g. a leading "Артикул:" label
becomes the brand). Callers that have real ``td`` cells should read
them instead of going through here.
"""

import re
from dataclasses import dataclass

from partsfinder.scrapers.utils.normalizer import (
    ARTICLE_UNKNOWN,
    BRAND_UNKNOWN,
    NAME_UNKNOWN,
    clean_text,
    parse_price,
)

# Amount followed by a currency token. Spaces (incl. NBSP and thin space)
# are accepted as thousands separators, a comma or period as decimals.
_CURRENCY_PRICE = re.compile(
    r"(\d[\d \u00a0\u2009]*(?:[.,]\d{1,2})?)\s?(?:тг|₸|kzt|руб|rub|₽|р\.)",
    re.IGNORECASE,
)
_NUMERIC_RUN = re.compile(r"\d[\d \u00a0\u2009]*")

NAME_MAX_LENGTH = 50


@dataclass(frozen=True)
class RowTextFields:
    """Fields recovered from one row of free text."""

    brand: str = BRAND_UNKNOWN
    article: str = ARTICLE_UNKNOWN
    name: str = NAME_UNKNOWN
    price: float = 0.0


def find_price(text: str) -> float:
    """Locate the price in free text.

    Prefers an amount carrying a currency suffix; otherwise takes the
    last run of digits in the text.

    Args:
        text: Full row text

    Returns:
        Price, or 0.0 when the text holds no number
    """
    if not text:
        return 0.0

    match = _CURRENCY_PRICE.search(text)
    if match:
        return parse_price(match.group(1))

    runs = _NUMERIC_RUN.findall(text)
    if runs:
        return parse_price(runs[-1])
    return 0.0


def shorten(text: str, limit: int = NAME_MAX_LENGTH) -> str:
    """Truncate to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def split_row_text(text: str) -> RowTextFields:
    """Split free row text into brand, article, name and price.

    Brand and article are only taken from the leading tokens when a
    price was found; without a price the row is most likely a header
    or a notice and the sentinels are kept.

    Args:
        text: Full row text

    Returns:
        RowTextFields with sentinels for anything not recovered
    """
    flat = clean_text(text)
    if not flat:
        return RowTextFields()

    price = find_price(flat)
    if price <= 0:
        return RowTextFields(name=shorten(flat))

    tokens = flat.split(" ")
    brand, article = BRAND_UNKNOWN, ARTICLE_UNKNOWN
    if len(tokens) >= 2:
        brand, article = tokens[0], tokens[1]

    return RowTextFields(brand=brand, article=article, name=shorten(flat), price=price)
