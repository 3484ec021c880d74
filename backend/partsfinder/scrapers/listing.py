"""Normalized listing record returned by every site adapter."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Availability(str, Enum):
    """Display string derived from a listing's price."""

    IN_STOCK = "В наличии"
    ON_ORDER = "Под заказ"


@dataclass(frozen=True)
class Listing:
    """One product result.

    Every field is always populated: when a site does not expose a
    value the adapter stores the documented sentinel (see
    ``utils.normalizer``). ``price == 0`` and ``delivery == 0`` mean
    "not extracted"; no real part sells for zero.
    """

    image: str
    brand: str
    article: str
    name: str
    price: float
    delivery: int
    link: str

    def __post_init__(self):
        """Validate data after initialization."""
        for field_name in ("image", "brand", "article", "name", "link"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{field_name} must be a non-empty string")
        if self.price is None or self.price < 0:
            raise ValueError("price must be a non-negative number")
        if self.delivery is None or self.delivery < 0:
            raise ValueError("delivery must be a non-negative integer")

        # frozen: coerce through object.__setattr__
        object.__setattr__(self, "price", float(self.price))
        object.__setattr__(self, "delivery", int(self.delivery))

    @property
    def availability(self) -> Availability:
        return Availability.IN_STOCK if self.price > 0 else Availability.ON_ORDER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "brand": self.brand,
            "article": self.article,
            "name": self.name,
            "price": self.price,
            "delivery": self.delivery,
            "link": self.link,
            "availability": self.availability.value,
        }
