"""Search Pydantic schemas for request/response validation."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator, model_validator

VIN_LENGTH = 17
MIN_PART_NAME_LENGTH = 2


class SearchMode(str, Enum):
    """How the caller identifies the vehicle."""

    VIN = "vin"
    PARAMS = "params"
    TEXT = "text"


class SearchRequest(BaseModel):
    """Search parameters as submitted by a caller.

    The vehicle fields only shape the query string; adapters never see
    them separately.
    """

    part_name: str
    mode: SearchMode = SearchMode.TEXT
    vin: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    engine: Optional[str] = None

    @field_validator("part_name")
    @classmethod
    def part_name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_PART_NAME_LENGTH:
            raise ValueError(
                f"Название детали должно содержать минимум {MIN_PART_NAME_LENGTH} символа"
            )
        return v

    @field_validator("vin", "brand", "model", "engine")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def vin_required_in_vin_mode(self) -> "SearchRequest":
        if self.mode == SearchMode.VIN and (not self.vin or len(self.vin) != VIN_LENGTH):
            raise ValueError(f"VIN должен содержать ровно {VIN_LENGTH} символов")
        return self

    def to_query(self) -> str:
        """Assemble the free-text query sent to the shop's search box."""
        if self.mode == SearchMode.VIN:
            return f"{self.vin} {self.part_name}"
        if self.mode == SearchMode.PARAMS and self.brand and self.model:
            parts = [self.brand, self.model, self.year, self.engine, self.part_name]
            return " ".join(str(p) for p in parts if p)
        return self.part_name


class ListingSchema(BaseModel):
    """Wire shape of a single listing."""

    image: str
    brand: str
    article: str
    name: str
    price: float
    delivery: int
    link: str
    availability: str


class SearchResponse(BaseModel):
    """Search result envelope."""

    success: bool = True
    source: str
    query: str
    results: List[ListingSchema]
    total: int
    degraded: bool = False
    message: str = ""
    duration_ms: int = 0
