"""Pydantic schemas for search requests and responses."""

from .search import ListingSchema, SearchMode, SearchRequest, SearchResponse

__all__ = [
    "ListingSchema",
    "SearchMode",
    "SearchRequest",
    "SearchResponse",
]
