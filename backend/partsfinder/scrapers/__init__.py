"""Scraper system for searching auto-parts shops through a real browser.

This package provides:
- The Listing record and the base site adapter
- One adapter per shop (Emex, Rulim, Spartex)
- Shared selector resolution, normalization and degradation helpers
- Factory and dispatcher for routing searches by source
"""

from .listing import Availability, Listing
from .base import BaseSiteAdapter, ExtractionReport
from .degradation import DIAGNOSTIC_BRAND, DegradationCause, diagnostic_listing, is_diagnostic
from .factory import AdapterFactory, SourceId, adapter_factory, get_adapter_factory

__all__ = [
    # Records
    "Availability",
    "Listing",
    "ExtractionReport",
    # Base classes
    "BaseSiteAdapter",
    # Degradation
    "DIAGNOSTIC_BRAND",
    "DegradationCause",
    "diagnostic_listing",
    "is_diagnostic",
    # Factory
    "AdapterFactory",
    "SourceId",
    "adapter_factory",
    "get_adapter_factory",
]
