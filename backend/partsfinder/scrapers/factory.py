"""Factory for creating site adapter instances by source identifier."""

from enum import Enum
from typing import Dict, Optional, Type
import structlog

from partsfinder.scrapers.base import BaseSiteAdapter


logger = structlog.get_logger(__name__)


class SourceId(str, Enum):
    """Shops a search can be dispatched to."""

    EMEX = "emex"
    RULIM = "rulim"
    SPARTEX = "spartex"


class AdapterFactory:
    """Registry of adapter classes keyed by source identifier."""

    def __init__(self):
        """Initialize an empty adapter registry."""
        self._adapter_registry: Dict[str, Type[BaseSiteAdapter]] = {}

    def register_adapter(self, source_id: str, adapter_class: Type[BaseSiteAdapter]) -> None:
        """Register an adapter class for a source.

        Args:
            source_id: Source identifier (e.g., "emex")
            adapter_class: Adapter class (must inherit from BaseSiteAdapter)
        """
        if not issubclass(adapter_class, BaseSiteAdapter):
            raise ValueError(f"Adapter class must inherit from BaseSiteAdapter: {adapter_class}")

        self._adapter_registry[source_id] = adapter_class
        logger.info("adapter_registered", source=source_id, adapter=adapter_class.__name__)

    def create_adapter(self, source_id: str) -> Optional[BaseSiteAdapter]:
        """Create an uninitialized adapter instance.

        Args:
            source_id: Source identifier

        Returns:
            Adapter instance, or None if not registered
        """
        adapter_class = self._adapter_registry.get(source_id)
        if not adapter_class:
            logger.warning("adapter_not_found", source=source_id)
            return None
        return adapter_class()

    def get_registered_sources(self) -> list[str]:
        """Get list of registered source identifiers."""
        return list(self._adapter_registry.keys())


# Global factory instance
adapter_factory = AdapterFactory()


def get_adapter_factory() -> AdapterFactory:
    """Get the global adapter factory instance.

    Returns:
        AdapterFactory instance
    """
    return adapter_factory
