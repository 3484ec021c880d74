"""Register all site adapters with the factory.

Import and call ``register_all_adapters()`` once at startup, before the
dispatcher is started.
"""

from partsfinder.scrapers.adapters import EmexAdapter, RulimAdapter, SpartexAdapter
from partsfinder.scrapers.factory import AdapterFactory, SourceId, get_adapter_factory


def register_all_adapters(factory: AdapterFactory = None) -> AdapterFactory:
    """Register every supported source.

    Args:
        factory: Factory to populate; defaults to the global one

    Returns:
        The populated factory
    """
    factory = factory or get_adapter_factory()

    adapters = [
        (SourceId.EMEX, EmexAdapter),
        (SourceId.RULIM, RulimAdapter),
        (SourceId.SPARTEX, SpartexAdapter),
    ]
    for source_id, adapter_class in adapters:
        factory.register_adapter(source_id.value, adapter_class)

    return factory
