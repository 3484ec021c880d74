"""Site adapters, one per supported shop."""

from .emex import EmexAdapter
from .rulim import RulimAdapter
from .spartex import SpartexAdapter

__all__ = [
    "EmexAdapter",
    "RulimAdapter",
    "SpartexAdapter",
]
