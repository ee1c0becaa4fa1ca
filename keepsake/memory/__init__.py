"""Memory — the bounded set of things the player chose to keep."""
from keepsake.memory.store import MemoryStore, OfferResult

__all__ = [
    "MemoryStore",
    "OfferResult",
]
