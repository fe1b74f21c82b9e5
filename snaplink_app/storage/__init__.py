"""
Storage module: link records and the click event log.

Click storage implements the Strategy Pattern so the event log can live in
the main database or in memory.
"""

from .link_store import LinkStore
from .strategies import ClickStorageStrategy, SQLClickStorage, InMemoryClickStorage
from .factory import ClickStorageFactory, ClickStorageBackend

__all__ = [
    "LinkStore",
    "ClickStorageStrategy",
    "SQLClickStorage",
    "InMemoryClickStorage",
    "ClickStorageFactory",
    "ClickStorageBackend",
]
