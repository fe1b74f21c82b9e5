"""
Factory for creating click storage instances.
"""

import logging
from enum import Enum

from snaplink_app.database.connection import Database
from .strategies import ClickStorageStrategy, InMemoryClickStorage, SQLClickStorage

logger = logging.getLogger(__name__)


class ClickStorageBackend(Enum):
    """Available click storage backends"""
    SQL = "sql"
    MEMORY = "memory"


class ClickStorageFactory:
    """
    Simple factory for click storage instances.

    The SQL backend shares the application's Database handle; the caller owns
    the returned instance for the lifetime of the process.
    """

    @classmethod
    def create(cls, backend: ClickStorageBackend, database: Database) -> ClickStorageStrategy:
        """
        Create a click storage instance.

        Args:
            backend: Type of storage backend (from enum)
            database: Shared database handle

        Returns:
            Click storage instance
        """
        if backend == ClickStorageBackend.SQL:
            storage = SQLClickStorage(database)
        elif backend == ClickStorageBackend.MEMORY:
            storage = InMemoryClickStorage()
        else:
            raise ValueError(f"Unknown click storage backend: {backend}")

        logger.info("Click storage initialized: %s", backend.value)
        return storage
