"""
Transaction storage layer.

Raw PSP transaction outcomes live in DuckDB; the metrics services read
grouped aggregates and sorted response-time samples from it.

There is no module-level storage singleton: the application creates one
backend at startup with ``create_storage()``, opens it, and closes it at
shutdown.
"""

from pspmonitor.config import Settings

from .base import StorageBackend
from .duckdb_storage import DuckDBStorage
from .exceptions import DuplicateTransactionError, StorageError


def create_storage(settings: Settings) -> StorageBackend:
    """
    Build the configured storage backend. The caller opens and closes it.

    Args:
        settings: Application settings

    Returns:
        Unopened StorageBackend implementation instance
    """
    return DuckDBStorage(db_path=settings.db_path)


__all__ = [
    "StorageBackend",
    "DuckDBStorage",
    "DuplicateTransactionError",
    "StorageError",
    "create_storage",
]
