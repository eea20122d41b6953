"""Storage collaborators."""

from .base import Store, StorageError
from .memory import InMemoryStore


def create_store(url: str = "") -> Store:
    """SQL store when ``url`` is set, otherwise an in-memory one."""
    if url:
        from .sql import SqlStore

        return SqlStore(url)
    return InMemoryStore()


__all__ = ["Store", "StorageError", "InMemoryStore", "create_store"]
