"""
Storage Services Package

Provides the abstract document store interface and its implementations.
The in-memory store is the default; the JSON file store persists locally.
"""

from household_ledger.config import get_settings
from household_ledger.services.storage.interface import (
    Collection,
    ConflictError,
    ConnectionError,
    Document,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
)
from household_ledger.services.storage.memory import InMemoryDocumentStore
from household_ledger.services.storage.json_file import JsonFileDocumentStore


def create_document_store() -> DocumentStoreInterface:
    """Build the store selected by STORAGE_BACKEND."""
    settings = get_settings().storage
    if settings.backend == "json":
        return JsonFileDocumentStore(settings.data_dir)
    return InMemoryDocumentStore()


__all__ = [
    # Interface
    "Collection",
    "Document",
    "DocumentStoreInterface",
    "create_document_store",
    # Exceptions
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
]
