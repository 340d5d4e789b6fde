"""
Abstract Document Store Interface

DESIGN DECISION: The ledger talks to storage through a small document API
(get/put/remove/find/bulk) instead of entity-specific methods. This allows us to:
1. Keep every collection independent (no joins, no cross-document transactions)
2. Use in-memory storage for testing
3. Persist locally to JSON files without touching business logic
4. Swap in a replicating document database later

Each document is a JSON-compatible dict keyed by `_id`. Every write must
present the current `_rev`; a stale revision is a conflict, never a silent
overwrite.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


Document = dict[str, Any]


class Collection(str, Enum):
    """Independent document collections."""
    TRANSACTIONS = "transactions"
    ACCOUNTS = "accounts"
    CATEGORIES = "categories"
    CREDIT_FACILITIES = "credit_facilities"
    LOANS = "loans"
    BUDGETS = "budgets"
    RECURRING = "recurring"
    HOUSEHOLD = "household"
    SHARED = "shared"
    LEDGER_JOURNAL = "ledger_journal"


class DocumentStoreInterface(ABC):
    """
    Abstract interface for document storage.

    Any implementation (in-memory, JSON files, a replicating database)
    must implement these methods.
    """

    @abstractmethod
    async def get(self, collection: Collection, doc_id: str) -> Optional[Document]:
        """
        Retrieve a document by id.

        Returns:
            A copy of the document, or None if it does not exist
        """
        pass

    @abstractmethod
    async def put(self, collection: Collection, doc: Document) -> str:
        """
        Insert or replace a document.

        Args:
            collection: Target collection
            doc: Document with `_id`; must carry the current `_rev` when
                 the document already exists

        Returns:
            The new revision token

        Raises:
            ConflictError: If `_rev` is missing or stale for an existing document
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def remove(self, collection: Collection, doc_id: str, rev: str) -> None:
        """
        Delete a document.

        Raises:
            NotFoundError: If the document does not exist
            ConflictError: If `rev` is stale
        """
        pass

    @abstractmethod
    async def find(
        self,
        collection: Collection,
        selector: Optional[dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        """
        Find documents whose top-level fields equal every selector value.

        Args:
            selector: Field -> expected value (camelCase keys). None matches all.
            limit: Maximum number of results
        """
        pass

    @abstractmethod
    async def all_docs(self, collection: Collection) -> list[Document]:
        """Return every document in the collection."""
        pass

    @abstractmethod
    async def bulk_docs(self, collection: Collection, docs: list[Document]) -> list[str]:
        """
        Write many documents at once.

        Docs carrying `_deleted: True` are removed. The whole batch is
        checked for conflicts before anything is written.

        Returns:
            New revision per document (empty string for deletions)

        Raises:
            ConflictError: If any document has a stale revision
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Document not found in storage."""
    pass


class ConflictError(StorageError):
    """Write presented a stale or missing revision."""
    pass


class ConnectionError(StorageError):
    """Could not reach the storage backend."""
    pass
