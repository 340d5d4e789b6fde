"""
In-Memory Document Store

The default backend and the one every test uses. Documents are deep-copied
on the way in and out so callers can never mutate stored state by accident.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from household_ledger.services.storage.interface import (
    Collection,
    ConflictError,
    Document,
    DocumentStoreInterface,
    NotFoundError,
    StorageError,
)


def next_revision(current: Optional[str]) -> str:
    """Revision tokens look like "<generation>-<hex>"."""
    generation = int(current.split("-", 1)[0]) + 1 if current else 1
    return f"{generation}-{uuid4().hex}"


def matches(doc: Document, selector: Optional[dict[str, Any]]) -> bool:
    if not selector:
        return True
    return all(doc.get(key) == value for key, value in selector.items())


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dict-of-dicts store with revision checking."""

    def __init__(self):
        self._collections: dict[Collection, dict[str, Document]] = {}

    def _bucket(self, collection: Collection) -> dict[str, Document]:
        return self._collections.setdefault(Collection(collection), {})

    def _persist(self, collection: Collection) -> None:
        """Hook for durable subclasses; called after every write."""
        pass

    def _flush(self, collection: Collection, before: dict[str, Document]) -> None:
        """Persist a changed bucket, restoring `before` if that fails."""
        try:
            self._persist(collection)
        except StorageError:
            bucket = self._bucket(collection)
            bucket.clear()
            bucket.update(before)
            raise

    def _check_revision(self, bucket: dict[str, Document], doc: Document) -> None:
        doc_id = doc.get("_id")
        if not doc_id:
            raise StorageError("Document is missing _id")
        existing = bucket.get(doc_id)
        if existing is None:
            if doc.get("_deleted"):
                raise NotFoundError(f"Document not found: {doc_id}")
            return
        if doc.get("_rev") != existing["_rev"]:
            raise ConflictError(
                f"Document update conflict: {doc_id} "
                f"(have {doc.get('_rev')}, current {existing['_rev']})"
            )

    def _write(self, bucket: dict[str, Document], doc: Document) -> str:
        doc_id = doc["_id"]
        if doc.get("_deleted"):
            del bucket[doc_id]
            return ""
        stored = copy.deepcopy(doc)
        stored["_rev"] = next_revision(bucket[doc_id]["_rev"] if doc_id in bucket else None)
        bucket[doc_id] = stored
        return stored["_rev"]

    async def get(self, collection: Collection, doc_id: str) -> Optional[Document]:
        doc = self._bucket(collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def put(self, collection: Collection, doc: Document) -> str:
        bucket = self._bucket(collection)
        self._check_revision(bucket, doc)
        before = dict(bucket)
        rev = self._write(bucket, doc)
        self._flush(collection, before)
        return rev

    async def remove(self, collection: Collection, doc_id: str, rev: str) -> None:
        bucket = self._bucket(collection)
        if doc_id not in bucket:
            raise NotFoundError(f"Document not found: {doc_id}")
        self._check_revision(bucket, {"_id": doc_id, "_rev": rev})
        before = dict(bucket)
        del bucket[doc_id]
        self._flush(collection, before)

    async def find(
        self,
        collection: Collection,
        selector: Optional[dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> list[Document]:
        results = [
            copy.deepcopy(doc)
            for doc in self._bucket(collection).values()
            if matches(doc, selector)
        ]
        return results[:limit] if limit is not None else results

    async def all_docs(self, collection: Collection) -> list[Document]:
        return [copy.deepcopy(doc) for doc in self._bucket(collection).values()]

    async def bulk_docs(self, collection: Collection, docs: list[Document]) -> list[str]:
        bucket = self._bucket(collection)
        seen: set[str] = set()
        for doc in docs:
            self._check_revision(bucket, doc)
            if doc["_id"] in seen:
                raise ConflictError(f"Document appears twice in batch: {doc['_id']}")
            seen.add(doc["_id"])

        before = dict(bucket)
        revs = [self._write(bucket, doc) for doc in docs]
        self._flush(collection, before)
        return revs
