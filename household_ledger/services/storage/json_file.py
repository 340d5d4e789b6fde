"""
JSON File Document Store

DESIGN DECISION: Local-first persistence without a database server.
Each collection is one JSON file under the data directory.

TRADEOFFS:
- Whole-file rewrite per write (fine for a household's volume)
- No cross-process locking (one app instance owns the directory)
- Atomic replace means a crash leaves either the old or the new file

Transient filesystem errors are retried like any other backend call.
"""

import json
import os
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from household_ledger.audit import get_logger
from household_ledger.config import get_settings
from household_ledger.services.storage.interface import (
    Collection,
    ConnectionError,
    Document,
    StorageError,
)
from household_ledger.services.storage.memory import InMemoryDocumentStore


class JsonFileDocumentStore(InMemoryDocumentStore):
    """In-memory store backed by one JSON file per collection."""

    def __init__(self, data_dir: Optional[Path] = None):
        super().__init__()
        self._data_dir = Path(data_dir or get_settings().storage.data_dir)
        self._logger = get_logger("storage")
        try:
            self._data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConnectionError(f"Cannot open data directory {self._data_dir}: {e}")

    def _path(self, collection: Collection) -> Path:
        return self._data_dir / f"{Collection(collection).value}.json"

    def _bucket(self, collection: Collection) -> dict[str, Document]:
        collection = Collection(collection)
        if collection not in self._collections:
            self._collections[collection] = self._load(collection)
        return self._collections[collection]

    def _load(self, collection: Collection) -> dict[str, Document]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            docs = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to load {path.name}: {e}")
        return {doc["_id"]: doc for doc in docs}

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_file(self, path: Path, payload: str) -> None:
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, path)

    def _persist(self, collection: Collection) -> None:
        collection = Collection(collection)
        path = self._path(collection)
        payload = json.dumps(list(self._collections.get(collection, {}).values()), indent=2)
        try:
            self._write_file(path, payload)
        except OSError as e:
            self._logger.error("collection_write_failed", collection=collection.value, error=str(e))
            raise StorageError(f"Failed to write {path.name}: {e}")
