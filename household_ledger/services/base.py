"""
Collection Service Base

Shared CRUD for entities that live in one collection and have no derived
state of their own. Specialised services (ledger, credit, loans...) build
their operations on top of these helpers.

Contract for every entity service:
- get_all(household_id)  -> records of one household
- get_by_id(id)          -> record or None
- create(data)           -> stamped, persisted record
- update(id, partial)    -> merged, re-validated, persisted record
- delete(id)             -> True if removed, False if it did not exist
"""

from typing import Any, Generic, Optional, Union

from household_ledger.audit import get_logger
from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models.base import DocT, utc_now
from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services.storage import Collection, DocumentStoreInterface
from household_ledger.session import SessionContext


# Fields a partial update may never touch
IMMUTABLE_FIELDS = frozenset({"id", "rev", "household_id", "created_at"})


class CollectionService(Generic[DocT]):
    """Generic CRUD over one collection."""

    collection: Collection
    model: type[DocT]
    topic: ChangeTopic
    entity_name: str = "Record"
    derived_fields: frozenset = frozenset()

    def __init__(
        self,
        store: DocumentStoreInterface,
        session: SessionContext,
        bus: ChangeBus,
    ):
        self._store = store
        self._session = session
        self._bus = bus
        self._logger = get_logger(self.collection.value)

    # =========================================================================
    # READ
    # =========================================================================

    async def get_all(self, household_id: Optional[str] = None) -> list[DocT]:
        household_id = household_id or self._session.household_id
        docs = await self._store.find(self.collection, {"householdId": household_id})
        return [self.model.from_document(doc) for doc in docs]

    async def get_by_id(self, record_id: str) -> Optional[DocT]:
        doc = await self._store.get(self.collection, record_id)
        return self.model.from_document(doc) if doc is not None else None

    async def _require(self, record_id: str) -> DocT:
        record = await self.get_by_id(record_id)
        if record is None:
            raise EntityNotFoundError(self.entity_name, record_id)
        return record

    # =========================================================================
    # WRITE
    # =========================================================================

    def _build(self, data: Union[DocT, dict[str, Any]]) -> DocT:
        """Validate input and stamp household and timestamps."""
        record = data if isinstance(data, self.model) else self.model.model_validate(data)
        now = utc_now()
        return record.model_copy(update={
            "household_id": record.household_id or self._session.household_id,
            "created_at": record.created_at or now,
            "updated_at": now,
        })

    def _merge(self, record: DocT, partial: dict[str, Any]) -> DocT:
        """Apply a patch and re-validate the merged record."""
        unknown = set(partial) - set(self.model.model_fields)
        if unknown:
            raise LedgerValidationError(
                f"Unknown {self.entity_name} fields: {', '.join(sorted(unknown))}"
            )
        derived = self.derived_fields & set(partial)
        if derived:
            raise LedgerValidationError(
                f"Derived fields are maintained by the ledger: {', '.join(sorted(derived))}"
            )
        frozen = IMMUTABLE_FIELDS & set(partial)
        if frozen:
            raise LedgerValidationError(
                f"Fields cannot be updated: {', '.join(sorted(frozen))}"
            )
        data = record.model_dump()
        data.update(partial)
        data["updated_at"] = utc_now()
        return self.model.model_validate(data)

    async def _save(self, record: DocT) -> DocT:
        rev = await self._store.put(self.collection, record.to_document())
        return record.model_copy(update={"rev": rev})

    async def create(self, data: Union[DocT, dict[str, Any]]) -> DocT:
        record = await self._save(self._build(data))
        self._logger.info("record_created", record_id=record.id)
        self._bus.publish(self.topic)
        return record

    async def update(self, record_id: str, partial: dict[str, Any]) -> DocT:
        """
        Merge `partial` into a stored record.

        Raises:
            EntityNotFoundError: If the record does not exist
            LedgerValidationError: If the patch names unknown or immutable fields
            ConflictError: If the record changed since it was read
        """
        record = await self._save(self._merge(await self._require(record_id), partial))
        self._logger.info("record_updated", record_id=record_id, fields=sorted(partial))
        self._bus.publish(self.topic)
        return record

    async def delete(self, record_id: str) -> bool:
        doc = await self._store.get(self.collection, record_id)
        if doc is None:
            return False
        await self._store.remove(self.collection, record_id, doc["_rev"])
        self._logger.info("record_deleted", record_id=record_id)
        self._bus.publish(self.topic)
        return True
