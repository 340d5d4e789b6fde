"""
Document base model.

Every persisted entity is a pydantic model that round-trips through the
document store as a JSON-mode dict:
- keys are camelCase (the wire format shared with the other apps)
- `_id` carries the document key, `_rev` the revision token
- money is Decimal in Python and a string on disk
- timestamps are timezone-aware UTC; naive input is taken to be UTC
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Optional, TypeVar
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


DocT = TypeVar("DocT", bound="LedgerDocument")


def new_id() -> str:
    """Generate a document id."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Convert to aware UTC. Naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base for embedded records that share the camelCase wire format."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class LedgerDocument(CamelModel):
    """
    Base for top-level documents.

    `household_id` is optional on input; services stamp it from the
    active session on create.
    """

    id: str = Field(
        default_factory=new_id,
        description="Document key"
    )
    household_id: Optional[str] = Field(
        default=None,
        description="Owning household"
    )
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None
    rev: Optional[str] = Field(
        default=None,
        alias="_rev",
        description="Revision token of the stored document"
    )

    def to_document(self) -> dict[str, Any]:
        """Convert to a store document (`_id`/`_rev` keys, camelCase fields)."""
        doc = self.model_dump(mode="json", by_alias=True, exclude={"rev"})
        doc["_id"] = self.id
        if self.rev:
            doc["_rev"] = self.rev
        return doc

    @classmethod
    def from_document(cls: type[DocT], doc: dict[str, Any]) -> DocT:
        """Build a model from a store document."""
        data = dict(doc)
        data.setdefault("id", data.get("_id"))
        return cls.model_validate(data)
