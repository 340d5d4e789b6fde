"""
Shared Snapshot Models

Flat, denormalized projections published for other household members.

CRITICAL: These records have no foreign keys. Names are embedded as plain
strings so a viewer never needs access to the private collections.
They have no lifecycle of their own: every publish replaces all of them.
"""

from decimal import Decimal
from enum import Enum

from pydantic import Field

from household_ledger.models.base import CamelModel, UtcDatetime


class SharedDocType(str, Enum):
    TRANSACTION = "TRANSACTION"
    BALANCE = "BALANCE"


class SharedTransaction(CamelModel):
    id: str
    date: UtcDatetime
    amount: Decimal
    type: str
    category_name: str
    description: str = ""
    account_name: str
    user: str

    def to_document(self) -> dict:
        doc = self.model_dump(mode="json", by_alias=True)
        doc["_id"] = f"tx_{self.id}"
        doc["docType"] = SharedDocType.TRANSACTION.value
        return doc


class SharedAccountBalance(CamelModel):
    id: str
    name: str
    type: str
    balance: Decimal
    currency: str

    def to_document(self) -> dict:
        doc = self.model_dump(mode="json", by_alias=True)
        doc["_id"] = f"bal_{self.id}"
        doc["docType"] = SharedDocType.BALANCE.value
        return doc


class SnapshotSummary(CamelModel):
    """What a publish run removed and wrote."""

    household_id: str
    published_at: UtcDatetime
    removed_count: int = Field(..., ge=0)
    transaction_count: int = Field(..., ge=0)
    balance_count: int = Field(..., ge=0)

    @property
    def total_published(self) -> int:
        return self.transaction_count + self.balance_count
