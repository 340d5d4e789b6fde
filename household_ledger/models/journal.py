"""
Balance Journal Models

DESIGN DECISION: The document store has no multi-document transactions,
so "save transaction + adjust balance" cannot be atomic. Instead, every
ledger mutation writes a journal entry describing the balance steps it is
about to apply. A step stamps its id on the target when applied, which
makes re-applying a step after a crash a no-op.

The journal is write-ahead only: settled entries are deleted.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from household_ledger.models.base import CamelModel, LedgerDocument, UtcDatetime, new_id
from household_ledger.models.ledger import Transaction


class BalanceTarget(str, Enum):
    """Which derived field a step moves."""
    ACCOUNT = "account"                  # Account.balance
    CREDIT_FACILITY = "credit_facility"  # CreditFacility.current_outstanding


class LedgerOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class JournalStep(CamelModel):
    """One signed change to one derived field."""

    id: str = Field(default_factory=new_id)
    target: BalanceTarget
    target_id: str
    delta: Decimal
    description: str = Field(..., description="e.g. 'revert funding', 'apply transfer'")
    applied: bool = False
    skipped: bool = Field(
        default=False,
        description="Target vanished before the step could be applied"
    )


class JournalEntry(LedgerDocument):
    transaction_id: str
    operation: LedgerOperation
    steps: list[JournalStep] = Field(default_factory=list)
    record_stamp: Optional[UtcDatetime] = Field(
        default=None,
        description="updated_at written to the transaction; proves the record write landed"
    )

    @property
    def is_settled(self) -> bool:
        return all(step.applied or step.skipped for step in self.steps)


class BalanceAdjustmentIssue(CamelModel):
    """A balance step that was skipped or could not be applied."""

    target_id: str
    target: Optional[BalanceTarget] = None
    delta: Decimal
    reason: str


class LedgerWriteResult(BaseModel):
    """
    Outcome of a ledger mutation.

    The record write and the balance adjustments are reported separately:
    a result can carry a saved transaction and still list issues.
    """

    transaction_id: str
    transaction: Optional[Transaction] = None
    issues: list[BalanceAdjustmentIssue] = Field(default_factory=list)
    pending_journal_id: Optional[str] = Field(
        default=None,
        description="Journal entry left for recover_pending() when steps failed"
    )

    @property
    def fully_applied(self) -> bool:
        return not self.issues
