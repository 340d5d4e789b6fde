"""
Balance Journal

Write-ahead log for balance adjustments. The ledger opens an entry before
it writes a transaction, settles it afterwards and deletes it once every
step landed. Entries that survive a crash are settled by recover_pending().

Idempotency: an applied step leaves its id in `last_adjustment_id` on the
target. Steps are merged per target, so each entry moves a target at most
once and the marker identifies it unambiguously.
"""

from decimal import Decimal
from typing import Optional, Union

from pydantic import ValidationError

from household_ledger.audit import get_logger
from household_ledger.errors import EntityNotFoundError
from household_ledger.models.base import utc_now
from household_ledger.models.journal import (
    BalanceAdjustmentIssue,
    BalanceTarget,
    JournalEntry,
    JournalStep,
    LedgerOperation,
)
from household_ledger.models.ledger import Account, CreditFacility
from household_ledger.services.storage import Collection, DocumentStoreInterface, StorageError


TARGET_COLLECTIONS = {
    BalanceTarget.ACCOUNT: (Collection.ACCOUNTS, Account),
    BalanceTarget.CREDIT_FACILITY: (Collection.CREDIT_FACILITIES, CreditFacility),
}


class BalanceJournal:
    """Opens, settles and discards journal entries."""

    def __init__(self, store: DocumentStoreInterface):
        self._store = store
        self._logger = get_logger("ledger_journal")

    async def open(
        self,
        household_id: str,
        transaction_id: str,
        operation: LedgerOperation,
        steps: list[JournalStep],
        record_stamp=None,
    ) -> JournalEntry:
        now = utc_now()
        entry = JournalEntry(
            household_id=household_id,
            transaction_id=transaction_id,
            operation=operation,
            steps=steps,
            record_stamp=record_stamp,
            created_at=now,
            updated_at=now,
        )
        entry.rev = await self._store.put(Collection.LEDGER_JOURNAL, entry.to_document())
        return entry

    async def discard(self, entry: JournalEntry) -> None:
        doc = await self._store.get(Collection.LEDGER_JOURNAL, entry.id)
        if doc is not None:
            await self._store.remove(Collection.LEDGER_JOURNAL, entry.id, doc["_rev"])

    async def pending(self, household_id: Optional[str] = None) -> list[JournalEntry]:
        selector = {"householdId": household_id} if household_id else None
        docs = await self._store.find(Collection.LEDGER_JOURNAL, selector)
        entries = [JournalEntry.from_document(doc) for doc in docs]
        return sorted(entries, key=lambda e: e.created_at or utc_now())

    async def settle(self, entry: JournalEntry) -> list[BalanceAdjustmentIssue]:
        """
        Apply every unsettled step of `entry`.

        Failures are logged and returned as issues; the entry is kept when
        a step is still pending and deleted once all steps are settled.
        """
        issues: list[BalanceAdjustmentIssue] = []

        for step in entry.steps:
            if step.applied or step.skipped:
                continue
            try:
                await self._apply(step)
                step.applied = True
            except EntityNotFoundError as e:
                step.skipped = True
                issues.append(self._issue(step, str(e)))
            except ValidationError as e:
                step.skipped = True
                issues.append(self._issue(step, f"Target document is invalid: {e.error_count()} errors"))
            except StorageError as e:
                issues.append(self._issue(step, str(e)))

        try:
            if entry.is_settled:
                await self.discard(entry)
            else:
                entry.updated_at = utc_now()
                entry.rev = await self._store.put(Collection.LEDGER_JOURNAL, entry.to_document())
        except StorageError as e:
            self._logger.error("journal_write_failed", journal_id=entry.id, error=str(e))

        return issues

    def _issue(self, step: JournalStep, reason: str) -> BalanceAdjustmentIssue:
        self._logger.warning(
            "balance_adjustment_failed",
            target=step.target.value,
            target_id=step.target_id,
            delta=str(step.delta),
            reason=reason,
        )
        return BalanceAdjustmentIssue(
            target_id=step.target_id,
            target=step.target,
            delta=step.delta,
            reason=reason,
        )

    async def _apply(self, step: JournalStep) -> None:
        collection, model = TARGET_COLLECTIONS[step.target]
        doc = await self._store.get(collection, step.target_id)
        if doc is None:
            raise EntityNotFoundError(model.__name__, step.target_id)

        target: Union[Account, CreditFacility] = model.from_document(doc)
        if target.last_adjustment_id == step.id:
            return

        if isinstance(target, Account):
            target.balance += step.delta
        else:
            target.current_outstanding += step.delta
        target.last_adjustment_id = step.id
        target.updated_at = utc_now()
        await self._store.put(collection, target.to_document())


def merge_steps(
    effects: list[tuple[BalanceTarget, str, Decimal, str]],
) -> list[JournalStep]:
    """
    Collapse (target, id, delta, description) effects into one step per target.

    Effects that cancel out produce no step.
    """
    merged: dict[tuple[BalanceTarget, str], JournalStep] = {}
    for target, target_id, delta, description in effects:
        key = (target, target_id)
        if key in merged:
            step = merged[key]
            step.delta += delta
            step.description = f"{step.description}; {description}"
        else:
            merged[key] = JournalStep(
                target=target, target_id=target_id, delta=delta, description=description
            )
    return [step for step in merged.values() if step.delta != 0]
