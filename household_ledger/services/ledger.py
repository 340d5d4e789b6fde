"""
Ledger Engine

Owns the transaction log and keeps the derived balances in step with it.

DESIGN DECISION: Every mutation is expressed as signed balance effects:
- create: apply the new record's effects
- update: revert the stored record's effects, then apply the merged record's
- delete: revert the stored record's effects

The effects are planned up front, written to the balance journal, and only
then is the transaction record written. That ordering means a crash can
always be repaired by recover_pending() and a failed balance write never
loses the record.

Effect signs:
- Account funding:          INCOME +amount, every other type -amount
- Credit facility funding:  EXPENSE/DEBT +amount, every other type -amount
- TRANSFER destination:     +amount on the destination account
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional, Union

from household_ledger.config import get_settings
from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models.base import utc_now
from household_ledger.models.journal import (
    BalanceAdjustmentIssue,
    BalanceTarget,
    JournalEntry,
    LedgerOperation,
    LedgerWriteResult,
)
from household_ledger.models.ledger import Account, Transaction, TransactionType
from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.journal import BalanceJournal, merge_steps
from household_ledger.services.storage import Collection, DocumentStoreInterface, StorageError
from household_ledger.session import SessionContext
from household_ledger.utils.dates import window


# Patches that would change a balance effect must go through update()
FINANCIAL_FIELDS = frozenset({"amount", "type", "account_id", "transfer_account_id"})

Effect = tuple[BalanceTarget, str, Decimal, str]


def balance_effect(tx_type: TransactionType, amount: Decimal, target: BalanceTarget) -> Decimal:
    """Signed change a transaction makes to its funding source."""
    if target == BalanceTarget.CREDIT_FACILITY:
        increases = tx_type in (TransactionType.EXPENSE, TransactionType.DEBT)
    else:
        increases = tx_type == TransactionType.INCOME
    return amount if increases else -amount


def sort_by_date_desc(transactions: list[Transaction]) -> list[Transaction]:
    return sorted(transactions, key=lambda t: t.date, reverse=True)


class TransactionService(CollectionService[Transaction]):
    """CRUD and queries over the transaction log, with balance maintenance."""

    collection = Collection.TRANSACTIONS
    model = Transaction
    topic = ChangeTopic.TRANSACTIONS_CHANGED
    entity_name = "Transaction"

    def __init__(
        self,
        store: DocumentStoreInterface,
        session: SessionContext,
        bus: ChangeBus,
        journal: Optional[BalanceJournal] = None,
    ):
        super().__init__(store, session, bus)
        self._journal = journal or BalanceJournal(store)
        self._split_tolerance = Decimal(str(get_settings().ledger.split_tolerance))

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_all(self, household_id: Optional[str] = None) -> list[Transaction]:
        return sort_by_date_desc(await super().get_all(household_id))

    async def get_by_date_range(
        self,
        start: Union[date, datetime],
        end: Union[date, datetime],
        household_id: Optional[str] = None,
    ) -> list[Transaction]:
        """Transactions with start <= date <= end. Plain dates cover whole days."""
        start_at, end_at = window(start, end)
        return [t for t in await self.get_all(household_id) if start_at <= t.date <= end_at]

    async def get_by_account(self, account_id: str) -> list[Transaction]:
        docs = await self._store.find(self.collection, {"accountId": account_id})
        return sort_by_date_desc([Transaction.from_document(d) for d in docs])

    async def get_by_category(self, category_id: str) -> list[Transaction]:
        docs = await self._store.find(self.collection, {"categoryId": category_id})
        return sort_by_date_desc([Transaction.from_document(d) for d in docs])

    async def _total(self, tx_type: TransactionType, start, end, household_id) -> Decimal:
        transactions = await self.get_by_date_range(start, end, household_id)
        return sum((t.amount for t in transactions if t.type == tx_type), Decimal("0"))

    async def get_total_income(self, start, end, household_id: Optional[str] = None) -> Decimal:
        return await self._total(TransactionType.INCOME, start, end, household_id)

    async def get_total_expense(self, start, end, household_id: Optional[str] = None) -> Decimal:
        return await self._total(TransactionType.EXPENSE, start, end, household_id)

    async def get_total_investments(self, start, end, household_id: Optional[str] = None) -> Decimal:
        return await self._total(TransactionType.INVESTMENT, start, end, household_id)

    # =========================================================================
    # VALIDATION & EFFECT PLANNING
    # =========================================================================

    def _check_rules(self, tx: Transaction) -> None:
        if tx.type == TransactionType.TRANSFER:
            if not tx.transfer_account_id:
                raise LedgerValidationError("Transfer requires a destination account")
            if tx.transfer_account_id == tx.account_id:
                raise LedgerValidationError("Transfer destination must differ from the source account")
        if tx.is_split:
            difference = abs(tx.amount - tx.splits_total)
            if difference > self._split_tolerance:
                raise LedgerValidationError(
                    f"Split amounts ({tx.splits_total}) must equal the transaction amount "
                    f"({tx.amount})"
                )

    async def _resolve_funding(self, account_id: str) -> Optional[BalanceTarget]:
        """Accounts are tried first, then credit facilities."""
        if await self._store.get(Collection.ACCOUNTS, account_id) is not None:
            return BalanceTarget.ACCOUNT
        if await self._store.get(Collection.CREDIT_FACILITIES, account_id) is not None:
            return BalanceTarget.CREDIT_FACILITY
        return None

    async def _plan_effects(
        self,
        tx: Transaction,
        sign: int,
        label: str,
        issues: list[BalanceAdjustmentIssue],
    ) -> list[Effect]:
        """Signed effects of `tx` (sign -1 reverts). Missing targets become issues."""
        effects: list[Effect] = []

        try:
            target = await self._resolve_funding(tx.account_id)
        except StorageError as e:
            target = None
            reason = f"Funding source lookup failed: {e}"
        else:
            reason = f"Funding source not found: {tx.account_id}"

        funding_delta = sign * tx.amount
        if target is None:
            issues.append(BalanceAdjustmentIssue(
                target_id=tx.account_id, delta=funding_delta, reason=reason
            ))
            self._logger.warning(
                "balance_adjustment_skipped",
                transaction_id=tx.id,
                account_id=tx.account_id,
                reason=reason,
            )
        else:
            delta = sign * balance_effect(tx.type, tx.amount, target)
            effects.append((target, tx.account_id, delta, f"{label} funding"))

        if tx.type == TransactionType.TRANSFER and tx.transfer_account_id:
            try:
                exists = await self._store.get(Collection.ACCOUNTS, tx.transfer_account_id) is not None
                reason = f"Transfer destination not found: {tx.transfer_account_id}"
            except StorageError as e:
                exists = False
                reason = f"Transfer destination lookup failed: {e}"
            if exists:
                effects.append((BalanceTarget.ACCOUNT, tx.transfer_account_id, sign * tx.amount, f"{label} transfer"))
            else:
                issues.append(BalanceAdjustmentIssue(
                    target_id=tx.transfer_account_id,
                    target=BalanceTarget.ACCOUNT,
                    delta=sign * tx.amount,
                    reason=reason,
                ))
                self._logger.warning(
                    "balance_adjustment_skipped",
                    transaction_id=tx.id,
                    account_id=tx.transfer_account_id,
                    reason=reason,
                )

        return effects

    async def _commit(
        self,
        operation: LedgerOperation,
        tx: Transaction,
        effects: list[Effect],
        issues: list[BalanceAdjustmentIssue],
        write: Callable[[], Awaitable[Optional[str]]],
    ) -> LedgerWriteResult:
        """Journal the effects, write the record, then settle the journal."""
        steps = merge_steps(effects)
        entry: Optional[JournalEntry] = None
        if steps:
            entry = await self._journal.open(
                household_id=tx.household_id or self._session.household_id,
                transaction_id=tx.id,
                operation=operation,
                steps=steps,
                record_stamp=None if operation == LedgerOperation.DELETE else tx.updated_at,
            )

        try:
            rev = await write()
        except Exception:
            if entry is not None:
                await self._journal.discard(entry)
            raise

        if rev:
            tx = tx.model_copy(update={"rev": rev})

        pending_id = None
        if entry is not None:
            issues = issues + await self._journal.settle(entry)
            if not entry.is_settled:
                pending_id = entry.id

        topics = [ChangeTopic.TRANSACTIONS_CHANGED, ChangeTopic.ACCOUNTS_CHANGED]
        if any(step.target == BalanceTarget.CREDIT_FACILITY for step in steps):
            topics.append(ChangeTopic.CREDIT_FACILITIES_CHANGED)
        self._bus.publish(*topics)

        self._logger.info(
            f"transaction_{operation.value}d",
            transaction_id=tx.id,
            type=tx.type.value,
            amount=str(tx.amount),
            steps=len(steps),
            issues=len(issues),
        )
        return LedgerWriteResult(
            transaction_id=tx.id,
            transaction=tx,
            issues=issues,
            pending_journal_id=pending_id,
        )

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def _stamp_creator(self, tx: Transaction) -> Transaction:
        user = self._session.current_user
        if user is None:
            return tx
        return tx.model_copy(update={
            "user_id": tx.user_id or user.id,
            "created_by_name": tx.created_by_name or user.name,
            "user_color": tx.user_color or user.color,
        })

    async def create(self, data: Union[Transaction, dict[str, Any]]) -> LedgerWriteResult:
        """
        Record a transaction and apply its balance effects.

        Raises:
            LedgerValidationError: Transfer without a distinct destination,
                or split amounts that do not add up
        """
        tx = self._stamp_creator(self._build(data))
        self._check_rules(tx)

        issues: list[BalanceAdjustmentIssue] = []
        effects = await self._plan_effects(tx, 1, "apply", issues)

        async def write() -> str:
            return await self._store.put(self.collection, tx.to_document())

        return await self._commit(LedgerOperation.CREATE, tx, effects, issues, write)

    async def save_split_transaction(
        self, data: Union[Transaction, dict[str, Any]]
    ) -> LedgerWriteResult:
        """
        Create a transaction divided across categories.

        Raises:
            LedgerValidationError: No splits, or split amounts that do not add up
        """
        splits = data.splits if isinstance(data, Transaction) else data.get("splits")
        if not splits:
            raise LedgerValidationError("Split transaction must have at least one split")
        if isinstance(data, Transaction):
            tx = data if data.is_split else data.model_copy(update={"is_split": True})
        else:
            tx = Transaction.model_validate({**data, "is_split": True})
        return await self.create(tx)

    async def update(self, record_id: str, partial: dict[str, Any]) -> LedgerWriteResult:
        """
        Merge `partial` into a transaction, reverting the old effects and
        applying the new ones.

        Raises:
            EntityNotFoundError: If the transaction does not exist
            LedgerValidationError: If the merged record breaks a ledger rule
            ConflictError: If the transaction changed since it was read
        """
        old = await self._require(record_id)
        merged = self._merge(old, partial)
        self._check_rules(merged)

        issues: list[BalanceAdjustmentIssue] = []
        effects = await self._plan_effects(old, -1, "revert", issues)
        effects += await self._plan_effects(merged, 1, "apply", issues)

        async def write() -> str:
            return await self._store.put(self.collection, merged.to_document())

        return await self._commit(LedgerOperation.UPDATE, merged, effects, issues, write)

    async def delete(self, record_id: str) -> LedgerWriteResult:
        """Revert a transaction's effects and remove it. Absent ids are a no-op."""
        old = await self.get_by_id(record_id)
        if old is None:
            return LedgerWriteResult(transaction_id=record_id)

        issues: list[BalanceAdjustmentIssue] = []
        effects = await self._plan_effects(old, -1, "revert", issues)

        async def write() -> None:
            await self._store.remove(self.collection, old.id, old.rev)

        return await self._commit(LedgerOperation.DELETE, old, effects, issues, write)

    async def bulk_update(self, ids: list[str], partial: dict[str, Any]) -> list[Transaction]:
        """
        Patch descriptive fields of many transactions in one batch.

        Raises:
            LedgerValidationError: If the patch touches a balance-affecting field
        """
        financial = FINANCIAL_FIELDS & set(partial)
        if financial:
            raise LedgerValidationError(
                f"Bulk update cannot change {', '.join(sorted(financial))}; use update()"
            )

        updated: list[Transaction] = []
        for record_id in ids:
            record = await self.get_by_id(record_id)
            if record is None:
                self._logger.warning("bulk_update_missing", transaction_id=record_id)
                continue
            merged = self._merge(record, partial)
            self._check_rules(merged)
            updated.append(merged)

        if not updated:
            return []

        revs = await self._store.bulk_docs(self.collection, [t.to_document() for t in updated])
        updated = [t.model_copy(update={"rev": rev}) for t, rev in zip(updated, revs)]
        self._logger.info("transactions_bulk_updated", count=len(updated), fields=sorted(partial))
        self._bus.publish(ChangeTopic.TRANSACTIONS_CHANGED)
        return updated

    # =========================================================================
    # REPLAY & RECOVERY
    # =========================================================================

    async def _require_account(self, account_id: str) -> Account:
        doc = await self._store.get(Collection.ACCOUNTS, account_id)
        if doc is None:
            raise EntityNotFoundError("Account", account_id)
        return Account.from_document(doc)

    async def recompute_balance(self, account_id: str) -> Decimal:
        """Opening balance plus the signed effects of every existing transaction."""
        account = await self._require_account(account_id)
        balance = account.opening_balance or Decimal("0")
        for tx in await self.get_all(account.household_id):
            if tx.account_id == account_id:
                balance += balance_effect(tx.type, tx.amount, BalanceTarget.ACCOUNT)
            if tx.type == TransactionType.TRANSFER and tx.transfer_account_id == account_id:
                balance += tx.amount
        return balance

    async def reconcile_account(self, account_id: str) -> Account:
        """Rewrite an account's cached balance from the log if it drifted."""
        account = await self._require_account(account_id)
        expected = await self.recompute_balance(account_id)
        if expected == account.balance:
            return account

        self._logger.warning(
            "balance_drift_corrected",
            account_id=account_id,
            cached=str(account.balance),
            recomputed=str(expected),
        )
        account.balance = expected
        account.updated_at = utc_now()
        account.rev = await self._store.put(Collection.ACCOUNTS, account.to_document())
        self._bus.publish(ChangeTopic.ACCOUNTS_CHANGED)
        return account

    async def _record_committed(self, entry: JournalEntry) -> bool:
        """Did the transaction write that follows this journal entry land?"""
        doc = await self._store.get(self.collection, entry.transaction_id)
        if entry.operation == LedgerOperation.DELETE:
            return doc is None
        if doc is None:
            return False
        return Transaction.from_document(doc).updated_at == entry.record_stamp

    async def recover_pending(self, household_id: Optional[str] = None) -> list[LedgerWriteResult]:
        """
        Settle journal entries left behind by interrupted mutations.

        Entries whose transaction write never landed are discarded; the
        others have their remaining steps applied.
        """
        results = []
        for entry in await self._journal.pending(household_id):
            if not await self._record_committed(entry):
                self._logger.info("journal_entry_discarded", journal_id=entry.id)
                await self._journal.discard(entry)
                continue

            issues = await self._journal.settle(entry)
            self._logger.info(
                "journal_entry_recovered",
                journal_id=entry.id,
                transaction_id=entry.transaction_id,
                settled=entry.is_settled,
            )
            results.append(LedgerWriteResult(
                transaction_id=entry.transaction_id,
                issues=issues,
                pending_journal_id=None if entry.is_settled else entry.id,
            ))

        if results:
            self._bus.publish(
                ChangeTopic.ACCOUNTS_CHANGED, ChangeTopic.CREDIT_FACILITIES_CHANGED
            )
        return results
