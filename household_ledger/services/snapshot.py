"""
Snapshot Publisher

Projects the current month's activity and all active balances into the
shared collection, flattened so a viewer needs no access to the private
collections.

DESIGN DECISION: Every publish is a full replace (delete everything, then
insert). Simple, idempotent, and the shared collection is small.
"""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Optional

from household_ledger.audit import get_logger
from household_ledger.config import get_settings
from household_ledger.models.base import utc_now
from household_ledger.models.snapshot import (
    SharedAccountBalance,
    SharedDocType,
    SharedTransaction,
    SnapshotSummary,
)
from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services.accounts import AccountService
from household_ledger.services.categories import CategoryService
from household_ledger.services.credit import CreditFacilityService
from household_ledger.services.ledger import TransactionService
from household_ledger.services.storage import Collection, DocumentStoreInterface
from household_ledger.utils.dates import month_bounds


CREDIT_CARD_TYPE = "Credit Card"
SNAPSHOT_USER = "Owner"


class SnapshotPublisher:
    def __init__(
        self,
        store: DocumentStoreInterface,
        bus: ChangeBus,
        transactions: TransactionService,
        accounts: AccountService,
        credit_facilities: CreditFacilityService,
        categories: CategoryService,
    ):
        self._store = store
        self._bus = bus
        self._transactions = transactions
        self._accounts = accounts
        self._credit_facilities = credit_facilities
        self._categories = categories
        self._logger = get_logger("snapshot")

    async def publish_snapshot(
        self, household_id: str, now: Optional[datetime] = None
    ) -> SnapshotSummary:
        """Replace the shared collection with a fresh projection."""
        now = now or utc_now()
        month_start, month_end = month_bounds(now)

        transactions = await self._transactions.get_by_date_range(month_start, month_end, household_id)
        accounts = await self._accounts.get_all_active(household_id)
        facilities = await self._credit_facilities.get_all_active(household_id)
        categories = await self._categories.get_all(household_id)

        category_names = {c.id: c.name for c in categories}
        account_names = {a.id: a.name for a in accounts}
        account_names.update({f.id: f.name for f in facilities})

        existing = await self._store.all_docs(Collection.SHARED)
        if existing:
            await self._store.bulk_docs(Collection.SHARED, [
                {"_id": doc["_id"], "_rev": doc["_rev"], "_deleted": True} for doc in existing
            ])

        shared_transactions = [
            SharedTransaction(
                id=t.id,
                date=t.date,
                amount=t.amount,
                type=t.type.value,
                category_name=category_names.get(t.category_id or "", "Uncategorized"),
                description=t.description or "",
                account_name=account_names.get(t.account_id, "Unknown Account"),
                user=SNAPSHOT_USER,
            )
            for t in transactions
        ]
        balances = [
            SharedAccountBalance(
                id=a.id, name=a.name, type=a.type.value, balance=a.balance, currency=a.currency
            )
            for a in accounts
        ]
        balances += [
            SharedAccountBalance(
                id=f.id,
                name=f.name,
                type=CREDIT_CARD_TYPE,
                balance=-f.current_outstanding if f.current_outstanding else Decimal("0"),
                currency=f.currency,
            )
            for f in facilities
        ]

        new_docs = [t.to_document() for t in shared_transactions] + [b.to_document() for b in balances]
        if new_docs:
            await self._store.bulk_docs(Collection.SHARED, new_docs)

        summary = SnapshotSummary(
            household_id=household_id,
            published_at=utc_now(),
            removed_count=len(existing),
            transaction_count=len(shared_transactions),
            balance_count=len(balances),
        )
        self._logger.info(
            "snapshot_published",
            household_id=household_id,
            removed=summary.removed_count,
            published=summary.total_published,
        )
        self._bus.publish(ChangeTopic.SHARED_SNAPSHOT_CHANGED)
        return summary

    async def get_shared_transactions(self) -> list[SharedTransaction]:
        docs = await self._store.find(Collection.SHARED, {"docType": SharedDocType.TRANSACTION.value})
        shared = [SharedTransaction.model_validate(doc) for doc in docs]
        return sorted(shared, key=lambda t: t.date, reverse=True)

    async def get_shared_balances(self) -> list[SharedAccountBalance]:
        docs = await self._store.find(Collection.SHARED, {"docType": SharedDocType.BALANCE.value})
        return [SharedAccountBalance.model_validate(doc) for doc in docs]

    async def run_periodically(
        self,
        household_id: str,
        stop_event: asyncio.Event,
        interval_seconds: Optional[float] = None,
    ) -> int:
        """
        Publish now and then every `interval_seconds` until `stop_event` is set.

        The interval defaults to SNAPSHOT_INTERVAL_SECONDS. A failed publish
        is logged and retried on the next tick.

        Returns:
            Number of successful publishes
        """
        if interval_seconds is None:
            interval_seconds = get_settings().snapshot.interval_seconds
        published = 0
        while not stop_event.is_set():
            try:
                await self.publish_snapshot(household_id)
                published += 1
            except Exception as e:
                self._logger.error("snapshot_publish_failed", household_id=household_id, error=str(e))
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
        return published
