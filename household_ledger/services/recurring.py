"""
Recurring Payment Engine

Subscriptions and standing payments. Processing a payment records the real
transaction through the ledger and moves the schedule one period forward.

CRITICAL: next_due_date always advances from the previous due date, never
from the payment date, so paying late or early does not shift the schedule.
"""

from datetime import date, datetime, timedelta
from typing import Any, Optional, Union

from household_ledger.errors import LedgerValidationError
from household_ledger.models.base import ensure_utc, utc_now
from household_ledger.models.journal import LedgerWriteResult
from household_ledger.models.ledger import RecurringItem, RecurringStatus
from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.ledger import TransactionService
from household_ledger.services.storage import Collection, DocumentStoreInterface
from household_ledger.session import SessionContext
from household_ledger.utils.dates import add_period, as_date


class RecurringService(CollectionService[RecurringItem]):
    collection = Collection.RECURRING
    model = RecurringItem
    topic = ChangeTopic.RECURRING_CHANGED
    entity_name = "Recurring item"

    def __init__(
        self,
        store: DocumentStoreInterface,
        session: SessionContext,
        bus: ChangeBus,
        transactions: TransactionService,
    ):
        super().__init__(store, session, bus)
        self._transactions = transactions

    def _build(self, data: Union[RecurringItem, dict[str, Any]]) -> RecurringItem:
        item = super()._build(data)
        user = self._session.current_user
        return item.model_copy(update={
            "status": RecurringStatus.ACTIVE,
            "start_date": item.start_date or item.next_due_date,
            "user_id": item.user_id or (user.id if user else None),
        })

    async def get_all_active(self, household_id: Optional[str] = None) -> list[RecurringItem]:
        return [r for r in await self.get_all(household_id) if r.status == RecurringStatus.ACTIVE]

    async def get_upcoming(
        self,
        household_id: Optional[str] = None,
        days_ahead: int = 30,
        now: Optional[Union[date, datetime]] = None,
    ) -> list[RecurringItem]:
        """ACTIVE items due within the next `days_ahead` days, soonest first."""
        today = as_date(now or utc_now())
        limit = today + timedelta(days=days_ahead)
        upcoming = [
            r for r in await self.get_all_active(household_id)
            if today <= r.next_due_date <= limit
        ]
        return sorted(upcoming, key=lambda r: r.next_due_date)

    async def process_payment(
        self,
        item_id: str,
        account_id: Optional[str] = None,
        actual_date: Optional[datetime] = None,
    ) -> LedgerWriteResult:
        """
        Record this period's payment and advance the schedule.

        Raises:
            EntityNotFoundError: If the item does not exist
            LedgerValidationError: If neither the call nor the item names an account
        """
        item = await self._require(item_id)
        account_id = account_id or item.account_id
        if not account_id:
            raise LedgerValidationError(f"No account to pay recurring item from: {item.name}")
        paid_at = ensure_utc(actual_date) if actual_date else utc_now()

        result = await self._transactions.create({
            "amount": item.amount,
            "type": item.type,
            "description": f"Recurring: {item.name}",
            "date": paid_at,
            "category_id": item.category_id,
            "account_id": account_id,
        })

        next_due = add_period(item.next_due_date, item.frequency)
        item.next_due_date = next_due
        item.last_paid_date = paid_at
        item.updated_at = utc_now()
        await self._save(item)

        self._logger.info(
            "recurring_payment_processed",
            item_id=item_id,
            transaction_id=result.transaction_id,
            next_due_date=next_due.isoformat(),
        )
        self._bus.publish(self.topic)
        return result

    async def pause(self, item_id: str) -> RecurringItem:
        return await self.update(item_id, {"status": RecurringStatus.PAUSED})

    async def resume(self, item_id: str) -> RecurringItem:
        return await self.update(item_id, {"status": RecurringStatus.ACTIVE})
