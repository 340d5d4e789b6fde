"""
Credit Facility Engine

Credit cards: outstanding balance (maintained by the ledger), payments and
monthly billing statements.

Statement cycle for billing day B, generated on `today`:
- anchor     = day B of this month if today.day >= B, else of last month
               (B clamped to the month length)
- cycle_end  = anchor - 1 day
- cycle_start= day B of the month before the anchor (clamped), which is
               the previous anchor, so consecutive cycles never overlap
- due_date   = cycle_end + CREDIT_STATEMENT_DUE_DAYS
Generating twice for the same cycle is a no-op.
"""

from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from household_ledger.analytics.finance_math import ZERO, calculate_credit_card_interest
from household_ledger.config import get_settings
from household_ledger.models.base import utc_now
from household_ledger.models.ledger import (
    CreditFacility,
    Statement,
    StatementStatus,
    Transaction,
    TransactionType,
)
from household_ledger.notifications import ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.storage import Collection
from household_ledger.utils.dates import as_date, clamped_day, end_of_day, start_of_day


def statement_cycle(billing_day: int, today: date) -> tuple[date, date]:
    """(cycle_start, cycle_end) of the most recently closed cycle."""
    if today.day >= billing_day:
        anchor = clamped_day(today.year, today.month, billing_day)
    else:
        previous = today.replace(day=1) - relativedelta(months=1)
        anchor = clamped_day(previous.year, previous.month, billing_day)
    before = anchor.replace(day=1) - relativedelta(months=1)
    cycle_start = clamped_day(before.year, before.month, billing_day)
    return cycle_start, anchor - timedelta(days=1)


class CreditFacilityService(CollectionService[CreditFacility]):
    collection = Collection.CREDIT_FACILITIES
    model = CreditFacility
    topic = ChangeTopic.CREDIT_FACILITIES_CHANGED
    entity_name = "Credit facility"
    derived_fields = frozenset({"current_outstanding", "statements", "last_adjustment_id"})

    async def get_all_active(self, household_id: Optional[str] = None) -> list[CreditFacility]:
        return [f for f in await self.get_all(household_id) if not f.is_archived]

    async def archive(self, facility_id: str) -> CreditFacility:
        return await self.update(facility_id, {"is_archived": True})

    async def get_latest_statement(self, facility_id: str) -> Optional[Statement]:
        facility = await self._require(facility_id)
        return facility.statements[0] if facility.statements else None

    async def _cycle_transactions(self, facility_id: str, start: date, end: date) -> list[Transaction]:
        docs = await self._store.find(Collection.TRANSACTIONS, {"accountId": facility_id})
        start_at, end_at = start_of_day(start), end_of_day(end)
        transactions = [Transaction.from_document(d) for d in docs]
        return [t for t in transactions if start_at <= t.date <= end_at]

    async def generate_statement(
        self, facility_id: str, today: Optional[date] = None
    ) -> Optional[Statement]:
        """
        Close the most recent billing cycle into a statement.

        Returns:
            The new statement, or None if one already exists for the cycle

        Raises:
            EntityNotFoundError: If the facility does not exist
        """
        facility = await self._require(facility_id)
        settings = get_settings().credit
        today = as_date(today or utc_now())

        cycle_start, cycle_end = statement_cycle(facility.billing_cycle, today)
        if any(s.cycle_end == cycle_end for s in facility.statements):
            self._logger.info(
                "statement_already_exists",
                facility_id=facility_id,
                cycle_end=cycle_end.isoformat(),
            )
            return None

        transactions = await self._cycle_transactions(facility_id, cycle_start, cycle_end)
        charges = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), ZERO)
        payments = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), ZERO)

        previous_closing = facility.statements[0].closing_balance if facility.statements else ZERO
        closing = previous_closing + charges - payments
        minimum_due = (closing * Decimal(str(settings.minimum_due_rate))).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )

        statement = Statement(
            statement_date=datetime.combine(today, utc_now().timetz()),
            cycle_start=cycle_start,
            cycle_end=cycle_end,
            due_date=cycle_end + timedelta(days=settings.statement_due_days),
            closing_balance=max(ZERO, closing),
            minimum_due=max(ZERO, minimum_due),
            total_payments=payments,
            status=StatementStatus.PAID if closing <= 0 else StatementStatus.UNPAID,
        )

        facility.statements.insert(0, statement)
        facility.updated_at = utc_now()
        await self._save(facility)
        self._logger.info(
            "statement_generated",
            facility_id=facility_id,
            cycle_start=cycle_start.isoformat(),
            cycle_end=cycle_end.isoformat(),
            closing_balance=str(statement.closing_balance),
        )
        self._bus.publish(self.topic)
        return statement

    async def record_payment(self, facility_id: str, amount: Decimal) -> CreditFacility:
        """
        Reduce the outstanding balance, never below zero.

        Raises:
            EntityNotFoundError: If the facility does not exist
        """
        facility = await self._require(facility_id)
        facility.current_outstanding = max(ZERO, facility.current_outstanding - Decimal(str(amount)))
        facility.updated_at = utc_now()
        facility = await self._save(facility)
        self._logger.info(
            "credit_payment_recorded",
            facility_id=facility_id,
            amount=str(amount),
            outstanding=str(facility.current_outstanding),
        )
        self._bus.publish(self.topic)
        return facility

    async def calculate_interest(self, facility_id: str, days: int = 30) -> Decimal:
        """Interest the current outstanding would accrue over `days` at the card's APR."""
        facility = await self._require(facility_id)
        return calculate_credit_card_interest(facility.current_outstanding, facility.apr, days)
