"""Tests for recurring payments."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models import AccountType, Frequency, RecurringStatus
from household_ledger.utils.dates import add_period


class TestAddPeriod:
    """Tests for schedule arithmetic."""

    def test_each_frequency(self):
        """Test one period of every frequency."""
        start = date(2024, 1, 15)
        assert add_period(start, Frequency.WEEKLY) == date(2024, 1, 22)
        assert add_period(start, Frequency.MONTHLY) == date(2024, 2, 15)
        assert add_period(start, Frequency.QUARTERLY) == date(2024, 4, 15)
        assert add_period(start, Frequency.YEARLY) == date(2025, 1, 15)

    def test_month_end_clamps(self):
        """Test Jan 31 + 1 month in a leap year."""
        assert add_period(date(2024, 1, 31), Frequency.MONTHLY) == date(2024, 2, 29)


async def subscription(services, **overrides):
    account = await services.accounts.create({
        "name": "Checking", "type": AccountType.CHECKING, "balance": Decimal("5000")
    })
    data = {
        "name": "Netflix",
        "amount": Decimal("649"),
        "frequency": Frequency.MONTHLY,
        "next_due_date": date(2024, 1, 31),
        "account_id": account.id,
        "category_id": "entertainment",
    }
    data.update(overrides)
    return account, await services.recurring.create(data)


class TestRecurringService:
    """Tests for processing and listing recurring items."""

    @pytest.mark.asyncio
    async def test_create_forces_active(self, services):
        """Test that new items start ACTIVE."""
        _, item = await subscription(services, status=RecurringStatus.PAUSED)
        assert item.status == RecurringStatus.ACTIVE
        assert item.start_date == date(2024, 1, 31)

    @pytest.mark.asyncio
    async def test_process_payment_records_transaction(self, services):
        """Test the ledger transaction created by a payment."""
        account, item = await subscription(services)

        result = await services.recurring.process_payment(item.id, actual_date=datetime(2024, 2, 5, 9, 0))
        tx = result.transaction
        assert tx.description == "Recurring: Netflix"
        assert tx.amount == Decimal("649")
        assert tx.category_id == "entertainment"
        assert tx.date == datetime(2024, 2, 5, 9, 0, tzinfo=timezone.utc)
        assert (await services.accounts.get_by_id(account.id)).balance == Decimal("4351")

    @pytest.mark.asyncio
    async def test_next_due_advances_from_previous_due_date(self, services):
        """Test that a late payment does not shift the schedule."""
        _, item = await subscription(services)

        await services.recurring.process_payment(item.id, actual_date=datetime(2024, 2, 10))
        item = await services.recurring.get_by_id(item.id)
        assert item.next_due_date == date(2024, 2, 29)
        assert item.last_paid_date == datetime(2024, 2, 10, tzinfo=timezone.utc)

        await services.recurring.process_payment(item.id, actual_date=datetime(2024, 3, 1))
        item = await services.recurring.get_by_id(item.id)
        assert item.next_due_date == date(2024, 3, 29)

    @pytest.mark.asyncio
    async def test_explicit_account_overrides_item_account(self, services):
        """Test paying from a different account."""
        _, item = await subscription(services)
        other = await services.accounts.create({"name": "Wallet", "balance": Decimal("1000")})

        await services.recurring.process_payment(item.id, account_id=other.id)
        assert (await services.accounts.get_by_id(other.id)).balance == Decimal("351")

    @pytest.mark.asyncio
    async def test_payment_requires_an_account(self, services):
        """Test that an item without any account cannot be paid."""
        _, item = await subscription(services, account_id=None)
        with pytest.raises(LedgerValidationError):
            await services.recurring.process_payment(item.id)

    @pytest.mark.asyncio
    async def test_unknown_item(self, services):
        """Test that an unknown id is an error."""
        with pytest.raises(EntityNotFoundError):
            await services.recurring.process_payment("missing", account_id="a")

    @pytest.mark.asyncio
    async def test_upcoming_window(self, services):
        """Test ACTIVE items within the window, soonest first."""
        _, later = await subscription(services, name="Gym", next_due_date=date(2024, 1, 25))
        _, sooner = await subscription(services, name="Music", next_due_date=date(2024, 1, 10))
        _, far = await subscription(services, name="Insurance", next_due_date=date(2024, 3, 15))
        _, paused = await subscription(services, name="Paper", next_due_date=date(2024, 1, 5))
        await services.recurring.pause(paused.id)

        upcoming = await services.recurring.get_upcoming(days_ahead=30, now=date(2024, 1, 1))
        assert [r.name for r in upcoming] == ["Music", "Gym"]

        await services.recurring.resume(paused.id)
        assert len(await services.recurring.get_all_active()) == 4
