"""Tests for the credit facility engine."""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models import StatementStatus, TransactionType
from household_ledger.services import statement_cycle


class TestStatementCycle:
    """Tests for billing cycle boundaries."""

    def test_on_or_after_billing_day(self):
        """Test that the anchor is this month's billing day."""
        assert statement_cycle(15, date(2024, 3, 20)) == (date(2024, 2, 15), date(2024, 3, 14))
        assert statement_cycle(15, date(2024, 3, 15)) == (date(2024, 2, 15), date(2024, 3, 14))

    def test_before_billing_day(self):
        """Test that the anchor falls back to last month."""
        assert statement_cycle(15, date(2024, 3, 10)) == (date(2024, 1, 15), date(2024, 2, 14))

    def test_billing_day_clamped_to_month_end(self):
        """Test day 31 in a shorter month."""
        assert statement_cycle(31, date(2024, 3, 31)) == (date(2024, 2, 29), date(2024, 3, 30))
        assert statement_cycle(31, date(2024, 5, 2)) == (date(2024, 3, 31), date(2024, 4, 29))

    def test_consecutive_cycles_are_contiguous(self):
        """Test that each cycle starts the day after the previous one ended."""
        for billing_day in (1, 15, 28, 29, 30, 31):
            previous_end = None
            for offset in range(15):
                today = date(2027 + offset // 12, offset % 12 + 1, 1)
                start, end = statement_cycle(billing_day, today)
                if previous_end is not None:
                    assert start == previous_end + timedelta(days=1)
                previous_end = end


async def card_with_history(services):
    card = await services.credit_facilities.create({
        "name": "Rewards Card",
        "credit_limit": Decimal("100000"),
        "billing_cycle": 15,
        "apr": Decimal("36.5"),
    })
    for amount, tx_type, day in (
        ("1000", TransactionType.EXPENSE, date(2024, 2, 20)),
        ("500", TransactionType.EXPENSE, date(2024, 3, 1)),
        ("300", TransactionType.INCOME, date(2024, 3, 5)),
        ("999", TransactionType.EXPENSE, date(2024, 3, 16)),
    ):
        await services.transactions.create({
            "amount": Decimal(amount),
            "type": tx_type,
            "account_id": card.id,
            "date": day,
        })
    return card


class TestGenerateStatement:
    """Tests for statement generation."""

    @pytest.mark.asyncio
    async def test_statement_totals(self, services):
        """Test charges and payments inside the cycle only."""
        card = await card_with_history(services)

        statement = await services.credit_facilities.generate_statement(card.id, today=date(2024, 3, 20))
        assert statement.cycle_start == date(2024, 2, 15)
        assert statement.cycle_end == date(2024, 3, 14)
        assert statement.closing_balance == Decimal("1200")
        assert statement.minimum_due == Decimal("60")
        assert statement.due_date == date(2024, 4, 3)
        assert statement.status == StatementStatus.UNPAID
        assert statement.statement_date.date() == date(2024, 3, 20)

    @pytest.mark.asyncio
    async def test_generation_is_idempotent_per_cycle(self, services):
        """Test that a second call for the same cycle does nothing."""
        card = await card_with_history(services)
        today = date(2024, 3, 20)

        assert await services.credit_facilities.generate_statement(card.id, today=today) is not None
        assert await services.credit_facilities.generate_statement(card.id, today=today) is None
        card = await services.credit_facilities.get_by_id(card.id)
        assert len(card.statements) == 1

    @pytest.mark.asyncio
    async def test_previous_closing_carries_forward(self, services):
        """Test that the next statement starts from the last closing balance."""
        card = await card_with_history(services)
        await services.credit_facilities.generate_statement(card.id, today=date(2024, 3, 20))

        statement = await services.credit_facilities.generate_statement(card.id, today=date(2024, 4, 15))
        assert statement.cycle_start == date(2024, 3, 15)
        assert statement.closing_balance == Decimal("2199")
        latest = await services.credit_facilities.get_latest_statement(card.id)
        assert latest.id == statement.id

    @pytest.mark.asyncio
    async def test_short_month_does_not_recount_charges(self, services):
        """Test billing day 30 across February: a charge lands in one statement only."""
        card = await services.credit_facilities.create({"name": "Card", "billing_cycle": 30})
        await services.transactions.create({
            "amount": Decimal("100"),
            "type": TransactionType.EXPENSE,
            "account_id": card.id,
            "date": date(2027, 1, 28),
        })

        january = await services.credit_facilities.generate_statement(card.id, today=date(2027, 2, 15))
        assert (january.cycle_start, january.cycle_end) == (date(2026, 12, 30), date(2027, 1, 29))
        assert january.closing_balance == Decimal("100")

        february = await services.credit_facilities.generate_statement(card.id, today=date(2027, 3, 15))
        assert (february.cycle_start, february.cycle_end) == (date(2027, 1, 30), date(2027, 2, 27))
        assert february.closing_balance == Decimal("100")

    @pytest.mark.asyncio
    async def test_minimum_due_rounds_half_up(self, services):
        """Test 5% of 1010 = 50.5 -> 51."""
        card = await services.credit_facilities.create({"name": "Card", "billing_cycle": 1})
        await services.transactions.create({
            "amount": Decimal("1010"),
            "type": TransactionType.EXPENSE,
            "account_id": card.id,
            "date": date(2024, 4, 10),
        })
        statement = await services.credit_facilities.generate_statement(card.id, today=date(2024, 5, 3))
        assert statement.minimum_due == Decimal("51")

    @pytest.mark.asyncio
    async def test_overpaid_cycle_is_paid(self, services):
        """Test that a non-positive closing balance is PAID and clamped to zero."""
        card = await services.credit_facilities.create({"name": "Card", "billing_cycle": 1})
        await services.transactions.create({
            "amount": Decimal("200"),
            "type": TransactionType.INCOME,
            "account_id": card.id,
            "date": date(2024, 4, 10),
        })
        statement = await services.credit_facilities.generate_statement(card.id, today=date(2024, 5, 3))
        assert statement.closing_balance == Decimal("0")
        assert statement.minimum_due == Decimal("0")
        assert statement.status == StatementStatus.PAID

    @pytest.mark.asyncio
    async def test_unknown_facility(self, services):
        """Test that an unknown card id is an error."""
        with pytest.raises(EntityNotFoundError):
            await services.credit_facilities.generate_statement("missing", today=date(2024, 3, 20))


class TestCreditPayments:
    """Tests for payments, interest and archival."""

    @pytest.mark.asyncio
    async def test_payment_clamps_at_zero(self, services):
        """Test that overpaying leaves zero outstanding."""
        card = await card_with_history(services)
        card = await services.credit_facilities.record_payment(card.id, Decimal("500"))
        assert card.current_outstanding == Decimal("1699")
        card = await services.credit_facilities.record_payment(card.id, Decimal("5000"))
        assert card.current_outstanding == Decimal("0")

    @pytest.mark.asyncio
    async def test_payment_on_unknown_facility(self, services):
        """Test that paying an unknown card is an error."""
        with pytest.raises(EntityNotFoundError):
            await services.credit_facilities.record_payment("missing", Decimal("1"))

    @pytest.mark.asyncio
    async def test_interest_uses_apr(self, services):
        """Test 36.5% APR over 30 days."""
        card = await services.credit_facilities.create({"name": "Card", "apr": Decimal("36.5")})
        await services.transactions.create({
            "amount": Decimal("10000"),
            "type": TransactionType.EXPENSE,
            "account_id": card.id,
            "date": datetime(2024, 5, 1),
        })
        assert await services.credit_facilities.calculate_interest(card.id, 30) == Decimal("300.00")

    @pytest.mark.asyncio
    async def test_outstanding_is_not_patchable(self, services):
        """Test that derived fields are rejected by update."""
        card = await services.credit_facilities.create({"name": "Card"})
        with pytest.raises(LedgerValidationError):
            await services.credit_facilities.update(card.id, {"current_outstanding": Decimal("5")})

    @pytest.mark.asyncio
    async def test_archive_hides_from_active(self, services):
        """Test that archived cards drop out of get_all_active."""
        card = await services.credit_facilities.create({"name": "Card"})
        await services.credit_facilities.archive(card.id)
        assert await services.credit_facilities.get_all_active() == []
        assert len(await services.credit_facilities.get_all()) == 1
