"""Tests for loan amortization."""

import pytest
from datetime import date
from decimal import Decimal

from household_ledger.analytics import calculate_amortization_schedule, calculate_emi, simulate_outstanding
from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models import LoanStatus


def loan_data(**overrides):
    data = {
        "name": "Home Loan",
        "lender": "HDFC",
        "principal": Decimal("120000"),
        "interest_rate": Decimal("12"),
        "tenure_months": 12,
        "start_date": date(2024, 1, 5),
    }
    data.update(overrides)
    return data


class TestEmi:
    """Tests for the EMI formula."""

    def test_closed_form(self):
        """Test 120000 at 12% over 12 months."""
        assert calculate_emi(Decimal("120000"), Decimal("12"), 12) == Decimal("10661.85")

    def test_zero_rate_is_principal_over_tenure(self):
        """Test the interest-free case."""
        assert calculate_emi(Decimal("12000"), Decimal("0"), 12) == Decimal("1000")

    def test_rejects_zero_tenure(self):
        """Test that a tenure of zero months is invalid."""
        with pytest.raises(ValueError):
            calculate_emi(Decimal("1000"), Decimal("10"), 0)

    def test_simulated_outstanding(self):
        """Test three installments of the standard example."""
        assert simulate_outstanding(
            Decimal("120000"), Decimal("12"), Decimal("10661.85"), 3
        ) == Decimal("91329.65")

    def test_schedule(self):
        """Test that the schedule pays the loan down to (almost) nothing."""
        schedule = calculate_amortization_schedule(Decimal("120000"), Decimal("12"), 12)
        assert len(schedule) == 12
        assert schedule[0].interest_paid == Decimal("1200.00")
        assert schedule[0].principal_paid == Decimal("9461.85")
        assert schedule[-1].remaining_balance < Decimal("1")
        assert all(entry.emi_amount == Decimal("10661.85") for entry in schedule)


class TestLoanService:
    """Tests for loan lifecycle."""

    @pytest.mark.asyncio
    async def test_create_derives_emi_and_outstanding(self, services):
        """Test derived fields on a fresh loan."""
        loan = await services.loans.create(loan_data())
        assert loan.emi_amount == Decimal("10661.85")
        assert loan.outstanding_principal == Decimal("120000")
        assert loan.paid_emis == 0
        assert loan.status == LoanStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_create_with_prepaid_emis(self, services):
        """Test that initial_paid_emis simulates the outstanding principal."""
        loan = await services.loans.create(loan_data(initial_paid_emis=3))
        assert loan.outstanding_principal == Decimal("91329.65")
        assert loan.paid_emis == 3

    @pytest.mark.asyncio
    async def test_explicit_emi_is_kept(self, services):
        """Test that a given EMI is not recomputed."""
        loan = await services.loans.create(loan_data(emi_amount=Decimal("11000")))
        assert loan.emi_amount == Decimal("11000")

    @pytest.mark.asyncio
    async def test_payment_closes_loan_for_good(self, services):
        """Test ACTIVE -> CLOSED once the principal is paid off."""
        loan = await services.loans.create(loan_data(principal=Decimal("1000"), interest_rate=Decimal("0")))

        loan = await services.loans.record_payment(loan.id, Decimal("400"))
        assert loan.outstanding_principal == Decimal("600")
        assert loan.paid_emis == 1
        assert loan.status == LoanStatus.ACTIVE

        loan = await services.loans.record_payment(loan.id, Decimal("700"))
        assert loan.outstanding_principal == Decimal("0")
        assert loan.paid_emis == 2
        assert loan.status == LoanStatus.CLOSED

        with pytest.raises(LedgerValidationError):
            await services.loans.update(loan.id, {"status": LoanStatus.ACTIVE})

    @pytest.mark.asyncio
    async def test_payment_on_unknown_loan(self, services):
        """Test that paying an unknown loan is an error."""
        with pytest.raises(EntityNotFoundError):
            await services.loans.record_payment("missing", Decimal("1"))

    @pytest.mark.asyncio
    async def test_stored_schedule(self, services):
        """Test get_schedule for a persisted loan."""
        loan = await services.loans.create(loan_data())
        schedule = await services.loans.get_schedule(loan.id)
        assert len(schedule) == 12
        assert services.loans.calculate_emi(Decimal("120000"), Decimal("12"), 12) == loan.emi_amount
