"""
Loan Amortization Engine

Loans derive their EMI and starting outstanding principal at creation and
then only move forward: each payment lowers the outstanding principal and
counts one more EMI. Once the principal reaches zero the loan is CLOSED
for good.
"""

from decimal import Decimal
from typing import Any, Union

from household_ledger.analytics.finance_math import (
    ZERO,
    calculate_amortization_schedule,
    calculate_emi,
    simulate_outstanding,
)
from household_ledger.errors import LedgerValidationError
from household_ledger.models.analytics import AmortizationEntry
from household_ledger.models.base import utc_now
from household_ledger.models.ledger import Loan, LoanStatus
from household_ledger.notifications import ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.storage import Collection


class LoanService(CollectionService[Loan]):
    collection = Collection.LOANS
    model = Loan
    topic = ChangeTopic.LOANS_CHANGED
    entity_name = "Loan"
    derived_fields = frozenset({"outstanding_principal", "paid_emis"})

    def _build(self, data: Union[Loan, dict[str, Any]]) -> Loan:
        loan = super()._build(data)
        emi = loan.emi_amount or calculate_emi(loan.principal, loan.interest_rate, loan.tenure_months)

        outstanding = loan.outstanding_principal
        if loan.initial_paid_emis > 0:
            outstanding = simulate_outstanding(
                loan.principal, loan.interest_rate, emi, loan.initial_paid_emis
            )
        elif outstanding is None:
            outstanding = loan.principal

        return loan.model_copy(update={
            "emi_amount": emi,
            "outstanding_principal": outstanding,
            "paid_emis": loan.initial_paid_emis,
        })

    async def create(self, data: Union[Loan, dict[str, Any]]) -> Loan:
        loan = await super().create(data)
        self._logger.info(
            "loan_created",
            loan_id=loan.id,
            emi_amount=str(loan.emi_amount),
            outstanding=str(loan.outstanding_principal),
        )
        return loan

    async def update(self, loan_id: str, partial: dict[str, Any]) -> Loan:
        """Patch loan details. A CLOSED loan cannot be set back to ACTIVE."""
        if "status" in partial:
            current = await self._require(loan_id)
            if current.status == LoanStatus.CLOSED and LoanStatus(partial["status"]) != LoanStatus.CLOSED:
                raise LedgerValidationError("A closed loan cannot be reopened")
        return await super().update(loan_id, partial)

    async def record_payment(self, loan_id: str, amount: Decimal) -> Loan:
        """
        Apply one installment (or prepayment) to the loan.

        Raises:
            EntityNotFoundError: If the loan does not exist
        """
        loan = await self._require(loan_id)
        remaining = (loan.outstanding_principal or ZERO) - Decimal(str(amount))

        loan.outstanding_principal = max(ZERO, remaining)
        loan.paid_emis += 1
        if remaining <= 0:
            loan.status = LoanStatus.CLOSED
        loan.updated_at = utc_now()

        loan = await self._save(loan)
        self._logger.info(
            "loan_payment_recorded",
            loan_id=loan_id,
            amount=str(amount),
            outstanding=str(loan.outstanding_principal),
            status=loan.status.value,
        )
        self._bus.publish(self.topic)
        return loan

    @staticmethod
    def calculate_emi(principal, annual_rate, tenure_months: int) -> Decimal:
        return calculate_emi(principal, annual_rate, tenure_months)

    @staticmethod
    def calculate_amortization_schedule(
        principal, annual_rate, tenure_months: int
    ) -> list[AmortizationEntry]:
        return calculate_amortization_schedule(principal, annual_rate, tenure_months)

    async def get_schedule(self, loan_id: str) -> list[AmortizationEntry]:
        loan = await self._require(loan_id)
        return calculate_amortization_schedule(loan.principal, loan.interest_rate, loan.tenure_months)
