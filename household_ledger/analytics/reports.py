"""
Analytics Service

Async read facade: loads the window of transactions (and whatever else a
report needs) from the services and hands it to the pure aggregator.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Literal, Optional, Union

from household_ledger.analytics import aggregator, finance_math
from household_ledger.models.analytics import (
    CashFlowSummary,
    CategoryBreakdown,
    MonthlyStats,
    TrendPoint,
)
from household_ledger.models.ledger import TransactionType
from household_ledger.utils.dates import window

if TYPE_CHECKING:
    from household_ledger.services.container import LedgerServices


DateLike = Union[date, datetime]
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
END_OF_TIME = datetime.max.replace(tzinfo=timezone.utc)


class AnalyticsService:
    def __init__(self, services: "LedgerServices"):
        self._services = services

    async def _transactions(self, start: DateLike, end: DateLike, household_id: Optional[str]):
        return await self._services.transactions.get_by_date_range(start, end, household_id)

    async def calculate_monthly_stats(
        self, start: DateLike, end: DateLike, household_id: Optional[str] = None
    ) -> list[MonthlyStats]:
        return aggregator.calculate_monthly_stats(await self._transactions(start, end, household_id))

    async def calculate_category_breakdown(
        self,
        start: DateLike,
        end: DateLike,
        tx_type: TransactionType = TransactionType.EXPENSE,
        household_id: Optional[str] = None,
    ) -> list[CategoryBreakdown]:
        transactions = await self._transactions(start, end, household_id)
        categories = await self._services.categories.get_all(household_id)
        return aggregator.calculate_category_breakdown(transactions, categories, tx_type)

    async def calculate_sub_category_breakdown(
        self,
        start: DateLike,
        end: DateLike,
        category_id: str,
        household_id: Optional[str] = None,
    ) -> list[CategoryBreakdown]:
        transactions = await self._transactions(start, end, household_id)
        category = await self._services.categories.get_by_id(category_id)
        return aggregator.calculate_sub_category_breakdown(transactions, category)

    async def calculate_trends(
        self,
        start: DateLike,
        end: DateLike,
        granularity: Literal["daily", "weekly"] = "daily",
        household_id: Optional[str] = None,
    ) -> list[TrendPoint]:
        transactions = await self._transactions(start, end, household_id)
        return aggregator.calculate_trends(transactions, granularity)

    async def get_top_spending_categories(
        self, start: DateLike, end: DateLike, limit: int = 5, household_id: Optional[str] = None
    ) -> list[CategoryBreakdown]:
        transactions = await self._transactions(start, end, household_id)
        categories = await self._services.categories.get_all(household_id)
        return aggregator.get_top_spending_categories(transactions, categories, limit)

    async def calculate_savings_rate(
        self, start: DateLike, end: DateLike, household_id: Optional[str] = None
    ) -> Decimal:
        ledger = self._services.transactions
        income = await ledger.get_total_income(start, end, household_id)
        expense = await ledger.get_total_expense(start, end, household_id)
        return aggregator.calculate_savings_rate(income, expense)

    async def get_cash_flow_summary(
        self, start: DateLike, end: DateLike, household_id: Optional[str] = None
    ) -> CashFlowSummary:
        start_at, end_at = window(start, end)
        transactions = await self._transactions(start_at, end_at, household_id)
        return aggregator.get_cash_flow_summary(transactions, start_at, end_at)

    async def calculate_total_investments(
        self,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        household_id: Optional[str] = None,
    ) -> Decimal:
        """Open-ended by default: every INVESTMENT transaction ever recorded."""
        transactions = await self._services.transactions.get_all(household_id)
        start_at = window(start, start)[0] if start else EPOCH
        end_at = window(end, end)[1] if end else END_OF_TIME
        in_window = [t for t in transactions if start_at <= t.date <= end_at]
        return finance_math.calculate_transaction_total(in_window, TransactionType.INVESTMENT)

    async def calculate_net_worth(self, household_id: Optional[str] = None) -> Decimal:
        """Active account balances plus every INVESTMENT transaction since epoch."""
        balances = await self._services.accounts.calculate_total_balance(household_id)
        return balances + await self.calculate_total_investments(household_id=household_id)

    async def calculate_net_worth_with_liabilities(self, household_id: Optional[str] = None) -> Decimal:
        """Net worth after subtracting card debt and active loan principal."""
        services = self._services
        accounts = await services.accounts.get_all_active(household_id)
        facilities = await services.credit_facilities.get_all_active(household_id)
        loans = [loan for loan in await services.loans.get_all(household_id) if not loan.is_archived]
        investments = await self.calculate_total_investments(household_id=household_id)
        return finance_math.calculate_net_worth_with_liabilities(accounts, facilities, loans, investments)

    async def calculate_available_balance(self, household_id: Optional[str] = None) -> Decimal:
        accounts = await self._services.accounts.get_all_active(household_id)
        facilities = await self._services.credit_facilities.get_all_active(household_id)
        return finance_math.calculate_available_balance(accounts, facilities)
