"""
Analytics result models.

Read-side shapes returned by the aggregator. None of these are persisted.
"""

from decimal import Decimal
from typing import Optional

from pydantic import Field

from household_ledger.models.base import CamelModel


ZERO = Decimal("0")


class MonthlyStats(CamelModel):
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM bucket")
    income: Decimal = ZERO
    expense: Decimal = ZERO
    investment: Decimal = ZERO
    debt: Decimal = ZERO
    net: Decimal = ZERO


class CategoryBreakdown(CamelModel):
    category_id: str
    category_name: str
    color: Optional[str] = None
    amount: Decimal
    percentage: Decimal
    transaction_count: int = Field(..., ge=0)


class TrendPoint(CamelModel):
    date: str = Field(..., description="ISO date of the day or week start")
    income: Decimal = ZERO
    expense: Decimal = ZERO
    investment: Decimal = ZERO
    debt: Decimal = ZERO


class CashFlowSummary(CamelModel):
    total_income: Decimal
    total_expense: Decimal
    net_cash_flow: Decimal
    savings_rate: Decimal
    average_daily_income: Decimal
    average_daily_expense: Decimal


class AmortizationEntry(CamelModel):
    month: int = Field(..., ge=1)
    emi_amount: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    remaining_balance: Decimal
