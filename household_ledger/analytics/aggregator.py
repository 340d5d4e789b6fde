"""
Analytics Aggregator

Pure aggregation over already-loaded transactions and categories.
Callers choose the date window; these functions only bucket and sum.
"""

import math
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Literal, Optional

from household_ledger.analytics.finance_math import ZERO, percent, round_money
from household_ledger.models.analytics import (
    CashFlowSummary,
    CategoryBreakdown,
    MonthlyStats,
    TrendPoint,
)
from household_ledger.models.base import ensure_utc
from household_ledger.models.ledger import Category, CategoryType, Transaction, TransactionType
from household_ledger.utils.dates import as_date, month_key, week_start


UNCATEGORIZED = "uncategorized"
UNSPECIFIED = "unspecified"

# Tracked separately from spending
NON_SPENDING_CATEGORY_TYPES = (CategoryType.INVESTMENT, CategoryType.DEBT)

TYPE_FIELDS = {
    TransactionType.INCOME: "income",
    TransactionType.EXPENSE: "expense",
    TransactionType.INVESTMENT: "investment",
    TransactionType.DEBT: "debt",
}


def _bucket_totals(transactions: Iterable[Transaction], key) -> dict[str, dict[str, Decimal]]:
    buckets: dict[str, dict[str, Decimal]] = {}
    for t in transactions:
        field = TYPE_FIELDS.get(t.type)
        if field is None:
            continue  # transfers move money, they are not income or spending
        totals = buckets.setdefault(key(t), {name: ZERO for name in TYPE_FIELDS.values()})
        totals[field] += t.amount
    return buckets


def calculate_monthly_stats(transactions: Iterable[Transaction]) -> list[MonthlyStats]:
    """Per-month totals by type, oldest month first. net = income - expense."""
    buckets = _bucket_totals(transactions, lambda t: month_key(t.date))
    return [
        MonthlyStats(month=month, net=totals["income"] - totals["expense"], **totals)
        for month, totals in sorted(buckets.items())
    ]


def calculate_trends(
    transactions: Iterable[Transaction],
    granularity: Literal["daily", "weekly"] = "daily",
) -> list[TrendPoint]:
    """Totals per day, or per week keyed on the Sunday that starts it."""
    if granularity == "weekly":
        key = lambda t: week_start(t.date).isoformat()
    else:
        key = lambda t: as_date(t.date).isoformat()
    buckets = _bucket_totals(transactions, key)
    return [TrendPoint(date=day, **totals) for day, totals in sorted(buckets.items())]


def calculate_category_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    tx_type: TransactionType = TransactionType.EXPENSE,
) -> list[CategoryBreakdown]:
    """
    Amount per category for one transaction type, largest first.

    Split transactions contribute each split to its own category. When
    breaking down EXPENSE, INVESTMENT and DEBT categories are left out.
    Percentages are of the total of every transaction of `tx_type`.
    """
    lookup = {c.id: c for c in categories}
    filtered = [t for t in transactions if t.type == tx_type]
    total = sum((t.amount for t in filtered), ZERO)

    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)

    def add(category_id: Optional[str], amount: Decimal) -> None:
        category_id = category_id or UNCATEGORIZED
        category = lookup.get(category_id)
        if (
            tx_type == TransactionType.EXPENSE
            and category is not None
            and category.type in NON_SPENDING_CATEGORY_TYPES
        ):
            return
        amounts[category_id] += amount
        counts[category_id] += 1

    for t in filtered:
        if t.is_split and t.splits:
            for split in t.splits:
                add(split.category_id, split.amount)
        else:
            add(t.category_id, t.amount)

    breakdown = []
    for category_id, amount in amounts.items():
        category = lookup.get(category_id)
        if category is not None:
            name = category.name
        else:
            name = "Uncategorized" if category_id == UNCATEGORIZED else "Unknown"
        breakdown.append(CategoryBreakdown(
            category_id=category_id,
            category_name=name,
            color=category.color if category else None,
            amount=amount,
            percentage=percent(amount, total),
            transaction_count=counts[category_id],
        ))
    return sorted(breakdown, key=lambda b: b.amount, reverse=True)


def calculate_sub_category_breakdown(
    transactions: Iterable[Transaction],
    category: Optional[Category],
) -> list[CategoryBreakdown]:
    """Expense amount per sub-category of one parent category, largest first."""
    if category is None:
        return []

    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)

    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        if t.is_split and t.splits:
            for split in t.splits:
                if split.category_id == category.id:
                    sub_id = split.sub_category_id or UNSPECIFIED
                    amounts[sub_id] += split.amount
                    counts[sub_id] += 1
        elif t.category_id == category.id:
            sub_id = t.sub_category_id or UNSPECIFIED
            amounts[sub_id] += t.amount
            counts[sub_id] += 1

    total = sum(amounts.values(), ZERO)
    names = {sub.id: sub.name for sub in category.sub_categories}

    breakdown = [
        CategoryBreakdown(
            category_id=sub_id,
            category_name=names.get(sub_id, "Unspecified" if sub_id == UNSPECIFIED else "Unknown"),
            color=category.color,
            amount=amount,
            percentage=percent(amount, total),
            transaction_count=counts[sub_id],
        )
        for sub_id, amount in amounts.items()
    ]
    return sorted(breakdown, key=lambda b: b.amount, reverse=True)


def get_top_spending_categories(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    limit: int = 5,
) -> list[CategoryBreakdown]:
    return calculate_category_breakdown(transactions, categories, TransactionType.EXPENSE)[:limit]


def calculate_savings_rate(income: Decimal, expense: Decimal) -> Decimal:
    """(income - expense) / income x 100; 0 when there is no income."""
    return percent(income - expense, income)


def get_cash_flow_summary(
    transactions: Iterable[Transaction],
    start: datetime,
    end: datetime,
) -> CashFlowSummary:
    """Totals for the window plus per-day averages over its length in whole days."""
    transactions = list(transactions)
    income = sum((t.amount for t in transactions if t.type == TransactionType.INCOME), ZERO)
    expense = sum((t.amount for t in transactions if t.type == TransactionType.EXPENSE), ZERO)
    days = math.ceil((ensure_utc(end) - ensure_utc(start)).total_seconds() / 86400)

    return CashFlowSummary(
        total_income=income,
        total_expense=expense,
        net_cash_flow=income - expense,
        savings_rate=calculate_savings_rate(income, expense),
        average_daily_income=round_money(income / days) if days > 0 else ZERO,
        average_daily_expense=round_money(expense / days) if days > 0 else ZERO,
    )
