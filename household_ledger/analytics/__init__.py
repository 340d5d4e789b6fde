"""
Analytics Package

Pure aggregation and financial math, currency formatting, and the async
AnalyticsService that feeds them from the ledger.
"""

from household_ledger.analytics.aggregator import (
    calculate_category_breakdown,
    calculate_monthly_stats,
    calculate_savings_rate,
    calculate_sub_category_breakdown,
    calculate_trends,
    get_cash_flow_summary,
    get_top_spending_categories,
)
from household_ledger.analytics.finance_math import (
    calculate_amortization_schedule,
    calculate_available_balance,
    calculate_budget_utilization,
    calculate_compound_interest,
    calculate_credit_card_interest,
    calculate_emi,
    calculate_net_worth_with_liabilities,
    calculate_total_credit_card_debt,
    calculate_total_liquid_cash,
    calculate_total_loan_outstanding,
    calculate_transaction_total,
    simulate_outstanding,
)
from household_ledger.analytics.formatting import (
    format_compact,
    format_currency,
    format_currency_precise,
    format_percentage,
)

__all__ = [
    # Aggregation
    "calculate_category_breakdown",
    "calculate_monthly_stats",
    "calculate_savings_rate",
    "calculate_sub_category_breakdown",
    "calculate_trends",
    "get_cash_flow_summary",
    "get_top_spending_categories",
    # Financial math
    "calculate_amortization_schedule",
    "calculate_available_balance",
    "calculate_budget_utilization",
    "calculate_compound_interest",
    "calculate_credit_card_interest",
    "calculate_emi",
    "calculate_net_worth_with_liabilities",
    "calculate_total_credit_card_debt",
    "calculate_total_liquid_cash",
    "calculate_total_loan_outstanding",
    "calculate_transaction_total",
    "simulate_outstanding",
    # Formatting
    "format_compact",
    "format_currency",
    "format_currency_precise",
    "format_percentage",
]
