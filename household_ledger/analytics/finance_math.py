"""
Financial Math

Pure functions over Decimal. Nothing here touches storage, so every
formula can be tested with plain numbers.

Rounding: money is rounded to 2 places with ROUND_HALF_UP.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

from household_ledger.models.analytics import AmortizationEntry
from household_ledger.models.ledger import (
    Account,
    CreditFacility,
    Loan,
    Transaction,
    TransactionType,
)


Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def round_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole x 100 to 2 places; 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return round_money(part / whole * HUNDRED)


def monthly_rate(annual_rate: Number) -> Decimal:
    return to_decimal(annual_rate) / 12 / HUNDRED


# =============================================================================
# LOANS
# =============================================================================

def calculate_emi(principal: Number, annual_rate: Number, tenure_months: int) -> Decimal:
    """
    Equated monthly installment.

        EMI = P * r * (1 + r)^n / ((1 + r)^n - 1),  r = annual_rate / 12 / 100

    A zero rate degenerates to P / n.
    """
    if tenure_months <= 0:
        raise ValueError("Tenure must be at least one month")
    principal = to_decimal(principal)
    r = monthly_rate(annual_rate)
    if r == 0:
        return round_money(principal / tenure_months)
    growth = (1 + r) ** tenure_months
    return round_money(principal * r * growth / (growth - 1))


def simulate_outstanding(
    principal: Number, annual_rate: Number, emi: Number, periods: int
) -> Decimal:
    """Principal left after paying `periods` installments, clamped at 0."""
    balance = to_decimal(principal)
    r = monthly_rate(annual_rate)
    emi = to_decimal(emi)
    for _ in range(periods):
        balance -= emi - balance * r
    return max(ZERO, round_money(balance))


def calculate_amortization_schedule(
    principal: Number, annual_rate: Number, tenure_months: int
) -> list[AmortizationEntry]:
    """Month-by-month split of each installment into interest and principal."""
    emi = calculate_emi(principal, annual_rate, tenure_months)
    r = monthly_rate(annual_rate)
    remaining = to_decimal(principal)

    schedule = []
    for month in range(1, tenure_months + 1):
        interest = remaining * r
        principal_paid = emi - interest
        remaining -= principal_paid
        schedule.append(AmortizationEntry(
            month=month,
            emi_amount=emi,
            principal_paid=round_money(principal_paid),
            interest_paid=round_money(interest),
            remaining_balance=max(ZERO, round_money(remaining)),
        ))
    return schedule


# =============================================================================
# INTEREST
# =============================================================================

def calculate_credit_card_interest(
    outstanding: Number, annual_rate: Number, days: int = 30
) -> Decimal:
    """Simple daily interest: outstanding * apr / 365 / 100 * days."""
    daily_rate = to_decimal(annual_rate) / 365 / HUNDRED
    return round_money(to_decimal(outstanding) * daily_rate * days)


def calculate_compound_interest(
    principal: Number,
    annual_rate: Number,
    years: Number,
    compounding_frequency: int = 12,
) -> Decimal:
    """Future value of `principal` compounded `compounding_frequency` times a year."""
    rate = to_decimal(annual_rate) / HUNDRED
    periods = compounding_frequency * to_decimal(years)
    if periods == periods.to_integral_value():
        periods = int(periods)
    growth = (1 + rate / compounding_frequency) ** periods
    return round_money(to_decimal(principal) * growth)


# =============================================================================
# TOTALS
# =============================================================================

def calculate_transaction_total(
    transactions: Iterable[Transaction], tx_type: TransactionType
) -> Decimal:
    return sum((t.amount for t in transactions if t.type == tx_type), ZERO)


def calculate_budget_utilization(spent: Number, limit: Number) -> Decimal:
    return percent(to_decimal(spent), to_decimal(limit))


def calculate_total_liquid_cash(accounts: Iterable[Account]) -> Decimal:
    return sum((a.balance for a in accounts), ZERO)


def calculate_total_credit_card_debt(facilities: Iterable[CreditFacility]) -> Decimal:
    return sum((f.current_outstanding for f in facilities), ZERO)


def calculate_available_balance(
    accounts: Iterable[Account], facilities: Iterable[CreditFacility]
) -> Decimal:
    """Liquid cash minus credit card debt."""
    return calculate_total_liquid_cash(accounts) - calculate_total_credit_card_debt(facilities)


def calculate_total_loan_outstanding(loans: Iterable[Loan]) -> Decimal:
    return sum((loan.outstanding_principal or ZERO for loan in loans), ZERO)


def calculate_net_worth_with_liabilities(
    accounts: Iterable[Account],
    facilities: Iterable[CreditFacility],
    loans: Iterable[Loan],
    investments_total: Number,
) -> Decimal:
    """(cash + investments) - (card debt + loan outstanding)."""
    assets = calculate_total_liquid_cash(accounts) + to_decimal(investments_total)
    liabilities = calculate_total_credit_card_debt(facilities) + calculate_total_loan_outstanding(loans)
    return assets - liabilities
