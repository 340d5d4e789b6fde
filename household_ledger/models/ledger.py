"""
Core Data Models for Household Ledger

These models define the schemas for every record the ledger stores.
They are designed to:
1. Enforce type safety at runtime
2. Keep money exact (Decimal, never float)
3. Serialize to the camelCase document format used by the store

DESIGN DECISION: Derived fields (`balance`, `current_outstanding`,
`outstanding_principal`) live on the models like any other field, but only
the owning engine writes them. They are caches of the transaction log.
"""

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from household_ledger.config import get_settings
from household_ledger.models.base import CamelModel, LedgerDocument, UtcDatetime, new_id


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """
    Transaction classification.

    Drives the sign of the balance effect: only INCOME adds to an account.
    """
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"
    INVESTMENT = "INVESTMENT"
    DEBT = "DEBT"


class AccountType(str, Enum):
    """Kinds of funding source."""
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    WALLET = "WALLET"
    INVESTMENT = "INVESTMENT"
    CASH_RESERVE = "CASH_RESERVE"


class CategoryType(str, Enum):
    """Category classification matching the transaction types that use it."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    INVESTMENT = "INVESTMENT"
    DEBT = "DEBT"


class StatementStatus(str, Enum):
    PAID = "PAID"
    UNPAID = "UNPAID"
    OVERDUE = "OVERDUE"
    PARTIAL = "PARTIAL"


class LoanStatus(str, Enum):
    """
    Loan lifecycle.

    CRITICAL: ACTIVE -> CLOSED is one-way. A closed loan never reopens.
    """
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class Frequency(str, Enum):
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    YEARLY = "YEARLY"


class RecurringStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


class BudgetMode(str, Enum):
    """
    RECURRING budgets repeat every period; EVENT budgets cover one
    date range (a trip, a wedding) and carry a plan checklist.
    """
    RECURRING = "RECURRING"
    EVENT = "EVENT"


class BudgetStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class MemberRole(str, Enum):
    OWNER = "OWNER"
    MEMBER = "MEMBER"


# =============================================================================
# ACCOUNTS & CREDIT FACILITIES
# =============================================================================

def default_currency() -> str:
    return get_settings().ledger.default_currency


class Account(LedgerDocument):
    """
    A cash funding source.

    `balance` is signed and may go negative (overdraft). `opening_balance`
    is frozen at creation so the balance can be replayed from the log.
    """

    name: str = Field(..., min_length=1, max_length=200)
    type: AccountType = AccountType.CHECKING
    balance: Decimal = Field(
        default=Decimal("0"),
        description="Current balance (derived, maintained by the ledger)"
    )
    opening_balance: Optional[Decimal] = Field(
        default=None,
        description="Balance at creation time"
    )
    currency: str = Field(default_factory=default_currency, min_length=3, max_length=3)
    is_archived: bool = False
    user_id: Optional[str] = None
    created_by_name: Optional[str] = None
    last_adjustment_id: Optional[str] = Field(
        default=None,
        description="Id of the last journal step applied to this balance"
    )


class Statement(CamelModel):
    """One closed billing cycle of a credit facility."""

    id: str = Field(default_factory=new_id)
    statement_date: UtcDatetime
    cycle_start: date
    cycle_end: date
    due_date: date
    closing_balance: Decimal = Field(..., ge=0)
    minimum_due: Decimal = Field(..., ge=0)
    total_payments: Decimal = Decimal("0")
    status: StatementStatus = StatementStatus.UNPAID


class CreditFacility(LedgerDocument):
    """
    A revolving credit instrument (credit card).

    Statements are ordered newest first.
    """

    name: str = Field(..., min_length=1, max_length=200)
    bank_name: Optional[str] = None
    last_four_digits: Optional[str] = Field(default=None, pattern=r"^\d{4}$")
    credit_limit: Decimal = Field(default=Decimal("0"), ge=0)
    current_outstanding: Decimal = Field(
        default=Decimal("0"),
        description="Amount owed (derived, maintained by the ledger)"
    )
    billing_cycle: int = Field(
        default=1,
        ge=1,
        le=31,
        description="Day of month the billing cycle starts"
    )
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31)
    apr: Decimal = Field(default=Decimal("0"), ge=0, description="Annual rate in %")
    currency: str = Field(default_factory=default_currency, min_length=3, max_length=3)
    statements: list[Statement] = Field(default_factory=list)
    is_archived: bool = False
    last_adjustment_id: Optional[str] = None

    @property
    def available_credit(self) -> Decimal:
        return self.credit_limit - self.current_outstanding


# =============================================================================
# CATEGORIES & TRANSACTIONS
# =============================================================================

class SubCategory(CamelModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)


class Category(LedgerDocument):
    name: str = Field(..., min_length=1, max_length=100)
    type: Optional[CategoryType] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    sub_categories: list[SubCategory] = Field(default_factory=list)
    is_active: bool = True


class TransactionSplit(CamelModel):
    """A slice of a split transaction allocated to one category."""

    id: str = Field(default_factory=new_id)
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    note: Optional[str] = Field(default=None, max_length=500)


class Transaction(LedgerDocument):
    """
    A single ledger entry.

    `amount` is always a positive magnitude; direction comes from `type`.
    `account_id` may reference an Account or a CreditFacility.
    """

    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    account_id: str = Field(..., min_length=1)
    date: UtcDatetime
    description: Optional[str] = Field(default=None, max_length=500)
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    transfer_account_id: Optional[str] = None
    is_split: bool = False
    splits: list[TransactionSplit] = Field(default_factory=list)
    user_id: Optional[str] = None
    created_by_name: Optional[str] = None
    user_color: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def promote_plain_date(cls, v):
        """Plain dates are stored as midnight UTC."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v

    @model_validator(mode="after")
    def validate_split_flag(self) -> "Transaction":
        """A split transaction must actually carry splits."""
        if self.is_split and not self.splits:
            raise ValueError("Split transaction must have at least one split")
        return self

    @property
    def splits_total(self) -> Decimal:
        return sum((s.amount for s in self.splits), Decimal("0"))


# =============================================================================
# LOANS & RECURRING ITEMS
# =============================================================================

class Loan(LedgerDocument):
    """
    An amortizing loan.

    `emi_amount` is derived at creation when not given. `outstanding_principal`
    starts from a simulation of `initial_paid_emis` periods.
    """

    name: str = Field(..., min_length=1, max_length=200)
    lender: Optional[str] = None
    type: Optional[str] = None
    principal: Decimal = Field(..., gt=0)
    interest_rate: Decimal = Field(..., ge=0, description="Annual rate in %")
    tenure_months: int = Field(..., gt=0)
    start_date: date
    initial_paid_emis: int = Field(default=0, ge=0)
    paid_emis: int = Field(default=0, ge=0)
    emi_amount: Optional[Decimal] = Field(default=None, gt=0)
    outstanding_principal: Optional[Decimal] = Field(default=None, ge=0)
    status: LoanStatus = LoanStatus.ACTIVE
    linked_account_id: Optional[str] = None
    is_archived: bool = False

    @model_validator(mode="after")
    def validate_paid_emis(self) -> "Loan":
        if self.initial_paid_emis > self.tenure_months:
            raise ValueError("Initial paid EMIs cannot exceed the loan tenure")
        return self


class RecurringItem(LedgerDocument):
    """A subscription or standing payment that materializes transactions."""

    name: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., gt=0)
    type: TransactionType = TransactionType.EXPENSE
    frequency: Frequency = Frequency.MONTHLY
    start_date: Optional[date] = None
    next_due_date: date
    last_paid_date: Optional[UtcDatetime] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    auto_pay: bool = False
    status: RecurringStatus = RecurringStatus.ACTIVE
    description: Optional[str] = None
    user_id: Optional[str] = None


# =============================================================================
# BUDGETS
# =============================================================================

class CategoryLimit(CamelModel):
    category_id: str
    amount: Decimal = Field(..., ge=0)


class PlanItem(CamelModel):
    """Checklist line of an event budget (e.g. "Flights x2")."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    unit_amount: Optional[Decimal] = Field(default=None, ge=0)
    quantity: Optional[Decimal] = Field(default=None, ge=0)
    total_amount: Optional[Decimal] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def derive_total(self) -> "PlanItem":
        if self.total_amount is None and self.unit_amount is not None:
            self.total_amount = self.unit_amount * (self.quantity or Decimal("1"))
        return self


class Budget(LedgerDocument):
    name: str = Field(..., min_length=1, max_length=200)
    budget_mode: BudgetMode = BudgetMode.RECURRING
    period: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category_limit_config: list[CategoryLimit] = Field(default_factory=list)
    total_budget: Decimal = Field(default=Decimal("0"), ge=0)
    total_spent: Decimal = Field(default=Decimal("0"), ge=0)
    plan_items: list[PlanItem] = Field(default_factory=list)
    status: BudgetStatus = BudgetStatus.DRAFT
    is_archived: bool = False

    @model_validator(mode="after")
    def validate_event_range(self) -> "Budget":
        """EVENT budgets need a date range, RECURRING ones ignore it."""
        if self.budget_mode == BudgetMode.EVENT:
            if self.start_date is None or self.end_date is None:
                raise ValueError("Event budget requires a start and end date")
            if self.end_date < self.start_date:
                raise ValueError("Budget end date cannot be before start date")
        return self


# =============================================================================
# HOUSEHOLD
# =============================================================================

class HouseholdMember(CamelModel):
    user_id: str
    name: str
    email: str
    role: MemberRole = MemberRole.MEMBER
    joined_at: UtcDatetime


class Household(LedgerDocument):
    """Singleton per local store, kept under a well-known key."""

    name: str = Field(..., min_length=1, max_length=200)
    owner_id: str
    invite_code: str = Field(..., pattern=r"^INV-[A-Z0-9]{8}$")
    members: list[HouseholdMember] = Field(default_factory=list)
