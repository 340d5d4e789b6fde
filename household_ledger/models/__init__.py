"""
Data Models Package

This package contains all Pydantic models used by the ledger.
All data flowing through the system must conform to these schemas.
"""

from household_ledger.models.base import (
    CamelModel,
    LedgerDocument,
    UtcDatetime,
    ensure_utc,
    new_id,
    utc_now,
)
from household_ledger.models.ledger import (
    Account,
    AccountType,
    Budget,
    BudgetMode,
    BudgetStatus,
    Category,
    CategoryLimit,
    CategoryType,
    CreditFacility,
    Frequency,
    Household,
    HouseholdMember,
    Loan,
    LoanStatus,
    MemberRole,
    PlanItem,
    RecurringItem,
    RecurringStatus,
    Statement,
    StatementStatus,
    SubCategory,
    Transaction,
    TransactionSplit,
    TransactionType,
)
from household_ledger.models.journal import (
    BalanceAdjustmentIssue,
    BalanceTarget,
    JournalEntry,
    JournalStep,
    LedgerOperation,
    LedgerWriteResult,
)
from household_ledger.models.snapshot import (
    SharedAccountBalance,
    SharedDocType,
    SharedTransaction,
    SnapshotSummary,
)
from household_ledger.models.analytics import (
    AmortizationEntry,
    CashFlowSummary,
    CategoryBreakdown,
    MonthlyStats,
    TrendPoint,
)

__all__ = [
    # Base
    "CamelModel",
    "LedgerDocument",
    "UtcDatetime",
    "ensure_utc",
    "new_id",
    "utc_now",
    # Ledger models
    "Account",
    "AccountType",
    "Budget",
    "BudgetMode",
    "BudgetStatus",
    "Category",
    "CategoryLimit",
    "CategoryType",
    "CreditFacility",
    "Frequency",
    "Household",
    "HouseholdMember",
    "Loan",
    "LoanStatus",
    "MemberRole",
    "PlanItem",
    "RecurringItem",
    "RecurringStatus",
    "Statement",
    "StatementStatus",
    "SubCategory",
    "Transaction",
    "TransactionSplit",
    "TransactionType",
    # Journal
    "BalanceAdjustmentIssue",
    "BalanceTarget",
    "JournalEntry",
    "JournalStep",
    "LedgerOperation",
    "LedgerWriteResult",
    # Snapshot
    "SharedAccountBalance",
    "SharedDocType",
    "SharedTransaction",
    "SnapshotSummary",
    # Analytics
    "AmortizationEntry",
    "CashFlowSummary",
    "CategoryBreakdown",
    "MonthlyStats",
    "TrendPoint",
]
