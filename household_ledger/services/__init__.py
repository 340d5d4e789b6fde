"""
Services Package

The ledger's operations, one service per collection, plus the balance
journal and the snapshot publisher. Build them together with LedgerServices.
"""

from household_ledger.services.accounts import AccountService
from household_ledger.services.budgets import BudgetService
from household_ledger.services.categories import CategoryService
from household_ledger.services.container import LedgerServices
from household_ledger.services.credit import CreditFacilityService, statement_cycle
from household_ledger.services.household import HOUSEHOLD_KEY, HouseholdService
from household_ledger.services.journal import BalanceJournal
from household_ledger.services.ledger import TransactionService, balance_effect
from household_ledger.services.loans import LoanService
from household_ledger.services.recurring import RecurringService
from household_ledger.services.snapshot import SnapshotPublisher

__all__ = [
    "AccountService",
    "BalanceJournal",
    "BudgetService",
    "CategoryService",
    "CreditFacilityService",
    "HOUSEHOLD_KEY",
    "HouseholdService",
    "LedgerServices",
    "LoanService",
    "RecurringService",
    "SnapshotPublisher",
    "TransactionService",
    "balance_effect",
    "statement_cycle",
]
