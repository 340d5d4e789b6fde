"""
Service wiring.

One LedgerServices instance per app session: it owns the store, the
session context and the change bus, and hands the same three to every
service so they all see the same household and notify the same listeners.
"""

from typing import Optional

from household_ledger.analytics.reports import AnalyticsService
from household_ledger.notifications import ChangeBus
from household_ledger.services.accounts import AccountService
from household_ledger.services.budgets import BudgetService
from household_ledger.services.categories import CategoryService
from household_ledger.services.credit import CreditFacilityService
from household_ledger.services.household import HouseholdService
from household_ledger.services.journal import BalanceJournal
from household_ledger.services.ledger import TransactionService
from household_ledger.services.loans import LoanService
from household_ledger.services.recurring import RecurringService
from household_ledger.services.snapshot import SnapshotPublisher
from household_ledger.services.storage import DocumentStoreInterface, create_document_store
from household_ledger.session import SessionContext


class LedgerServices:
    def __init__(
        self,
        store: Optional[DocumentStoreInterface] = None,
        session: Optional[SessionContext] = None,
        bus: Optional[ChangeBus] = None,
    ):
        self.store = store or create_document_store()
        self.session = session or SessionContext()
        self.bus = bus or ChangeBus()

        deps = (self.store, self.session, self.bus)
        self.journal = BalanceJournal(self.store)
        self.accounts = AccountService(*deps)
        self.categories = CategoryService(*deps)
        self.transactions = TransactionService(*deps, journal=self.journal)
        self.credit_facilities = CreditFacilityService(*deps)
        self.loans = LoanService(*deps)
        self.recurring = RecurringService(*deps, transactions=self.transactions)
        self.budgets = BudgetService(*deps)
        self.household = HouseholdService(*deps)
        self.snapshot = SnapshotPublisher(
            self.store,
            self.bus,
            transactions=self.transactions,
            accounts=self.accounts,
            credit_facilities=self.credit_facilities,
            categories=self.categories,
        )

        self.analytics = AnalyticsService(self)
