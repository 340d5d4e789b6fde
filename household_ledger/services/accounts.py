"""Account service: funding sources whose balances the ledger maintains."""

from decimal import Decimal
from typing import Any, Optional, Union

from household_ledger.errors import LedgerValidationError
from household_ledger.models.ledger import Account
from household_ledger.notifications import ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.storage import Collection


class AccountService(CollectionService[Account]):
    collection = Collection.ACCOUNTS
    model = Account
    topic = ChangeTopic.ACCOUNTS_CHANGED
    entity_name = "Account"
    derived_fields = frozenset({"balance", "opening_balance", "last_adjustment_id"})

    def _build(self, data: Union[Account, dict[str, Any]]) -> Account:
        account = super()._build(data)
        user = self._session.current_user
        return account.model_copy(update={
            "opening_balance": account.balance if account.opening_balance is None else account.opening_balance,
            "user_id": account.user_id or (user.id if user else None),
            "created_by_name": account.created_by_name or (user.name if user else None),
        })

    async def get_all_active(self, household_id: Optional[str] = None) -> list[Account]:
        return [a for a in await self.get_all(household_id) if not a.is_archived]

    async def archive(self, account_id: str) -> Account:
        return await self.update(account_id, {"is_archived": True})

    async def has_transactions(self, account_id: str) -> bool:
        """True when any transaction funds from or transfers into the account."""
        for field in ("accountId", "transferAccountId"):
            if await self._store.find(Collection.TRANSACTIONS, {field: account_id}, limit=1):
                return True
        return False

    async def delete(self, account_id: str, force: bool = False) -> bool:
        """
        Delete an account.

        Raises:
            LedgerValidationError: If transactions reference the account and
                `force` is not set. Archive the account instead.
        """
        if not force and await self.has_transactions(account_id):
            raise LedgerValidationError(
                f"Account {account_id} has transactions; archive it or delete with force=True"
            )
        return await super().delete(account_id)

    async def calculate_total_balance(self, household_id: Optional[str] = None) -> Decimal:
        accounts = await self.get_all_active(household_id)
        return sum((a.balance for a in accounts), Decimal("0"))
