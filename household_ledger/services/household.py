"""
Household Service

The household is a singleton per local store, kept under a well-known key
rather than under its own id. Its id doubles as the household_id stamped on
every other record.
"""

from typing import Any, Optional
from uuid import uuid4

from household_ledger.audit import get_logger
from household_ledger.errors import EntityNotFoundError, LedgerValidationError
from household_ledger.models.base import new_id, utc_now
from household_ledger.models.ledger import Household, HouseholdMember, MemberRole
from household_ledger.notifications import ChangeBus, ChangeTopic
from household_ledger.services.storage import Collection, DocumentStoreInterface
from household_ledger.session import SessionContext, SessionUser


HOUSEHOLD_KEY = "household_metadata"


def generate_invite_code() -> str:
    return "INV-" + uuid4().hex[:8].upper()


class HouseholdService:
    def __init__(self, store: DocumentStoreInterface, session: SessionContext, bus: ChangeBus):
        self._store = store
        self._session = session
        self._bus = bus
        self._logger = get_logger("household")

    async def get_current(self) -> Optional[Household]:
        doc = await self._store.get(Collection.HOUSEHOLD, HOUSEHOLD_KEY)
        return Household.from_document(doc) if doc is not None else None

    async def _require(self) -> Household:
        household = await self.get_current()
        if household is None:
            raise EntityNotFoundError("Household", HOUSEHOLD_KEY)
        return household

    async def _save(self, household: Household) -> Household:
        doc = household.to_document()
        doc["_id"] = HOUSEHOLD_KEY
        household.rev = await self._store.put(Collection.HOUSEHOLD, doc)
        self._bus.publish(ChangeTopic.HOUSEHOLD_CHANGED)
        return household

    async def create(
        self,
        name: str,
        owner: SessionUser,
        household_id: Optional[str] = None,
    ) -> Household:
        """
        Create the household with `owner` as its first member and make it
        the active household of the session.
        """
        if household_id is None:
            household_id = self._session.household_id if self._session.has_household else new_id()
        now = utc_now()
        household = Household(
            id=household_id,
            household_id=household_id,
            name=name,
            owner_id=owner.id,
            invite_code=generate_invite_code(),
            members=[
                HouseholdMember(
                    user_id=owner.id,
                    name=owner.name,
                    email=owner.email or "",
                    role=MemberRole.OWNER,
                    joined_at=now,
                )
            ],
            created_at=now,
            updated_at=now,
        )
        household = await self._save(household)
        self._session.set_household_id(household_id)
        self._logger.info("household_created", household_id=household_id, owner_id=owner.id)
        return household

    async def update(self, partial: dict[str, Any]) -> Household:
        household = await self._require()
        protected = {"id", "household_id", "owner_id", "members", "created_at", "rev"} & set(partial)
        if protected:
            raise LedgerValidationError(f"Fields cannot be updated: {', '.join(sorted(protected))}")
        data = household.model_dump()
        data.update(partial)
        data["updated_at"] = utc_now()
        return await self._save(Household.model_validate(data))

    async def find_member(self, user_id: str) -> Optional[HouseholdMember]:
        household = await self.get_current()
        if household is None:
            return None
        return next((m for m in household.members if m.user_id == user_id), None)

    async def add_member(
        self,
        user_id: str,
        name: str,
        email: str,
        role: MemberRole = MemberRole.MEMBER,
    ) -> Household:
        household = await self._require()
        if any(m.user_id == user_id for m in household.members):
            raise LedgerValidationError(f"User is already a member: {user_id}")
        household.members.append(
            HouseholdMember(user_id=user_id, name=name, email=email, role=role, joined_at=utc_now())
        )
        household.updated_at = utc_now()
        self._logger.info("household_member_added", user_id=user_id, role=role.value)
        return await self._save(household)

    async def remove_member(self, user_id: str) -> Household:
        """Remove a member. The owner cannot be removed; unknown users are a no-op."""
        household = await self._require()
        if user_id == household.owner_id:
            raise LedgerValidationError("The household owner cannot be removed")
        remaining = [m for m in household.members if m.user_id != user_id]
        if len(remaining) == len(household.members):
            return household
        household.members = remaining
        household.updated_at = utc_now()
        self._logger.info("household_member_removed", user_id=user_id)
        return await self._save(household)
