"""Category service."""

from typing import Optional

from household_ledger.models.ledger import Category, CategoryType
from household_ledger.notifications import ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.storage import Collection


class CategoryService(CollectionService[Category]):
    collection = Collection.CATEGORIES
    model = Category
    topic = ChangeTopic.CATEGORIES_CHANGED
    entity_name = "Category"

    async def get_by_type(
        self, category_type: CategoryType, household_id: Optional[str] = None
    ) -> list[Category]:
        household_id = household_id or self._session.household_id
        docs = await self._store.find(
            self.collection,
            {"householdId": household_id, "type": CategoryType(category_type).value},
        )
        return [Category.from_document(doc) for doc in docs]
