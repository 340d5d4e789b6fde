"""
Budget Engine

Recurring budgets (per-category monthly limits) and event budgets (a date
range with a plan checklist). total_budget follows the category limits;
total_spent is left to the caller.
"""

from decimal import Decimal
from typing import Any, Optional, Union

from household_ledger.models.base import utc_now
from household_ledger.models.ledger import Budget, BudgetMode, BudgetStatus, PlanItem
from household_ledger.notifications import ChangeTopic
from household_ledger.services.base import CollectionService
from household_ledger.services.storage import Collection


def with_limit_total(budget: Budget) -> Budget:
    """total_budget = sum of category limits, when any limits are set."""
    if not budget.category_limit_config:
        return budget
    total = sum((limit.amount for limit in budget.category_limit_config), Decimal("0"))
    return budget.model_copy(update={"total_budget": total})


class BudgetService(CollectionService[Budget]):
    collection = Collection.BUDGETS
    model = Budget
    topic = ChangeTopic.BUDGETS_CHANGED
    entity_name = "Budget"

    def _build(self, data: Union[Budget, dict[str, Any]]) -> Budget:
        return with_limit_total(super()._build(data))

    def _merge(self, record: Budget, partial: dict[str, Any]) -> Budget:
        return with_limit_total(super()._merge(record, partial))

    async def get_active_event_budgets(self, household_id: Optional[str] = None) -> list[Budget]:
        return [
            b for b in await self.get_all(household_id)
            if b.budget_mode == BudgetMode.EVENT and b.status == BudgetStatus.ACTIVE
        ]

    async def add_plan_item(self, budget_id: str, item: Union[PlanItem, dict[str, Any]]) -> PlanItem:
        """Append a checklist line to a budget; returns it with its new id."""
        budget = await self._require(budget_id)
        plan_item = item if isinstance(item, PlanItem) else PlanItem.model_validate(item)
        budget.plan_items.append(plan_item)
        budget.updated_at = utc_now()
        await self._save(budget)
        self._logger.info("plan_item_added", budget_id=budget_id, item_id=plan_item.id)
        self._bus.publish(self.topic)
        return plan_item

    async def remove_plan_item(self, budget_id: str, item_id: str) -> Budget:
        budget = await self._require(budget_id)
        remaining = [i for i in budget.plan_items if i.id != item_id]
        if len(remaining) == len(budget.plan_items):
            return budget
        budget.plan_items = remaining
        budget.updated_at = utc_now()
        budget = await self._save(budget)
        self._bus.publish(self.topic)
        return budget

    async def activate(self, budget_id: str) -> Budget:
        return await self.update(budget_id, {"status": BudgetStatus.ACTIVE})
