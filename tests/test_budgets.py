"""Tests for recurring and event budgets."""

import pytest
from datetime import date
from decimal import Decimal

from household_ledger.models import BudgetMode, BudgetStatus, PlanItem


def monthly_budget():
    return {
        "name": "May",
        "period": "2024-05",
        "category_limit_config": [
            {"category_id": "food", "amount": Decimal("500")},
            {"category_id": "travel", "amount": Decimal("300")},
        ],
    }


def event_budget(**overrides):
    data = {
        "name": "Goa trip",
        "budget_mode": BudgetMode.EVENT,
        "start_date": date(2024, 12, 20),
        "end_date": date(2024, 12, 27),
    }
    data.update(overrides)
    return data


class TestPlanItem:
    """Tests for plan item totals."""

    def test_total_from_unit_and_quantity(self):
        """Test unit x quantity."""
        assert PlanItem(name="Flights", unit_amount=Decimal("100"), quantity=Decimal("2")).total_amount == Decimal("200")

    def test_explicit_total_wins(self):
        """Test that a given total is kept."""
        item = PlanItem(name="Hotel", unit_amount=Decimal("100"), total_amount=Decimal("450"))
        assert item.total_amount == Decimal("450")


class TestBudgetService:
    """Tests for budget persistence rules."""

    @pytest.mark.asyncio
    async def test_total_follows_category_limits(self, services):
        """Test that total_budget is the sum of the limits."""
        budget = await services.budgets.create(monthly_budget())
        assert budget.total_budget == Decimal("800")
        assert budget.status == BudgetStatus.DRAFT

    @pytest.mark.asyncio
    async def test_update_recomputes_total(self, services):
        """Test that changing limits changes the total."""
        budget = await services.budgets.create(monthly_budget())
        budget = await services.budgets.update(budget.id, {
            "category_limit_config": [{"category_id": "food", "amount": Decimal("650")}],
        })
        assert budget.total_budget == Decimal("650")

    @pytest.mark.asyncio
    async def test_event_budget_requires_dates(self, services):
        """Test that an EVENT budget without a range is rejected."""
        with pytest.raises(ValueError):
            await services.budgets.create(event_budget(end_date=None))

    @pytest.mark.asyncio
    async def test_event_budget_range_order(self, services):
        """Test that the end date cannot precede the start date."""
        with pytest.raises(ValueError):
            await services.budgets.create(event_budget(end_date=date(2024, 12, 1)))

    @pytest.mark.asyncio
    async def test_plan_items(self, services):
        """Test adding and removing checklist lines."""
        budget = await services.budgets.create(event_budget())

        item = await services.budgets.add_plan_item(
            budget.id, {"name": "Flights", "unit_amount": Decimal("100"), "quantity": Decimal("2")}
        )
        assert item.total_amount == Decimal("200")
        stored = await services.budgets.get_by_id(budget.id)
        assert [i.id for i in stored.plan_items] == [item.id]

        budget = await services.budgets.remove_plan_item(budget.id, item.id)
        assert budget.plan_items == []

    @pytest.mark.asyncio
    async def test_remove_unknown_plan_item_is_noop(self, services, published):
        """Test that removing an unknown item changes nothing."""
        budget = await services.budgets.create(event_budget())
        published.clear()

        result = await services.budgets.remove_plan_item(budget.id, "missing")
        assert result.plan_items == []
        assert published == []

    @pytest.mark.asyncio
    async def test_active_event_budgets(self, services):
        """Test that only activated EVENT budgets are listed."""
        await services.budgets.create(monthly_budget())
        draft = await services.budgets.create(event_budget(name="Draft trip"))
        active = await services.budgets.create(event_budget())
        await services.budgets.activate(active.id)

        listed = await services.budgets.get_active_event_budgets()
        assert [b.id for b in listed] == [active.id]
        assert draft.id not in [b.id for b in listed]
