# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import date

from werkowt.mealplans.models import GeneratedMealPlan, MealPlan, ShoppingCategory
from werkowt.shopping.models import AMOUNT_MAX_LENGTH, NAME_MAX_LENGTH, items_from_meal_plan


def _plan(generated: dict) -> MealPlan:
    return MealPlan(
        id="p1",
        title="Week",
        start_date=date(2025, 3, 3),
        number_of_days=1,
        meal_plan_text="",
        created_at="2025-03-03T00:00:00Z",
        is_ai_generated=True,
        generated_meal_plan=GeneratedMealPlan.model_validate(generated),
    )


_DAYS = [{"meals": [{"name": "Rice bowl"}]}]


class TestItemsFromMealPlan(unittest.TestCase):
    def test_wordy_model_items_are_clipped(self) -> None:
        plan = _plan(
            {
                "dailyMeals": _DAYS,
                "shoppingList": [
                    {"name": "Rice", "amount": "a" * 150, "category": "Store Cupboard"},
                    {"name": "B" * 250, "amount": "1"},
                ],
            }
        )
        rice, long_name = items_from_meal_plan(plan)
        self.assertEqual(rice.name, "Rice")
        self.assertEqual(len(rice.amount), AMOUNT_MAX_LENGTH)
        self.assertEqual(rice.category, ShoppingCategory.store_cupboard)
        self.assertEqual(len(long_name.name), NAME_MAX_LENGTH)

    def test_legacy_map_skips_blank_and_clips_long_names(self) -> None:
        plan = _plan(
            {
                "dailyMeals": _DAYS,
                "categorizedShoppingList": {"Dairy": ["Milk", "   ", "C" * 300], "Weird aisle": ["Tofu"]},
            }
        )
        items = items_from_meal_plan(plan)
        self.assertEqual([len(i.name) for i in items], [4, NAME_MAX_LENGTH, 4])
        self.assertEqual([i.category for i in items], [ShoppingCategory.dairy, ShoppingCategory.dairy, ShoppingCategory.other])

    def test_plan_without_generated_content_has_no_items(self) -> None:
        plan = MealPlan(
            id="p2",
            title="Manual",
            start_date=date(2025, 3, 3),
            number_of_days=1,
            meal_plan_text="Mon: oats",
            created_at="2025-03-03T00:00:00Z",
        )
        self.assertEqual(items_from_meal_plan(plan), [])


if __name__ == "__main__":
    unittest.main()
