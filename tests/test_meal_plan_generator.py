# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import os
import unittest
from datetime import date
from unittest import mock

import httpx

from werkowt.llm.client import LLMError, LLMErrorKind
from werkowt.macros.models import MacroGoals
from werkowt.mealplans.generator import build_meal_plan_prompt, decode_meal_plan, generate_meal_plan, suggest_quick_meals
from werkowt.mealplans.models import (
    CookingFrequency,
    MealPlanGenerateRequest,
    MealPlanningConfiguration,
    MealType,
    MeasurementUnit,
    ShoppingCategory,
    TemperatureUnit,
)

_PLAN = {
    "title": "High Protein Week",
    "description": "Simple meals.",
    "totalDays": 2,
    "dailyMeals": [
        {
            "day": 1,
            "date": "March 3, 2025",
            "meals": [
                {
                    "type": "breakfast",
                    "name": "Oats",
                    "ingredients": ["80g oats", "200ml milk"],
                    "instructions": ["Cook oats"],
                    "prepTime": 10,
                    "nutrition": {"calories": 400, "protein": 20, "carbs": 60, "fat": 8},
                },
                {
                    "type": "dinner",
                    "name": "Chicken rice",
                    "prepTime": "25 minutes",
                    "nutrition": {"calories": "600 kcal", "protein": 45, "carbs": 70, "fat": 12},
                },
            ],
        },
        {
            "day": 2,
            "date": "March 4, 2025",
            "meals": [{"type": "lunch", "name": "Salad"}],
            "dailyNutrition": {"totalCalories": 500, "totalProtein": 30, "totalCarbs": 40, "totalFat": 20},
        },
    ],
    "shoppingList": [
        {"name": "Oats", "amount": "500g", "category": "Store Cupboard"},
        {"name": "Chicken breast", "amount": "600g", "category": "Meat & Fish"},
        "Lettuce",
    ],
}


class TestPrompt(unittest.TestCase):
    def test_prompt_carries_request_details(self) -> None:
        request = MealPlanGenerateRequest(
            number_of_days=3,
            start_date=date(2025, 3, 3),
            preferences="no mushrooms",
            macro_goals=MacroGoals(calories=2200, protein=160, carbs=220, fat=70),
            configuration=MealPlanningConfiguration(
                meal_types=[MealType.breakfast, MealType.dinner],
                household_size=2,
                cooking_frequency=CookingFrequency.twice_per_week,
                allergens=["peanuts"],
            ),
            measurement_unit=MeasurementUnit.imperial,
            temperature_unit=TemperatureUnit.fahrenheit,
        )
        prompt = build_meal_plan_prompt(request)

        self.assertIn("3 days starting from March 3, 2025", prompt)
        self.assertIn("no mushrooms", prompt)
        self.assertIn("- Calories: 2200", prompt)
        self.assertIn("- Protein: 160g", prompt)
        self.assertIn("breakfast, dinner", prompt)
        self.assertIn("Household size: 2", prompt)
        self.assertIn("Batch cooking", prompt)
        self.assertIn("peanuts", prompt)
        self.assertIn("ounces, pounds and cups", prompt)
        self.assertIn("°F", prompt)
        self.assertIn('day 2 is "March 4, 2025"', prompt)
        self.assertIn('"Meat & Fish"', prompt)
        self.assertTrue(prompt.rstrip().endswith("no additional text or formatting."))

    def test_prompt_without_goals_or_preferences(self) -> None:
        prompt = build_meal_plan_prompt(MealPlanGenerateRequest(number_of_days=1, start_date=date(2025, 1, 1)))
        self.assertIn("No specific preferences", prompt)
        self.assertNotIn("Daily Macro Targets", prompt)
        self.assertNotIn("Meal Planning Configuration", prompt)
        self.assertIn("grams, kilograms and millilitres", prompt)


class TestDecode(unittest.TestCase):
    def test_decodes_plan_wrapped_in_prose(self) -> None:
        text = "Sure! Here is the plan:\n\n" + json.dumps(_PLAN) + "\n\nLet me know if you need changes."
        plan = decode_meal_plan(text)

        self.assertEqual(plan.title, "High Protein Week")
        self.assertEqual(plan.total_days, 2)
        self.assertEqual(len(plan.all_meals()), 3)
        dinner = plan.daily_meals[0].meals[1]
        self.assertEqual(dinner.prep_time, 25)
        self.assertEqual(dinner.nutrition.calories, 600.0)
        # Day 1 totals are derived from its meals; day 2 keeps the model's totals.
        self.assertEqual(plan.daily_meals[0].daily_nutrition.total_calories, 1000.0)
        self.assertEqual(plan.daily_meals[1].daily_nutrition.total_calories, 500.0)
        self.assertEqual(plan.total_nutrition.total_calories, 1500.0)

        categories = [item.category for item in plan.shopping_list]
        self.assertEqual(categories, [ShoppingCategory.store_cupboard, ShoppingCategory.meat_fish, ShoppingCategory.other])
        self.assertEqual(plan.shopping_list[2].name, "Lettuce")

    def test_decodes_fenced_json_with_trailing_commas(self) -> None:
        text = (
            "```json\n"
            '{"title": "Quick", "dailyMeals": [{"meals": [{"type": "Lunch", "name": "Wrap",},],},],}\n'
            "```"
        )
        plan = decode_meal_plan(text)
        self.assertEqual(plan.total_days, 1)
        self.assertEqual(plan.daily_meals[0].day, 1)
        self.assertEqual(plan.daily_meals[0].meals[0].type, MealType.lunch)

    def test_legacy_category_map_is_kept(self) -> None:
        raw = dict(_PLAN, shoppingList={"Dairy": ["Milk", "Yogurt"], "Frozen": "Peas"})
        plan = decode_meal_plan(json.dumps(raw))
        self.assertIsNone(plan.shopping_list)
        self.assertEqual(plan.categorized_shopping_list, {"Dairy": ["Milk", "Yogurt"], "Frozen": ["Peas"]})

    def test_text_without_object_is_invalid_format(self) -> None:
        with self.assertRaises(LLMError) as ctx:
            decode_meal_plan("I'm sorry, I can't create that plan.")
        self.assertEqual(ctx.exception.kind, LLMErrorKind.invalid_format)

    def test_plan_without_days_is_invalid_format(self) -> None:
        with self.assertRaises(LLMError) as ctx:
            decode_meal_plan('{"title": "Empty", "dailyMeals": []}')
        self.assertEqual(ctx.exception.kind, LLMErrorKind.invalid_format)

    def test_unparseable_object_is_json_parsing_error(self) -> None:
        with self.assertRaises(LLMError) as ctx:
            decode_meal_plan('{"title": "Broken", "dailyMeals": [ {"meals": oops } ]}')
        self.assertEqual(ctx.exception.kind, LLMErrorKind.json_parsing_error)
        self.assertEqual(ctx.exception.user_message, "Failed to parse meal plan data")


class TestGenerate(unittest.TestCase):
    def test_generate_round_trip_through_transport(self) -> None:
        prompts = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            prompts.append(body["messages"][0]["content"])
            reply = "Here you go:\n```json\n" + json.dumps(_PLAN) + "\n```"
            return httpx.Response(200, json={"content": [{"type": "text", "text": reply}]})

        env = {"ANTHROPIC_API_KEY": "k", "ANTHROPIC_BASE_URL": "https://llm.test"}
        request = MealPlanGenerateRequest(number_of_days=2, start_date=date(2025, 3, 3), preferences="high protein")
        with mock.patch.dict(os.environ, env), httpx.Client(transport=httpx.MockTransport(handler)) as http:
            plan = generate_meal_plan(request, client=http)

        self.assertEqual(len(prompts), 1)
        self.assertIn("high protein", prompts[0])
        self.assertEqual(plan.title, "High Protein Week")
        self.assertIn("Day 1 (March 3, 2025)", plan.to_text())
        self.assertIn("- Breakfast: Oats (400 kcal)", plan.to_text())


class TestQuickSuggestions(unittest.TestCase):
    def test_plain_text_reply_is_stripped(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            reply = "\n\n1. Greek yogurt bowl\n2. Tuna wrap\n3. Veggie omelette\n  "
            return httpx.Response(200, json={"content": [{"type": "text", "text": reply}]})

        env = {"ANTHROPIC_API_KEY": "k", "ANTHROPIC_BASE_URL": "https://llm.test"}
        with mock.patch.dict(os.environ, env), httpx.Client(transport=httpx.MockTransport(handler)) as http:
            text = suggest_quick_meals("  high protein, under 15 minutes ", client=http)

        self.assertEqual(text, "1. Greek yogurt bowl\n2. Tuna wrap\n3. Veggie omelette")
        self.assertEqual(seen["body"]["max_tokens"], 512)
        prompt = seen["body"]["messages"][0]["content"]
        self.assertTrue(prompt.startswith("Suggest 3 quick and healthy meal ideas"))
        self.assertIn("\nhigh protein, under 15 minutes\n", prompt)


if __name__ == "__main__":
    unittest.main()
