# -*- coding: utf-8 -*-

from __future__ import annotations

import contextlib
import io
import json
import unittest
from datetime import datetime, timezone

from tests.support import AppTestCase

# 2025-03-03T00:00:00Z in seconds since 2001-01-01.
_MARCH_3 = 762652800

_EXPORT = {
    "MacroGoals": {"calories": 2100, "protein": 160},
    "SavedMealPlans": [
        {
            "id": "plan-manual",
            "title": "Cutting week",
            "startDate": _MARCH_3,
            "numberOfDays": 7,
            "mealPlanText": "Mon: eggs",
            "createdAt": _MARCH_3,
            "isAIGenerated": False,
        },
        {
            "id": "plan-ai",
            "startDate": "2025-03-10T00:00:00Z",
            "createdAt": "2025-03-09T18:30:00Z",
            "isAIGenerated": True,
            "generatedMealPlan": {
                "title": "Veggie Boost",
                "description": "Plant forward.",
                "totalDays": 2,
                "dailyMeals": [
                    {"day": 1, "date": "March 10, 2025", "meals": [{"type": "lunch", "name": "Lentil soup"}]},
                    {"day": 2, "date": "March 11, 2025", "meals": [{"type": "dinner", "name": "Tofu stir fry"}]},
                ],
            },
        },
        {"title": "no id here", "startDate": _MARCH_3},
    ],
    "ShoppingLists": [
        {
            "id": "list-1",
            "mealPlanId": "plan-manual",
            "mealPlanTitle": "Cutting week",
            "createdAt": _MARCH_3,
            "items": [
                {"id": "item-1", "name": "Eggs", "amount": "12", "category": "Dairy", "isCompleted": True},
                {"name": "Spinach", "amount": "200g", "category": "Fruit & Veg"},
                {"amount": "nameless"},
            ],
        },
        {"id": "list-2", "mealPlanId": "plan-missing", "createdAt": _MARCH_3, "items": []},
    ],
}


class TestDeviceDates(unittest.TestCase):
    def test_reference_date_seconds_and_iso(self) -> None:
        from werkowt.migrate import MigrationError, parse_device_datetime

        self.assertEqual(parse_device_datetime(_MARCH_3), datetime(2025, 3, 3, tzinfo=timezone.utc))
        self.assertEqual(parse_device_datetime(0), datetime(2001, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(parse_device_datetime("2025-03-10T08:00:00"), datetime(2025, 3, 10, 8, tzinfo=timezone.utc))
        with self.assertRaises(MigrationError):
            parse_device_datetime("yesterday")
        with self.assertRaises(MigrationError):
            parse_device_datetime(True)


class TestMigrate(AppTestCase):
    @classmethod
    def setUpClass(cls) -> None:
        super().setUpClass()
        # Bind to the modules the app was just (re)imported with.
        from werkowt import migrate

        cls.migrate = migrate

    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            code = self.migrate.main(list(argv))
        return code, out.getvalue()

    def _export_file(self) -> str:
        path = self._tmp / "device.json"
        path.write_text(json.dumps(_EXPORT), encoding="utf-8")
        return str(path)

    def test_unknown_account(self) -> None:
        code, out = self._run("--email", "ghost@example.com", "--export", self._export_file())
        self.assertEqual(code, 1)
        self.assertIn("No account for ghost@example.com", out)

    def test_missing_export_file(self) -> None:
        self.register(email="nofile@example.com")
        code, out = self._run("--email", "nofile@example.com", "--export", str(self._tmp / "absent.json"))
        self.assertEqual(code, 1)
        self.assertIn("Export file not found", out)

    def test_dry_run_writes_nothing(self) -> None:
        headers = self.register(email="dry@example.com")
        code, out = self._run("--email", "dry@example.com", "--export", self._export_file(), "--dry-run")
        self.assertEqual(code, 0)
        self.assertIn("Meal plans: 2", out)
        self.assertIn("Shopping lists: 1", out)
        self.assertIn("Dry run: nothing was written.", out)

        self.assertEqual(self.client.get("/api/meal-plans", headers=headers).json()["plans"], [])
        self.assertTrue(self.client.get("/api/macros/goals", headers=headers).json()["is_default"])

    def test_full_import_then_marker(self) -> None:
        headers = self.register(email="phone@example.com")
        export = self._export_file()

        code, out = self._run("--email", "phone@example.com", "--export", export)
        self.assertEqual(code, 0, out)
        self.assertIn("Macro goals: imported", out)
        self.assertIn("Skipped: meal plan without id", out)
        self.assertIn("Skipped: shopping list list-2: Meal plan not found", out)
        self.assertIn("Migration completed successfully!", out)

        goals = self.client.get("/api/macros/goals", headers=headers).json()["goals"]
        self.assertEqual(goals, {"calories": 2100.0, "protein": 160.0, "carbs": 200.0, "fat": 80.0})

        plans = {p["id"]: p for p in self.client.get("/api/meal-plans", headers=headers).json()["plans"]}
        self.assertEqual(set(plans), {"plan-manual", "plan-ai"})
        self.assertEqual(plans["plan-manual"]["start_date"], "2025-03-03")
        self.assertEqual(plans["plan-manual"]["created_at"], "2025-03-03T00:00:00Z")
        ai = plans["plan-ai"]
        self.assertEqual(ai["title"], "Veggie Boost")
        self.assertEqual(ai["number_of_days"], 2)
        self.assertTrue(ai["is_ai_generated"])
        self.assertIn("Lentil soup", ai["meal_plan_text"])

        sl = self.client.get("/api/shopping-lists/by-meal-plan/plan-manual", headers=headers).json()
        self.assertEqual([i["name"] for i in sl["items"]], ["Eggs", "Spinach"])
        self.assertEqual(sl["completed_count"], 1)
        self.assertEqual(sl["items"][0]["id"], "item-1")

        code, out = self._run("--email", "phone@example.com", "--export", export)
        self.assertEqual(code, 0)
        self.assertIn("Migration already completed", out)

        code, out = self._run("--email", "phone@example.com", "--export", export, "--force")
        self.assertEqual(code, 0)
        self.assertIn("Migration completed successfully!", out)
        self.assertEqual(len(self.client.get("/api/meal-plans", headers=headers).json()["plans"]), 2)

        code, out = self._run("--email", "phone@example.com", "--reset")
        self.assertEqual(code, 0)
        self.assertIn("Migration state reset.", out)
        code, out = self._run("--email", "phone@example.com", "--reset")
        self.assertIn("No migration recorded.", out)

    def test_plans_owned_by_someone_else_are_skipped(self) -> None:
        self.register(email="first@example.com")
        self.register(email="second@example.com")
        plan = dict(_EXPORT["SavedMealPlans"][0], id="shared-plan")
        path = self._tmp / "shared.json"
        path.write_text(json.dumps({"SavedMealPlans": [plan]}), encoding="utf-8")
        self.assertEqual(self._run("--email", "first@example.com", "--export", str(path))[0], 0)

        code, out = self._run("--email", "second@example.com", "--export", str(path))
        self.assertEqual(code, 0)
        self.assertIn("Macro goals: none", out)
        self.assertIn("Skipped: meal plan shared-plan: Meal plan not found", out)
        self.assertIn("Meal plans: 0", out)

    def test_bad_records_are_reported_not_fatal(self) -> None:
        headers = self.register(email="messy@example.com")
        plan = dict(_EXPORT["SavedMealPlans"][0], id="messy-plan")
        shopping = {
            "id": "messy-list",
            "mealPlanId": "messy-plan",
            "createdAt": _MARCH_3,
            "items": [{"name": "Oats " + "o" * 300, "amount": "1" * 150}, "not an item"],
        }
        export = {
            "MacroGoals": {"calories": -1},
            "SavedMealPlans": ["oops", plan, {"id": "no-date"}],
            "ShoppingLists": [shopping, 42],
        }
        path = self._tmp / "messy.json"
        path.write_text(json.dumps(export), encoding="utf-8")

        code, out = self._run("--email", "messy@example.com", "--export", str(path))
        self.assertEqual(code, 0, out)
        self.assertIn("Macro goals: none", out)
        self.assertIn("Skipped: macro goals: calories", out)
        self.assertIn("Skipped: meal plan: expected an object", out)
        self.assertIn("Skipped: Unrecognised date: None", out)
        self.assertIn("Skipped: shopping list: expected an object", out)
        self.assertIn("Meal plans: 1", out)
        self.assertIn("Shopping lists: 1", out)

        sl = self.client.get("/api/shopping-lists/by-meal-plan/messy-plan", headers=headers).json()
        self.assertEqual(len(sl["items"]), 1)
        self.assertEqual(len(sl["items"][0]["name"]), 200)
        self.assertEqual(len(sl["items"][0]["amount"]), 100)

    def test_collections_of_the_wrong_shape_are_skipped(self) -> None:
        self.register(email="shapes@example.com")
        path = self._tmp / "shapes.json"
        path.write_text(json.dumps({"MacroGoals": [2000], "SavedMealPlans": "oops", "ShoppingLists": {"a": 1}}), encoding="utf-8")

        code, out = self._run("--email", "shapes@example.com", "--export", str(path), "--dry-run")
        self.assertEqual(code, 0, out)
        self.assertIn("Skipped: macro goals: expected an object", out)
        self.assertIn("Skipped: SavedMealPlans: expected an array", out)
        self.assertIn("Skipped: ShoppingLists: expected an array", out)
        self.assertIn("Meal plans: 0", out)


if __name__ == "__main__":
    unittest.main()
