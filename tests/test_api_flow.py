# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from unittest import mock

from tests.support import AppTestCase


def _generated_plan():
    from werkowt.mealplans.models import GeneratedMealPlan

    return GeneratedMealPlan.model_validate(
        {
            "title": "Lean Week",
            "description": "Two easy days.",
            "dailyMeals": [
                {
                    "date": "March 3, 2025",
                    "meals": [
                        {"type": "breakfast", "name": "Eggs", "nutrition": {"calories": 300, "protein": 20, "carbs": 2, "fat": 22}},
                        {"type": "dinner", "name": "Salmon", "nutrition": {"calories": 550, "protein": 40, "carbs": 30, "fat": 25}},
                    ],
                },
                {"date": "March 4, 2025", "meals": [{"type": "lunch", "name": "Soup"}]},
            ],
            "shoppingList": [
                {"name": "Eggs", "amount": "12", "category": "Dairy"},
                {"name": "Salmon", "amount": "400g", "category": "Meat & Fish"},
                {"name": "Carrots", "amount": "500g", "category": "Fruit & Veg"},
            ],
        }
    )


class TestAuthFlow(AppTestCase):
    def test_health_is_public(self) -> None:
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "ok")

    def test_register_login_and_me(self) -> None:
        email = "Runner@Example.com"
        self.register(email=email)

        resp = self.client.post("/api/auth/login", json={"email": "runner@example.com", "password": "wrong-pass"})
        self.assertEqual(resp.status_code, 401)

        resp = self.client.post("/api/auth/login", json={"email": "runner@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 200, resp.text)
        token = resp.json()["token"]

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["email"], "runner@example.com")
        self.assertEqual(me.json()["username"], "runner")

    def test_duplicate_registration_is_rejected(self) -> None:
        self.register(email="dup@example.com")
        resp = self.client.post("/api/auth/register", json={"email": "dup@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 400)
        self.client.cookies.clear()

    def test_protected_routes_need_a_token(self) -> None:
        self.client.cookies.clear()
        self.assertEqual(self.client.get("/api/macros/goals").status_code, 401)
        resp = self.client.get("/api/macros/goals", headers={"Authorization": "Bearer not-a-token"})
        self.assertEqual(resp.status_code, 401)

        session = self.client.get("/api/auth/session")
        self.assertEqual(session.status_code, 200)
        self.assertFalse(session.json()["authenticated"])


class TestMacroGoals(AppTestCase):
    def test_defaults_then_saved_goals(self) -> None:
        headers = self.register()

        resp = self.client.get("/api/macros/goals", headers=headers)
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["is_default"])
        self.assertEqual(body["goals"], {"calories": 2000.0, "protein": 150.0, "carbs": 200.0, "fat": 80.0})

        goals = {"calories": 2400, "protein": 180, "carbs": 250, "fat": 70}
        resp = self.client.put("/api/macros/goals", json=goals, headers=headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertFalse(resp.json()["is_default"])

        body = self.client.get("/api/macros/goals", headers=headers).json()
        self.assertFalse(body["is_default"])
        self.assertEqual(body["goals"]["calories"], 2400.0)
        self.assertTrue(body["updated_at"].endswith("Z"))

    def test_negative_goal_is_rejected(self) -> None:
        headers = self.register()
        resp = self.client.put("/api/macros/goals", json={"calories": -5}, headers=headers)
        self.assertEqual(resp.status_code, 422)

    def test_progress(self) -> None:
        headers = self.register()
        self.client.put("/api/macros/goals", json={"calories": 2000, "protein": 100, "carbs": 200, "fat": 0}, headers=headers)

        resp = self.client.post(
            "/api/macros/progress",
            json={"calories": 2500, "protein": 50, "carbs": 0, "fat": 10},
            headers=headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        progress = resp.json()["progress"]
        self.assertEqual(progress["calories"]["percentage"], 100.0)
        self.assertTrue(progress["calories"]["achieved"])
        self.assertEqual(progress["protein"]["progress"], 0.5)
        self.assertEqual(progress["fat"]["progress"], 0.0)
        self.assertFalse(resp.json()["all_achieved"])


class TestMealPlansAndShopping(AppTestCase):
    def test_manual_plan_crud(self) -> None:
        headers = self.register()
        resp = self.client.post(
            "/api/meal-plans",
            json={"title": "My week", "start_date": "2025-12-29", "number_of_days": 7, "meal_plan_text": "Mon: oats"},
            headers=headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        plan = resp.json()
        self.assertFalse(plan["is_ai_generated"])
        self.assertEqual(plan["end_date"], "2026-01-04")
        self.assertEqual(plan["date_range"], "Dec 29 - Jan 4, 2026")

        listed = self.client.get("/api/meal-plans", headers=headers).json()["plans"]
        self.assertEqual([p["id"] for p in listed], [plan["id"]])

        other = self.register()
        self.assertEqual(self.client.get(f"/api/meal-plans/{plan['id']}", headers=other).status_code, 404)

        self.assertEqual(self.client.delete(f"/api/meal-plans/{plan['id']}", headers=headers).status_code, 200)
        self.assertEqual(self.client.get(f"/api/meal-plans/{plan['id']}", headers=headers).status_code, 404)

    def test_generate_uses_saved_goals_and_builds_shopping_list(self) -> None:
        headers = self.register()
        self.client.put("/api/macros/goals", json={"calories": 1800, "protein": 140, "carbs": 150, "fat": 60}, headers=headers)

        with mock.patch("werkowt.mealplans.api.generate_meal_plan", return_value=_generated_plan()) as gen:
            resp = self.client.post(
                "/api/meal-plans/generate",
                json={"number_of_days": 2, "start_date": "2025-03-03", "preferences": "fish"},
                headers=headers,
            )
        self.assertEqual(resp.status_code, 200, resp.text)
        sent = gen.call_args.args[0]
        self.assertEqual(sent.macro_goals.calories, 1800.0)

        plan = resp.json()
        self.assertTrue(plan["is_ai_generated"])
        self.assertEqual(plan["title"], "Lean Week")
        self.assertIn("Day 1 (March 3, 2025)", plan["meal_plan_text"])
        generated = plan["generated_meal_plan"]
        self.assertEqual(generated["totalDays"], 2)
        self.assertEqual(generated["dailyMeals"][0]["dailyNutrition"]["totalCalories"], 850.0)

        resp = self.client.post("/api/shopping-lists", json={"meal_plan_id": plan["id"]}, headers=headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        created = resp.json()
        self.assertTrue(created["created"])
        sl = created["shopping_list"]
        self.assertEqual(sl["meal_plan_title"], "Lean Week")
        self.assertEqual(sorted(sl["categories"].keys()), ["Dairy", "Fruit & Veg", "Meat & Fish"])
        self.assertEqual(sl["completion_text"], "0 of 3 completed")

        again = self.client.post("/api/shopping-lists", json={"meal_plan_id": plan["id"]}, headers=headers).json()
        self.assertFalse(again["created"])
        self.assertEqual(again["shopping_list"]["id"], sl["id"])

        item_id = sl["items"][0]["id"]
        toggled = self.client.patch(f"/api/shopping-lists/items/{item_id}", json={}, headers=headers).json()
        self.assertEqual(toggled["completed_count"], 1)
        self.assertEqual(toggled["completion_percentage"], round(1 / 3, 4))
        explicit = self.client.patch(
            f"/api/shopping-lists/items/{item_id}", json={"is_completed": True}, headers=headers
        ).json()
        self.assertEqual(explicit["completed_count"], 1)

        reset = self.client.post(f"/api/shopping-lists/{sl['id']}/reset", headers=headers).json()
        self.assertEqual(reset["completed_count"], 0)

        replaced = self.client.put(
            f"/api/shopping-lists/{sl['id']}/items",
            json={"items": [{"name": "Lemons", "amount": "2", "category": "Fruit & Veg"}]},
            headers=headers,
        ).json()
        self.assertEqual([i["name"] for i in replaced["items"]], ["Lemons"])

        by_plan = self.client.get(f"/api/shopping-lists/by-meal-plan/{plan['id']}", headers=headers)
        self.assertEqual(by_plan.json()["id"], sl["id"])

        # Deleting the plan removes its list.
        self.client.delete(f"/api/meal-plans/{plan['id']}", headers=headers)
        self.assertEqual(self.client.get(f"/api/shopping-lists/{sl['id']}", headers=headers).status_code, 404)

    def test_shopping_list_for_foreign_plan_is_404(self) -> None:
        owner = self.register()
        plan = self.client.post(
            "/api/meal-plans",
            json={"title": "Mine", "start_date": "2025-01-01", "number_of_days": 1, "meal_plan_text": "x"},
            headers=owner,
        ).json()
        intruder = self.register()
        resp = self.client.post("/api/shopping-lists", json={"meal_plan_id": plan["id"]}, headers=intruder)
        self.assertEqual(resp.status_code, 404)

    def test_stored_content_that_no_longer_decodes_is_dropped(self) -> None:
        from werkowt.app_db import db_conn
        from werkowt.config import settings

        headers = self.register()
        with mock.patch("werkowt.mealplans.api.generate_meal_plan", return_value=_generated_plan()):
            plan = self.client.post("/api/meal-plans/generate", json={"number_of_days": 2}, headers=headers).json()
        self.assertIsNotNone(plan["generated_meal_plan"])

        for stored in ('{"dailyMeals": [', "[1, 2, 3]"):
            with db_conn(settings.app_db_path) as conn:
                conn.execute("UPDATE meal_plans SET generated_content = ? WHERE id = ?", (stored, plan["id"]))
            with self.assertLogs("werkowt.mealplans.storage", level="WARNING"):
                fetched = self.client.get(f"/api/meal-plans/{plan['id']}", headers=headers)
            self.assertEqual(fetched.status_code, 200, fetched.text)
            body = fetched.json()
            self.assertIsNone(body["generated_meal_plan"])
            self.assertTrue(body["is_ai_generated"])
            self.assertEqual(body["meal_plan_text"], plan["meal_plan_text"])

        resp = self.client.post("/api/shopping-lists", json={"meal_plan_id": plan["id"]}, headers=headers)
        self.assertEqual(resp.json()["shopping_list"]["items"], [])

    def test_generation_without_api_key_is_503(self) -> None:
        headers = self.register()
        with mock.patch.dict("os.environ", {"ANTHROPIC_BASE_URL": "https://llm.test"}), mock.patch(
            "werkowt.llm.client.settings.anthropic_api_key", None
        ):
            resp = self.client.post("/api/meal-plans/generate", json={"number_of_days": 1}, headers=headers)
            suggest = self.client.post("/api/meal-plans/suggestions", json={"preferences": "quick"}, headers=headers)
        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["detail"], "No API key configured")
        self.assertEqual(suggest.status_code, 503)

    def test_invalid_model_output_is_502(self) -> None:
        from werkowt.llm.client import LLMError, LLMErrorKind

        headers = self.register()
        with mock.patch(
            "werkowt.mealplans.api.generate_meal_plan",
            side_effect=LLMError(LLMErrorKind.invalid_format),
        ):
            resp = self.client.post("/api/meal-plans/generate", json={"number_of_days": 1}, headers=headers)
        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["detail"], "The meal planning service returned an invalid meal plan format")
        self.assertEqual(self.client.get("/api/meal-plans", headers=headers).json()["plans"], [])


if __name__ == "__main__":
    unittest.main()
