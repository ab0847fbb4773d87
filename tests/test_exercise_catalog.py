# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest

from werkowt.exercises.catalog import (
    ExerciseCategory,
    ExerciseEquipment,
    ExerciseType,
    all_exercises,
    filter_exercises,
    get_exercise,
    muscle_group_for,
    muscle_groups,
)
from tests.support import AppTestCase


class TestCatalog(unittest.TestCase):
    def test_groups_and_lookup(self) -> None:
        self.assertEqual([g.id for g in muscle_groups()], ["chest", "back", "legs", "shoulders", "arms", "core"])
        bench = get_exercise("bench_press")
        self.assertIsNotNone(bench)
        self.assertEqual(bench.name, "Bench Press")
        self.assertEqual(bench.type, ExerciseType.weight)
        self.assertIsNone(get_exercise("does_not_exist"))
        self.assertEqual(muscle_group_for("bench_press").id, "chest")

    def test_category_decides_type(self) -> None:
        self.assertEqual(get_exercise("planks").type, ExerciseType.bodyweight)
        self.assertEqual(get_exercise("mountain_climbers").type, ExerciseType.timed)
        self.assertEqual(ExerciseCategory.isolation.exercise_type, ExerciseType.weight)

    def test_filter(self) -> None:
        barbell_chest = filter_exercises(groups=["chest"], equipment=[ExerciseEquipment.barbell])
        self.assertIn("bench_press", [e.id for e in barbell_chest])
        self.assertTrue(all(e.equipment == ExerciseEquipment.barbell for e in barbell_chest))

        found = filter_exercises(query="BENCH")
        self.assertTrue(found)
        self.assertTrue(all("bench" in (e.name + e.instructions + " ".join(e.tips)).lower() for e in found))
        self.assertEqual(len(filter_exercises()), len(all_exercises()))
        self.assertEqual(filter_exercises(groups=["nope"]), [])


class TestExercisesApi(AppTestCase):
    def test_endpoints(self) -> None:
        headers = self.register()

        groups = self.client.get("/api/exercises/muscle-groups", headers=headers).json()
        chest = next(g for g in groups if g["id"] == "chest")
        self.assertEqual(chest["name"], "Chest")
        self.assertGreater(chest["exercise_count"], 0)

        detail = self.client.get("/api/exercises/muscle-groups/chest", headers=headers).json()
        self.assertEqual(len(detail["exercises"]), chest["exercise_count"])
        self.assertIn("bench_press", detail["by_equipment"]["barbell"])
        self.assertIn("bench_press", detail["by_category"]["compound"])
        self.assertEqual(self.client.get("/api/exercises/muscle-groups/nope", headers=headers).status_code, 404)

        bench = self.client.get("/api/exercises/bench_press", headers=headers).json()
        self.assertEqual(bench["type"], "weight")
        self.assertEqual(bench["muscle_group"], "chest")
        self.assertEqual(self.client.get("/api/exercises/nope", headers=headers).status_code, 404)

        filtered = self.client.get(
            "/api/exercises",
            params=[("group", "chest"), ("equipment", "dumbbell"), ("q", "press")],
            headers=headers,
        ).json()
        self.assertTrue(filtered)
        self.assertTrue(all(e["equipment"] == "dumbbell" for e in filtered))

    def test_catalog_requires_auth(self) -> None:
        self.client.cookies.clear()
        self.assertEqual(self.client.get("/api/exercises").status_code, 401)


if __name__ == "__main__":
    unittest.main()
