# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from tests.support import AppTestCase


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).replace(microsecond=0).isoformat()


class TestWeightApi(AppTestCase):
    def test_record_list_and_summary(self) -> None:
        headers = self.register()
        for days, kg in ((40, 84.0), (10, 82.5), (3, 81.75), (1, 82.0)):
            resp = self.client.post("/api/weight", json={"weight_kg": kg, "recorded_at": _days_ago(days)}, headers=headers)
            self.assertEqual(resp.status_code, 200, resp.text)

        listed = self.client.get("/api/weight", headers=headers).json()["entries"]
        self.assertEqual([e["weight_kg"] for e in listed], [82.0, 81.75, 82.5, 84.0])
        self.assertEqual(len(self.client.get("/api/weight?limit=2", headers=headers).json()["entries"]), 2)

        recent = self.client.get("/api/weight/recent", headers=headers).json()["entries"]
        self.assertEqual([e["weight_kg"] for e in recent], [82.5, 81.75, 82.0])

        summary = self.client.get("/api/weight/summary?days=30", headers=headers).json()
        self.assertEqual(summary["latest"]["weight_kg"], 82.0)
        self.assertEqual(summary["change_kg"], 0.25)
        self.assertEqual((summary["min_kg"], summary["max_kg"]), (81.75, 82.5))
        self.assertEqual(summary["entry_count"], 3)

    def test_empty_summary(self) -> None:
        headers = self.register()
        summary = self.client.get("/api/weight/summary", headers=headers).json()
        self.assertIsNone(summary["latest"])
        self.assertEqual(summary["entry_count"], 0)

    def test_validation_and_delete(self) -> None:
        headers = self.register()
        self.assertEqual(self.client.post("/api/weight", json={"weight_kg": 0}, headers=headers).status_code, 422)
        self.assertEqual(self.client.post("/api/weight", json={"weight_kg": 501}, headers=headers).status_code, 422)

        entry = self.client.post("/api/weight", json={"weight_kg": 70, "notes": "  morning  "}, headers=headers).json()
        self.assertEqual(entry["notes"], "morning")
        self.assertTrue(entry["recorded_at"].endswith("Z"))

        other = self.register()
        self.assertEqual(self.client.delete(f"/api/weight/{entry['id']}", headers=other).status_code, 404)
        self.assertEqual(self.client.delete(f"/api/weight/{entry['id']}", headers=headers).status_code, 200)
        self.assertEqual(self.client.get("/api/weight", headers=headers).json()["entries"], [])


if __name__ == "__main__":
    unittest.main()
