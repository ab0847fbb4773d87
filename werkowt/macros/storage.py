# -*- coding: utf-8 -*-
"""Macros — DB storage helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Tuple

from ..app_db import db_conn
from ..config import settings
from .models import MacroGoals


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def get_macro_goals(user_id: str) -> Tuple[MacroGoals, Optional[str]]:
    """Stored goals and their update time; defaults with ``None`` when unset."""
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT calories, protein, carbs, fat, updated_at FROM macro_goals WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if not row:
        return MacroGoals(), None
    goals = MacroGoals(
        calories=row["calories"],
        protein=row["protein"],
        carbs=row["carbs"],
        fat=row["fat"],
    )
    return goals, row["updated_at"]


def upsert_macro_goals(user_id: str, goals: MacroGoals) -> str:
    now = _utc_now()
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO macro_goals (user_id, calories, protein, carbs, fat, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                calories = excluded.calories,
                protein = excluded.protein,
                carbs = excluded.carbs,
                fat = excluded.fat,
                updated_at = excluded.updated_at
            """,
            (user_id, goals.calories, goals.protein, goals.carbs, goals.fat, now),
        )
    return now
