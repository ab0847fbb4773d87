# -*- coding: utf-8 -*-
"""Meal plan storage helpers (SQLite)."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException
from pydantic import ValidationError

from ..app_db import db_conn
from ..config import settings
from .models import GeneratedMealPlan, MealPlan

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _load_generated(raw: Optional[str], plan_id: str) -> Optional[GeneratedMealPlan]:
    if not raw:
        return None
    try:
        return GeneratedMealPlan.model_validate(json.loads(raw))
    except (ValueError, ValidationError) as exc:
        # The plan text is still usable without its structured content.
        logger.warning("stored meal plan %s has unreadable generated content: %s", plan_id, exc)
        return None


def _row_to_plan(row: Dict[str, Any]) -> MealPlan:
    return MealPlan(
        id=row["id"],
        title=row["title"],
        description=row.get("description"),
        start_date=date.fromisoformat(row["start_date"][:10]),
        number_of_days=int(row["number_of_days"]),
        meal_plan_text=row["meal_plan_text"],
        created_at=row["created_at"],
        is_ai_generated=bool(row["is_ai_generated"]),
        generated_meal_plan=_load_generated(row.get("generated_content"), row["id"]),
    )


def new_meal_plan(
    *,
    title: str,
    start_date: date,
    number_of_days: int,
    meal_plan_text: str,
    description: Optional[str] = None,
    generated: Optional[GeneratedMealPlan] = None,
) -> MealPlan:
    return MealPlan(
        id=str(uuid4()),
        title=title,
        description=description,
        start_date=start_date,
        number_of_days=number_of_days,
        meal_plan_text=meal_plan_text,
        created_at=_utc_now(),
        is_ai_generated=generated is not None,
        generated_meal_plan=generated,
    )


def save_meal_plan(user_id: str, plan: MealPlan) -> MealPlan:
    """Insert or replace a plan owned by ``user_id``."""
    generated_json = None
    if plan.generated_meal_plan is not None:
        generated_json = plan.generated_meal_plan.model_dump_json(by_alias=True)

    with db_conn(settings.app_db_path) as conn:
        existing = conn.execute("SELECT user_id FROM meal_plans WHERE id = ?", (plan.id,)).fetchone()
        if existing and existing["user_id"] != user_id:
            raise HTTPException(status_code=404, detail="Meal plan not found")
        conn.execute(
            """
            INSERT INTO meal_plans (
                id, user_id, title, description, start_date, number_of_days,
                meal_plan_text, is_ai_generated, generated_content, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                description = excluded.description,
                start_date = excluded.start_date,
                number_of_days = excluded.number_of_days,
                meal_plan_text = excluded.meal_plan_text,
                is_ai_generated = excluded.is_ai_generated,
                generated_content = excluded.generated_content
            """,
            (
                plan.id,
                user_id,
                plan.title,
                plan.description,
                plan.start_date.isoformat(),
                plan.number_of_days,
                plan.meal_plan_text,
                1 if plan.is_ai_generated else 0,
                generated_json,
                plan.created_at,
            ),
        )
    return plan


def list_meal_plans(user_id: str) -> List[MealPlan]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM meal_plans WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_plan(dict(r)) for r in rows]


def get_meal_plan(user_id: str, plan_id: str) -> MealPlan:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT * FROM meal_plans WHERE id = ? AND user_id = ?",
            (plan_id, user_id),
        ).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    return _row_to_plan(dict(row))


def delete_meal_plan(user_id: str, plan_id: str) -> None:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM meal_plans WHERE id = ? AND user_id = ?",
            (plan_id, user_id),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Meal plan not found")
