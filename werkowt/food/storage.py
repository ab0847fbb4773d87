# -*- coding: utf-8 -*-
"""Food storage helpers (SQLite)."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings
from ..macros.models import MacroProgress
from ..macros.storage import get_macro_goals
from ..mealplans.models import MealType, NutritionInfo
from .models import (
    DailyNutritionSummary,
    FoodEntry,
    FoodEntrySource,
    FoodItem,
    FoodItemCreateRequest,
    MealComponent,
    MealTemplate,
    RecentFood,
    meal_type_for_hour,
)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _row_to_item(row: sqlite3.Row) -> FoodItem:
    return FoodItem(
        id=row["id"],
        name=row["name"],
        brand=row["brand"],
        barcode=row["barcode"],
        calories_per_100g=row["calories_per_100g"],
        protein_per_100g=row["protein_per_100g"],
        carbs_per_100g=row["carbs_per_100g"],
        fat_per_100g=row["fat_per_100g"],
        fiber_per_100g=row["fiber_per_100g"],
        sugar_per_100g=row["sugar_per_100g"],
        sodium_per_100g=row["sodium_per_100g"],
        serving_size_name=row["serving_size_name"],
        serving_size_grams=row["serving_size_grams"],
        is_verified=bool(row["is_verified"]),
        created_by_user_id=row["created_by_user_id"],
        use_count=row["use_count"] or 0,
        last_used_at=row["last_used_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_entry(row: sqlite3.Row) -> FoodEntry:
    keys = row.keys()
    return FoodEntry(
        id=row["id"],
        food_item_id=row["food_item_id"],
        consumed_date=row["consumed_date"],
        meal_type=MealType.parse(row["meal_type"]),
        quantity_grams=row["quantity_grams"],
        calories=row["calories"],
        protein_g=row["protein_g"],
        carbs_g=row["carbs_g"],
        fat_g=row["fat_g"],
        notes=row["notes"],
        source=row["source"],
        confidence_score=row["confidence_score"],
        meal_group_id=row["meal_group_id"],
        meal_group_name=row["meal_group_name"],
        created_at=row["created_at"],
        food_name=row["food_name"] if "food_name" in keys else None,
    )


# ---- Food items ----


def create_food_item(
    user_id: str,
    request: FoodItemCreateRequest,
    *,
    is_verified: bool = False,
) -> FoodItem:
    now = _utc_now()
    item = FoodItem(
        id=str(uuid4()),
        **request.model_dump(),
        is_verified=is_verified,
        created_by_user_id=user_id,
        created_at=now,
        updated_at=now,
    )
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO food_items (
                id, name, brand, barcode, calories_per_100g, protein_per_100g, carbs_per_100g, fat_per_100g,
                fiber_per_100g, sugar_per_100g, sodium_per_100g, serving_size_name, serving_size_grams,
                is_verified, created_by_user_id, use_count, last_used_at, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, NULL, ?, ?)
            """,
            (
                item.id,
                item.name,
                item.brand,
                item.barcode,
                item.calories_per_100g,
                item.protein_per_100g,
                item.carbs_per_100g,
                item.fat_per_100g,
                item.fiber_per_100g,
                item.sugar_per_100g,
                item.sodium_per_100g,
                item.serving_size_name,
                item.serving_size_grams,
                1 if item.is_verified else 0,
                user_id,
                item.created_at,
                item.updated_at,
            ),
        )
    return item


def get_food_item(user_id: str, item_id: str) -> FoodItem:
    """Verified items are shared; unverified ones are visible to their creator only."""
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            """
            SELECT * FROM food_items
            WHERE id = ? AND (is_verified = 1 OR created_by_user_id = ?)
            """,
            (item_id, user_id),
        ).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Food item not found")
    return _row_to_item(row)


def search_food_items(user_id: str, query: str = "", *, limit: int = 25) -> List[FoodItem]:
    sql = "SELECT * FROM food_items WHERE (is_verified = 1 OR created_by_user_id = ?)"
    params: list = [user_id]
    q = query.strip().lower()
    if q:
        sql += " AND (lower(name) LIKE ? OR lower(coalesce(brand, '')) LIKE ? OR barcode = ?)"
        params.extend([f"%{q}%", f"%{q}%", query.strip()])
    sql += " ORDER BY is_verified DESC, use_count DESC, name ASC LIMIT ?"
    params.append(limit)
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_item(r) for r in rows]


def find_food_item_by_name(user_id: str, name: str, brand: Optional[str] = None) -> Optional[FoodItem]:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            """
            SELECT * FROM food_items
            WHERE (is_verified = 1 OR created_by_user_id = ?)
              AND lower(name) = ? AND lower(coalesce(brand, '')) = ?
            ORDER BY is_verified DESC, use_count DESC
            LIMIT 1
            """,
            (user_id, name.strip().lower(), (brand or "").strip().lower()),
        ).fetchone()
    return _row_to_item(row) if row else None


def recent_foods(user_id: str, *, limit: int = 20) -> List[RecentFood]:
    """Foods the user logged, most recently used first."""
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            """
            SELECT f.*, MAX(e.created_at) AS last_logged, COUNT(e.id) AS times_logged,
                   AVG(e.quantity_grams) AS avg_quantity
            FROM food_entries e
            JOIN food_items f ON f.id = e.food_item_id
            WHERE e.user_id = ?
            GROUP BY f.id
            ORDER BY last_logged DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()
    return [
        RecentFood(
            food_item=_row_to_item(r),
            last_used=r["last_logged"],
            use_count=r["times_logged"],
            avg_quantity_grams=round(r["avg_quantity"] or 0.0, 1),
        )
        for r in rows
    ]


# ---- Food entries ----


def log_food_entry(
    user_id: str,
    item: FoodItem,
    *,
    quantity_grams: float,
    consumed_date: Optional[date] = None,
    meal_type: Optional[MealType] = None,
    notes: Optional[str] = None,
    source: FoodEntrySource = FoodEntrySource.manual,
    confidence_score: float = 1.0,
    meal_group_id: Optional[str] = None,
    meal_group_name: Optional[str] = None,
) -> FoodEntry:
    """Record an entry; nutrition is the item's per-100g values scaled to ``quantity_grams``."""
    if quantity_grams <= 0:
        raise HTTPException(status_code=400, detail="quantity_grams must be positive")
    now_dt = datetime.now()
    nutrition = item.nutrition_for(quantity_grams)
    entry = FoodEntry(
        id=str(uuid4()),
        food_item_id=item.id,
        consumed_date=consumed_date or now_dt.date(),
        meal_type=meal_type or meal_type_for_hour(now_dt.hour),
        quantity_grams=round(quantity_grams, 1),
        calories=round(nutrition.calories, 1),
        protein_g=round(nutrition.protein, 1),
        carbs_g=round(nutrition.carbs, 1),
        fat_g=round(nutrition.fat, 1),
        notes=(notes or "").strip() or None,
        source=source,
        confidence_score=confidence_score,
        meal_group_id=meal_group_id,
        meal_group_name=(meal_group_name or "").strip() or None,
        created_at=_utc_now(),
        food_name=item.display_name,
    )
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO food_entries (
                id, user_id, food_item_id, consumed_date, meal_type, quantity_grams, calories,
                protein_g, carbs_g, fat_g, notes, source, confidence_score, meal_group_id,
                meal_group_name, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.id,
                user_id,
                entry.food_item_id,
                entry.consumed_date.isoformat(),
                entry.meal_type.value,
                entry.quantity_grams,
                entry.calories,
                entry.protein_g,
                entry.carbs_g,
                entry.fat_g,
                entry.notes,
                entry.source.value,
                entry.confidence_score,
                entry.meal_group_id,
                entry.meal_group_name,
                entry.created_at,
            ),
        )
        conn.execute(
            "UPDATE food_items SET use_count = use_count + 1, last_used_at = ? WHERE id = ?",
            (entry.created_at, item.id),
        )
    return entry


def list_food_entries(user_id: str, consumed_date: date) -> List[FoodEntry]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            """
            SELECT e.*, CASE WHEN f.brand IS NOT NULL AND f.brand != '' THEN f.brand || ' ' || f.name
                             ELSE f.name END AS food_name
            FROM food_entries e
            JOIN food_items f ON f.id = e.food_item_id
            WHERE e.user_id = ? AND e.consumed_date = ?
            ORDER BY e.created_at ASC, e.rowid ASC
            """,
            (user_id, consumed_date.isoformat()),
        ).fetchall()
    return [_row_to_entry(r) for r in rows]


def delete_food_entry(user_id: str, entry_id: str) -> None:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM food_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Food entry not found")


def daily_summary(user_id: str, consumed_date: date) -> DailyNutritionSummary:
    entries = list_food_entries(user_id, consumed_date)
    totals = NutritionInfo(calories=0, protein=0, carbs=0, fat=0)
    by_meal: Dict[str, NutritionInfo] = {}
    for entry in entries:
        totals = totals + entry.nutrition()
        key = entry.meal_type.value
        by_meal[key] = by_meal.get(key, NutritionInfo(calories=0, protein=0, carbs=0, fat=0)) + entry.nutrition()

    goals, _ = get_macro_goals(user_id)
    return DailyNutritionSummary(
        consumed_date=consumed_date,
        totals=totals,
        by_meal_type=by_meal,
        entry_count=len(entries),
        goals=goals,
        progress=MacroProgress.compute(
            goals=goals,
            calories=totals.calories,
            protein=totals.protein,
            carbs=totals.carbs,
            fat=totals.fat,
        ),
    )


# ---- Meal templates ----


def list_meal_templates(user_id: str) -> List[MealTemplate]:
    """Entries sharing a meal group, folded into reusable templates (latest logging wins)."""
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            """
            SELECT e.*, f.name AS item_name, f.brand AS item_brand
            FROM food_entries e
            JOIN food_items f ON f.id = e.food_item_id
            WHERE e.user_id = ? AND e.meal_group_id IS NOT NULL
            ORDER BY e.created_at ASC, e.rowid ASC
            """,
            (user_id,),
        ).fetchall()

    groups: Dict[str, List[sqlite3.Row]] = {}
    for row in rows:
        groups.setdefault(row["meal_group_id"], []).append(row)

    templates: List[MealTemplate] = []
    for group_id, group_rows in groups.items():
        # Only the components from the latest logging of the group.
        latest_date = max(r["consumed_date"] for r in group_rows)
        logged_dates = {r["consumed_date"] for r in group_rows}
        latest = [r for r in group_rows if r["consumed_date"] == latest_date]
        components = [
            MealComponent(
                food_item_id=r["food_item_id"],
                food_name=r["item_name"],
                brand=r["item_brand"],
                quantity_grams=r["quantity_grams"],
                calories=r["calories"],
                protein_g=r["protein_g"],
                carbs_g=r["carbs_g"],
                fat_g=r["fat_g"],
            )
            for r in latest
        ]
        templates.append(
            MealTemplate(
                meal_group_id=group_id,
                meal_group_name=latest[-1]["meal_group_name"] or "Meal",
                components=components,
                total_calories=round(sum(c.calories for c in components), 1),
                total_protein=round(sum(c.protein_g for c in components), 1),
                total_carbs=round(sum(c.carbs_g for c in components), 1),
                total_fat=round(sum(c.fat_g for c in components), 1),
                last_used=latest[-1]["created_at"],
                use_count=len(logged_dates),
            )
        )
    templates.sort(key=lambda t: t.last_used, reverse=True)
    return templates


def get_meal_template(user_id: str, meal_group_id: str) -> MealTemplate:
    for template in list_meal_templates(user_id):
        if template.meal_group_id == meal_group_id:
            return template
    raise HTTPException(status_code=404, detail="Meal template not found")


def log_meal_template(
    user_id: str,
    meal_group_id: str,
    *,
    consumed_date: Optional[date] = None,
    meal_type: Optional[MealType] = None,
) -> List[FoodEntry]:
    template = get_meal_template(user_id, meal_group_id)
    target = consumed_date or datetime.now().date()
    if any(e.meal_group_id == meal_group_id for e in list_food_entries(user_id, target)):
        raise HTTPException(status_code=409, detail="Meal already logged for this date")
    entries: List[FoodEntry] = []
    for component in template.components:
        item = get_food_item(user_id, component.food_item_id)
        entries.append(
            log_food_entry(
                user_id,
                item,
                quantity_grams=component.quantity_grams,
                consumed_date=target,
                meal_type=meal_type,
                source=FoodEntrySource.meal_template,
                meal_group_id=template.meal_group_id,
                meal_group_name=template.meal_group_name,
            )
        )
    return entries
