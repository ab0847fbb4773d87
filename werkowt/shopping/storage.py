# -*- coding: utf-8 -*-
"""Shopping list storage helpers (SQLite)."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings
from ..mealplans.models import MealPlan
from .models import ShoppingList, ShoppingListItem, items_from_meal_plan


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _load_items(conn: sqlite3.Connection, list_id: str) -> List[ShoppingListItem]:
    rows = conn.execute(
        "SELECT * FROM shopping_list_items WHERE shopping_list_id = ? ORDER BY position ASC",
        (list_id,),
    ).fetchall()
    return [
        ShoppingListItem(
            id=r["id"],
            name=r["name"],
            amount=r["amount"],
            category=r["category"],
            is_completed=bool(r["is_completed"]),
        )
        for r in rows
    ]


def _row_to_list(conn: sqlite3.Connection, row: sqlite3.Row) -> ShoppingList:
    return ShoppingList(
        id=row["id"],
        meal_plan_id=row["meal_plan_id"],
        meal_plan_title=row["meal_plan_title"],
        created_at=row["created_at"],
        items=_load_items(conn, row["id"]),
    )


def save_shopping_list(user_id: str, sl: ShoppingList) -> ShoppingList:
    """Upsert the list row, then replace all of its items."""
    with db_conn(settings.app_db_path) as conn:
        owner = conn.execute("SELECT user_id FROM shopping_lists WHERE id = ?", (sl.id,)).fetchone()
        if owner and owner["user_id"] != user_id:
            raise HTTPException(status_code=404, detail="Shopping list not found")
        plan = conn.execute(
            "SELECT id FROM meal_plans WHERE id = ? AND user_id = ?",
            (sl.meal_plan_id, user_id),
        ).fetchone()
        if not plan:
            raise HTTPException(status_code=404, detail="Meal plan not found")

        conn.execute(
            """
            INSERT INTO shopping_lists (id, user_id, meal_plan_id, meal_plan_title, created_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET meal_plan_title = excluded.meal_plan_title
            """,
            (sl.id, user_id, sl.meal_plan_id, sl.meal_plan_title, sl.created_at),
        )
        conn.execute("DELETE FROM shopping_list_items WHERE shopping_list_id = ?", (sl.id,))
        conn.executemany(
            """
            INSERT INTO shopping_list_items (id, shopping_list_id, name, amount, category, is_completed, position)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (item.id, sl.id, item.name, item.amount, item.category.value, 1 if item.is_completed else 0, pos)
                for pos, item in enumerate(sl.items)
            ],
        )
    return sl


def list_shopping_lists(user_id: str) -> List[ShoppingList]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM shopping_lists WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
        return [_row_to_list(conn, r) for r in rows]


def get_shopping_list(user_id: str, list_id: str) -> ShoppingList:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT * FROM shopping_lists WHERE id = ? AND user_id = ?",
            (list_id, user_id),
        ).fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Shopping list not found")
        return _row_to_list(conn, row)


def get_shopping_list_for_meal_plan(user_id: str, meal_plan_id: str) -> Optional[ShoppingList]:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT * FROM shopping_lists WHERE meal_plan_id = ? AND user_id = ? ORDER BY created_at ASC LIMIT 1",
            (meal_plan_id, user_id),
        ).fetchone()
        return _row_to_list(conn, row) if row else None


def create_shopping_list(user_id: str, plan: MealPlan) -> Tuple[ShoppingList, bool]:
    """Return the plan's existing list, or build and save a new one.

    The boolean is ``True`` when a new list was created.
    """
    existing = get_shopping_list_for_meal_plan(user_id, plan.id)
    if existing is not None:
        return existing, False

    title = plan.generated_meal_plan.title if plan.generated_meal_plan is not None else plan.title
    sl = ShoppingList(
        id=str(uuid4()),
        meal_plan_id=plan.id,
        meal_plan_title=title or "Meal Plan",
        items=items_from_meal_plan(plan),
        created_at=_utc_now(),
    )
    return save_shopping_list(user_id, sl), True


def set_item_completed(user_id: str, item_id: str, completed: Optional[bool] = None) -> ShoppingList:
    """Set (or toggle when ``completed`` is None) an item and return its list."""
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            """
            SELECT i.is_completed, i.shopping_list_id
            FROM shopping_list_items i
            JOIN shopping_lists l ON l.id = i.shopping_list_id
            WHERE i.id = ? AND l.user_id = ?
            """,
            (item_id, user_id),
        ).fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Shopping list item not found")
        new_value = (not bool(row["is_completed"])) if completed is None else bool(completed)
        conn.execute(
            "UPDATE shopping_list_items SET is_completed = ? WHERE id = ?",
            (1 if new_value else 0, item_id),
        )
        list_id = row["shopping_list_id"]
    return get_shopping_list(user_id, list_id)


def reset_shopping_list(user_id: str, list_id: str) -> ShoppingList:
    sl = get_shopping_list(user_id, list_id)
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            "UPDATE shopping_list_items SET is_completed = 0 WHERE shopping_list_id = ?",
            (sl.id,),
        )
    for item in sl.items:
        item.is_completed = False
    return sl


def delete_shopping_list(user_id: str, list_id: str) -> None:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM shopping_lists WHERE id = ? AND user_id = ?",
            (list_id, user_id),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Shopping list not found")
