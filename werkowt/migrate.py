# -*- coding: utf-8 -*-
"""
Import a legacy on-device export into the app database.

Usage:
    python -m werkowt.migrate --email you@example.com --export device.json
    python -m werkowt.migrate --email you@example.com --export device.json --dry-run
    python -m werkowt.migrate --email you@example.com --reset

The export is a JSON object holding the device's stored keys:
``MacroGoals`` (an object), ``SavedMealPlans`` and ``ShoppingLists`` (arrays).
They are imported in that order. A completed import is recorded in the
``migrations`` table so running it again does nothing unless ``--force``.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException
from pydantic import ValidationError

from .app_db import db_conn, init_app_db
from .auth.storage import get_user_by_email
from .config import settings
from .llm.parsing import coerce_float, coerce_int, coerce_str
from .macros.models import MacroGoals
from .macros.storage import upsert_macro_goals
from .mealplans.models import GeneratedMealPlan, MealPlan
from .mealplans.storage import save_meal_plan
from .shopping.models import AMOUNT_MAX_LENGTH, NAME_MAX_LENGTH, ShoppingList, ShoppingListItem, clip_text
from .shopping.storage import save_shopping_list

logger = logging.getLogger(__name__)

MIGRATION_NAME = "legacy_device_data"

MACRO_GOALS_KEY = "MacroGoals"
MEAL_PLANS_KEY = "SavedMealPlans"
SHOPPING_LISTS_KEY = "ShoppingLists"

# Dates in device exports are seconds since 2001-01-01 UTC.
_DEVICE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


class MigrationError(Exception):
    pass


@dataclass
class MigrationReport:
    macro_goals: bool = False
    meal_plans: int = 0
    shopping_lists: int = 0
    skipped: List[str] = field(default_factory=list)

    def lines(self) -> List[str]:
        out = [
            f"Macro goals: {'imported' if self.macro_goals else 'none'}",
            f"Meal plans: {self.meal_plans}",
            f"Shopping lists: {self.shopping_lists}",
        ]
        out.extend(f"Skipped: {s}" for s in self.skipped)
        return out


# ---- Decoding ----


def parse_device_datetime(value: Any) -> datetime:
    """A device timestamp (reference-date seconds) or an ISO string."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _DEVICE_EPOCH + timedelta(seconds=float(value))
    if isinstance(value, str) and value.strip():
        raw = value.strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError as exc:
            raise MigrationError(f"Unrecognised date: {value!r}") from exc
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise MigrationError(f"Unrecognised date: {value!r}")


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(p) for p in err.get("loc", ())) or "value"
    return f"{where} {err.get('msg', 'is invalid')}"


def decode_macro_goals(raw: Any) -> Optional[MacroGoals]:
    """Missing fields take the defaults; out-of-range values are a ``MigrationError``."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise MigrationError("macro goals: expected an object")
    values = {k: coerce_float(raw.get(k)) for k in ("calories", "protein", "carbs", "fat")}
    try:
        return MacroGoals(**{k: v for k, v in values.items() if v is not None})
    except ValidationError as exc:
        raise MigrationError(f"macro goals: {_first_error(exc)}") from exc


def decode_meal_plan(raw: Any) -> MealPlan:
    if not isinstance(raw, dict):
        raise MigrationError("meal plan: expected an object")
    plan_id = coerce_str(raw.get("id"))
    if not plan_id:
        raise MigrationError("meal plan without id")

    generated: Optional[GeneratedMealPlan] = None
    if raw.get("generatedMealPlan") is not None:
        try:
            generated = GeneratedMealPlan.model_validate(raw["generatedMealPlan"])
        except ValidationError as exc:
            raise MigrationError(f"meal plan {plan_id}: invalid generated content") from exc

    start: date = parse_device_datetime(raw.get("startDate")).date()
    days = coerce_int(raw.get("numberOfDays")) or (generated.total_days if generated else 1)
    text = coerce_str(raw.get("mealPlanText")) or (generated.to_text() if generated else "")
    title = coerce_str(raw.get("title")) or (generated.title if generated else "") or "Meal Plan"
    try:
        return MealPlan(
            id=plan_id,
            title=title,
            description=coerce_str(raw.get("description")) or (generated.description if generated else None),
            start_date=start,
            number_of_days=max(days, 1),
            meal_plan_text=text,
            created_at=_iso(parse_device_datetime(raw.get("createdAt"))),
            is_ai_generated=bool(raw.get("isAIGenerated")) or generated is not None,
            generated_meal_plan=generated,
        )
    except ValidationError as exc:
        raise MigrationError(f"meal plan {plan_id}: {_first_error(exc)}") from exc


def decode_shopping_list(raw: Any) -> ShoppingList:
    """Item text is clipped to the item field limits; nameless items are dropped."""
    if not isinstance(raw, dict):
        raise MigrationError("shopping list: expected an object")
    list_id = coerce_str(raw.get("id"))
    plan_id = coerce_str(raw.get("mealPlanId"))
    if not list_id or not plan_id:
        raise MigrationError("shopping list without id or mealPlanId")
    raw_items = raw.get("items") or []
    if not isinstance(raw_items, list):
        raise MigrationError(f"shopping list {list_id}: items must be an array")
    items = []
    for item in raw_items:
        if not isinstance(item, dict):
            continue
        name = clip_text(coerce_str(item.get("name")), NAME_MAX_LENGTH)
        if not name:
            continue
        fields = {
            "name": name,
            "amount": clip_text(coerce_str(item.get("amount")), AMOUNT_MAX_LENGTH),
            "category": item.get("category"),
            "is_completed": bool(item.get("isCompleted")),
        }
        if coerce_str(item.get("id")):
            fields["id"] = coerce_str(item.get("id"))
        try:
            items.append(ShoppingListItem(**fields))
        except ValidationError as exc:
            raise MigrationError(f"shopping list {list_id}: {_first_error(exc)}") from exc
    return ShoppingList(
        id=list_id,
        meal_plan_id=plan_id,
        meal_plan_title=coerce_str(raw.get("mealPlanTitle")) or "Meal Plan",
        items=items,
        created_at=_iso(parse_device_datetime(raw.get("createdAt"))),
    )


def load_export(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise MigrationError(f"Export file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise MigrationError(f"Export file is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MigrationError("Export file must contain a JSON object")
    return data


# ---- Completion marker ----


def is_migration_completed(user_id: str, name: str = MIGRATION_NAME) -> bool:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT 1 FROM migrations WHERE user_id = ? AND name = ?",
            (user_id, name),
        ).fetchone()
    return row is not None


def mark_migration_completed(user_id: str, name: str = MIGRATION_NAME) -> None:
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO migrations (user_id, name, completed_at) VALUES (?, ?, ?)
            ON CONFLICT(user_id, name) DO UPDATE SET completed_at = excluded.completed_at
            """,
            (user_id, name, _iso(datetime.now(timezone.utc))),
        )


def reset_migration(user_id: str, name: str = MIGRATION_NAME) -> bool:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute("DELETE FROM migrations WHERE user_id = ? AND name = ?", (user_id, name))
        return cur.rowcount > 0


# ---- Import ----


def _records(export: Dict[str, Any], key: str, report: MigrationReport) -> List[Any]:
    value = export.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        report.skipped.append(f"{key}: expected an array")
        return []
    return value


def migrate_export(user_id: str, export: Dict[str, Any], *, dry_run: bool = False) -> MigrationReport:
    """Import macro goals, meal plans then shopping lists for ``user_id``.

    Records that do not decode are listed in ``report.skipped``; the rest
    are still imported.
    """
    report = MigrationReport()

    try:
        goals = decode_macro_goals(export.get(MACRO_GOALS_KEY))
    except MigrationError as exc:
        report.skipped.append(str(exc))
        goals = None
    if goals is not None:
        if not dry_run:
            upsert_macro_goals(user_id, goals)
        report.macro_goals = True

    imported_plan_ids = set()
    for raw in _records(export, MEAL_PLANS_KEY, report):
        try:
            plan = decode_meal_plan(raw)
        except MigrationError as exc:
            report.skipped.append(str(exc))
            continue
        if not dry_run:
            try:
                save_meal_plan(user_id, plan)
            except HTTPException as exc:
                report.skipped.append(f"meal plan {plan.id}: {exc.detail}")
                continue
        imported_plan_ids.add(plan.id)
        report.meal_plans += 1

    for raw in _records(export, SHOPPING_LISTS_KEY, report):
        try:
            sl = decode_shopping_list(raw)
        except MigrationError as exc:
            report.skipped.append(str(exc))
            continue
        if dry_run:
            if sl.meal_plan_id not in imported_plan_ids:
                report.skipped.append(f"shopping list {sl.id}: meal plan {sl.meal_plan_id} not in export")
                continue
        else:
            try:
                save_shopping_list(user_id, sl)
            except HTTPException as exc:
                report.skipped.append(f"shopping list {sl.id}: {exc.detail}")
                continue
        report.shopping_lists += 1

    for line in report.skipped:
        logger.warning("migration skipped %s", line)
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="werkowt-migrate",
        description="Import legacy on-device data (macro goals, meal plans, shopping lists) for a user.",
    )
    parser.add_argument("--email", required=True, help="Account to import into")
    parser.add_argument("--export", type=Path, help="Path to the device export JSON")
    parser.add_argument("--dry-run", action="store_true", help="Decode and report without writing")
    parser.add_argument("--force", action="store_true", help="Run even if already completed")
    parser.add_argument("--reset", action="store_true", help="Clear the completion marker and exit")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")

    init_app_db(settings.app_db_path)
    user = get_user_by_email(args.email)
    if not user:
        print(f"Error: No account for {args.email}")
        return 1

    if args.reset:
        cleared = reset_migration(user["id"])
        print("Migration state reset." if cleared else "No migration recorded.")
        return 0

    if args.export is None:
        parser.error("--export is required unless --reset is given")

    if is_migration_completed(user["id"]) and not args.force:
        print("Migration already completed. Use --force to run it again.")
        return 0

    try:
        export = load_export(args.export)
    except MigrationError as exc:
        print(f"Error: {exc}")
        return 1

    report = migrate_export(user["id"], export, dry_run=args.dry_run)
    for line in report.lines():
        print(line)

    if args.dry_run:
        print("Dry run: nothing was written.")
        return 0

    mark_migration_completed(user["id"])
    print("Migration completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
