# -*- coding: utf-8 -*-
"""Body weight storage helpers (SQLite)."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import uuid4

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings
from .models import BodyWeightEntry


def _iso(dt: Optional[datetime] = None) -> str:
    if dt is None:
        dt = datetime.now(timezone.utc)
    elif dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _row_to_entry(row: sqlite3.Row) -> BodyWeightEntry:
    return BodyWeightEntry(
        id=row["id"],
        weight_kg=row["weight_kg"],
        recorded_at=row["recorded_at"],
        notes=row["notes"],
        created_at=row["created_at"],
    )


def add_entry(
    user_id: str,
    *,
    weight_kg: float,
    recorded_at: Optional[datetime] = None,
    notes: Optional[str] = None,
) -> BodyWeightEntry:
    if not 0 < weight_kg <= 500:
        raise HTTPException(status_code=400, detail="weight_kg must be between 0 and 500")
    now = _iso()
    entry = BodyWeightEntry(
        id=str(uuid4()),
        weight_kg=round(float(weight_kg), 2),
        recorded_at=_iso(recorded_at) if recorded_at else now,
        notes=(notes or "").strip() or None,
        created_at=now,
    )
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO body_weight_entries (id, user_id, weight_kg, recorded_at, notes, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (entry.id, user_id, entry.weight_kg, entry.recorded_at, entry.notes, entry.created_at),
        )
    return entry


def list_entries(user_id: str, *, limit: int = 100) -> List[BodyWeightEntry]:
    """Newest first."""
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM body_weight_entries WHERE user_id = ? ORDER BY recorded_at DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [_row_to_entry(r) for r in rows]


def recent_entries(user_id: str, *, days: int = 30, now: Optional[datetime] = None) -> List[BodyWeightEntry]:
    """Oldest first, for charting."""
    since = _iso((now or datetime.now(timezone.utc)) - timedelta(days=days))
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            """
            SELECT * FROM body_weight_entries
            WHERE user_id = ? AND recorded_at >= ?
            ORDER BY recorded_at ASC
            """,
            (user_id, since),
        ).fetchall()
    return [_row_to_entry(r) for r in rows]


def delete_entry(user_id: str, entry_id: str) -> None:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM body_weight_entries WHERE id = ? AND user_id = ?",
            (entry_id, user_id),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Weight entry not found")
