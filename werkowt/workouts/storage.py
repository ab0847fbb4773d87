# -*- coding: utf-8 -*-
"""Workout storage helpers (SQLite)."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException

from ..app_db import db_conn
from ..config import settings
from ..exercises.catalog import ExerciseType, get_exercise, muscle_group_for
from .models import (
    ExerciseSets,
    PersonalRecord,
    PreviousSessionData,
    ProgressPoint,
    WorkoutSession,
    WorkoutSessionDetail,
    WorkoutSet,
    WorkoutSetCreateRequest,
    estimated_one_rep_max,
)

logger = logging.getLogger(__name__)

PREVIOUS_SESSION_LOOKBACK = 20


def _utc(dt: Optional[datetime] = None) -> datetime:
    if dt is None:
        return datetime.now(timezone.utc)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _utc(dt).isoformat(timespec="seconds").replace("+00:00", "Z")


def _parse_iso(value: str) -> datetime:
    return _utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _row_to_session(row: sqlite3.Row) -> WorkoutSession:
    return WorkoutSession(
        id=row["id"],
        name=row["name"],
        started_at=row["started_at"],
        ended_at=row["ended_at"],
        duration_minutes=row["duration_minutes"],
        created_at=row["created_at"],
    )


def _row_to_set(row: sqlite3.Row) -> WorkoutSet:
    return WorkoutSet(
        id=row["id"],
        workout_session_id=row["workout_session_id"],
        exercise_id=row["exercise_id"],
        set_number=row["set_number"],
        reps=row["reps"],
        weight_kg=row["weight_kg"],
        duration_seconds=row["duration_seconds"],
        rest_seconds=row["rest_seconds"],
        completed_at=row["completed_at"],
    )


def _row_to_record(row: sqlite3.Row) -> PersonalRecord:
    return PersonalRecord(
        id=row["id"],
        exercise_id=row["exercise_id"],
        max_weight_kg=row["max_weight_kg"],
        reps=row["reps"],
        achieved_at=row["achieved_at"],
    )


# ---- Sessions ----


def create_session(user_id: str, *, name: str, started_at: Optional[datetime] = None) -> WorkoutSession:
    now = _iso(_utc())
    session = WorkoutSession(
        id=str(uuid4()),
        name=name.strip(),
        started_at=_iso(started_at) if started_at else now,
        created_at=now,
    )
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            "INSERT INTO workout_sessions (id, user_id, name, started_at, created_at) VALUES (?, ?, ?, ?, ?)",
            (session.id, user_id, session.name, session.started_at, session.created_at),
        )
    return session


def get_session(user_id: str, session_id: str) -> WorkoutSession:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT * FROM workout_sessions WHERE id = ? AND user_id = ?",
            (session_id, user_id),
        ).fetchone()
    if not row:
        raise HTTPException(status_code=404, detail="Workout session not found")
    return _row_to_session(row)


def list_sessions(user_id: str, *, limit: int = 50, completed_only: bool = False) -> List[WorkoutSession]:
    sql = "SELECT * FROM workout_sessions WHERE user_id = ?"
    if completed_only:
        sql += " AND ended_at IS NOT NULL"
    sql += " ORDER BY started_at DESC LIMIT ?"
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(sql, (user_id, limit)).fetchall()
    return [_row_to_session(r) for r in rows]


def finish_session(user_id: str, session_id: str, *, ended_at: Optional[datetime] = None) -> WorkoutSession:
    session = get_session(user_id, session_id)
    if not session.is_active:
        raise HTTPException(status_code=409, detail="Workout session already finished")

    end = _utc(ended_at)
    start = _parse_iso(session.started_at)
    if end < start:
        raise HTTPException(status_code=400, detail="ended_at is before started_at")
    duration = int((end - start).total_seconds() // 60)

    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            "UPDATE workout_sessions SET ended_at = ?, duration_minutes = ? WHERE id = ? AND user_id = ?",
            (_iso(end), duration, session_id, user_id),
        )
    return session.model_copy(update={"ended_at": _iso(end), "duration_minutes": duration})


def delete_session(user_id: str, session_id: str) -> None:
    with db_conn(settings.app_db_path) as conn:
        cur = conn.execute(
            "DELETE FROM workout_sessions WHERE id = ? AND user_id = ?",
            (session_id, user_id),
        )
        if cur.rowcount == 0:
            raise HTTPException(status_code=404, detail="Workout session not found")


# ---- Sets ----


def get_sets(user_id: str, session_id: str, exercise_id: Optional[str] = None) -> List[WorkoutSet]:
    get_session(user_id, session_id)
    sql = "SELECT * FROM sets WHERE workout_session_id = ?"
    params: list = [session_id]
    if exercise_id:
        sql += " AND exercise_id = ?"
        params.append(exercise_id)
    sql += " ORDER BY completed_at ASC, set_number ASC, rowid ASC"
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_set(r) for r in rows]


def _validate_set_fields(request: WorkoutSetCreateRequest, exercise_type: ExerciseType) -> None:
    if exercise_type == ExerciseType.weight:
        if request.reps is None or request.weight_kg is None:
            raise HTTPException(status_code=400, detail="Weight exercises need reps and weight_kg")
    elif exercise_type == ExerciseType.bodyweight:
        if request.reps is None:
            raise HTTPException(status_code=400, detail="Bodyweight exercises need reps")
    elif request.duration_seconds is None:
        raise HTTPException(status_code=400, detail="Timed exercises need duration_seconds")


def add_set(user_id: str, session_id: str, request: WorkoutSetCreateRequest) -> WorkoutSet:
    """Append a set; its number is one past the exercise's existing sets in the session."""
    session = get_session(user_id, session_id)
    if not session.is_active:
        raise HTTPException(status_code=409, detail="Workout session already finished")

    exercise = get_exercise(request.exercise_id)
    if exercise is None:
        raise HTTPException(status_code=400, detail=f"Unknown exercise: {request.exercise_id}")
    _validate_set_fields(request, exercise.type)

    with db_conn(settings.app_db_path) as conn:
        count = conn.execute(
            "SELECT COUNT(*) FROM sets WHERE workout_session_id = ? AND exercise_id = ?",
            (session_id, request.exercise_id),
        ).fetchone()[0]
        workout_set = WorkoutSet(
            id=str(uuid4()),
            workout_session_id=session_id,
            exercise_id=request.exercise_id,
            set_number=int(count) + 1,
            reps=request.reps,
            weight_kg=request.weight_kg,
            duration_seconds=request.duration_seconds,
            rest_seconds=request.rest_seconds,
            completed_at=_iso(_utc()),
        )
        conn.execute(
            """
            INSERT INTO sets (
                id, workout_session_id, exercise_id, set_number, reps, weight_kg,
                duration_seconds, rest_seconds, completed_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                workout_set.id,
                workout_set.workout_session_id,
                workout_set.exercise_id,
                workout_set.set_number,
                workout_set.reps,
                workout_set.weight_kg,
                workout_set.duration_seconds,
                workout_set.rest_seconds,
                workout_set.completed_at,
            ),
        )
    return workout_set


def delete_set(user_id: str, set_id: str) -> List[WorkoutSet]:
    """Delete a set and renumber the exercise's remaining sets from 1.

    Returns the remaining sets of that exercise in the session.
    """
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            """
            SELECT s.workout_session_id, s.exercise_id
            FROM sets s
            JOIN workout_sessions w ON w.id = s.workout_session_id
            WHERE s.id = ? AND w.user_id = ?
            """,
            (set_id, user_id),
        ).fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Set not found")
        session_id, exercise_id = row["workout_session_id"], row["exercise_id"]

        conn.execute("DELETE FROM sets WHERE id = ?", (set_id,))
        remaining = conn.execute(
            """
            SELECT * FROM sets WHERE workout_session_id = ? AND exercise_id = ?
            ORDER BY set_number ASC, completed_at ASC
            """,
            (session_id, exercise_id),
        ).fetchall()
        conn.executemany(
            "UPDATE sets SET set_number = ? WHERE id = ?",
            [(idx, r["id"]) for idx, r in enumerate(remaining, start=1)],
        )
    return [
        _row_to_set(r).model_copy(update={"set_number": idx})
        for idx, r in enumerate(remaining, start=1)
    ]


def get_session_detail(user_id: str, session_id: str) -> WorkoutSessionDetail:
    """Session with its sets grouped by exercise, in first-performed order."""
    session = get_session(user_id, session_id)
    grouped: Dict[str, List[WorkoutSet]] = {}
    sets = get_sets(user_id, session_id)
    for s in sets:
        grouped.setdefault(s.exercise_id, []).append(s)

    exercises: List[ExerciseSets] = []
    for exercise_id, items in grouped.items():
        items.sort(key=lambda s: s.set_number)
        exercise = get_exercise(exercise_id)
        exercises.append(
            ExerciseSets(
                exercise_id=exercise_id,
                exercise_name=exercise.name if exercise else None,
                exercise_type=exercise.type if exercise else None,
                sets=items,
                formatted_sets=", ".join(s.describe() for s in items),
            )
        )
    return WorkoutSessionDetail(session=session, exercises=exercises, total_sets=len(sets))


# ---- Personal records ----


def get_personal_record(user_id: str, exercise_id: str) -> Optional[PersonalRecord]:
    with db_conn(settings.app_db_path) as conn:
        row = conn.execute(
            "SELECT * FROM personal_records WHERE user_id = ? AND exercise_id = ?",
            (user_id, exercise_id),
        ).fetchone()
    return _row_to_record(row) if row else None


def list_personal_records(user_id: str) -> List[PersonalRecord]:
    with db_conn(settings.app_db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM personal_records WHERE user_id = ? ORDER BY achieved_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_record(r) for r in rows]


def _beats(record: Optional[PersonalRecord], weight_kg: float, reps: int) -> bool:
    if record is None:
        return True
    if weight_kg > record.max_weight_kg:
        return True
    return weight_kg == record.max_weight_kg and reps > record.reps


def check_and_update_personal_record(user_id: str, workout_set: WorkoutSet) -> Optional[PersonalRecord]:
    """Store the set as the exercise's record when it beats the current one.

    Heavier wins; equal weight wins with more reps. Returns the new record.
    """
    if workout_set.weight_kg is None or workout_set.reps is None:
        return None
    current = get_personal_record(user_id, workout_set.exercise_id)
    if not _beats(current, workout_set.weight_kg, workout_set.reps):
        return None

    record = PersonalRecord(
        id=current.id if current else str(uuid4()),
        exercise_id=workout_set.exercise_id,
        max_weight_kg=workout_set.weight_kg,
        reps=workout_set.reps,
        achieved_at=workout_set.completed_at,
    )
    with db_conn(settings.app_db_path) as conn:
        conn.execute(
            """
            INSERT INTO personal_records (id, user_id, exercise_id, max_weight_kg, reps, achieved_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, exercise_id) DO UPDATE SET
                max_weight_kg = excluded.max_weight_kg,
                reps = excluded.reps,
                achieved_at = excluded.achieved_at
            """,
            (record.id, user_id, record.exercise_id, record.max_weight_kg, record.reps, record.achieved_at),
        )
    logger.info("new personal record: exercise=%s %.1fkg x %d", record.exercise_id, record.max_weight_kg, record.reps)
    return record


# ---- Analytics ----


def get_previous_session_data(
    user_id: str,
    exercise_id: str,
    *,
    exclude_session_id: Optional[str] = None,
) -> Optional[PreviousSessionData]:
    """Sets of ``exercise_id`` from the most recent finished session that has any."""
    sessions = [
        s
        for s in list_sessions(user_id, limit=PREVIOUS_SESSION_LOOKBACK)
        if s.ended_at is not None and s.id != exclude_session_id
    ]
    for session in sessions:
        sets = get_sets(user_id, session.id, exercise_id)
        if sets:
            sets.sort(key=lambda s: s.set_number)
            return PreviousSessionData.build(
                exercise_id=exercise_id,
                session_id=session.id,
                session_date=session.ended_at or session.started_at,
                sets=sets,
            )
    return None


def _sets_since(conn: sqlite3.Connection, user_id: str, since: str, exercise_id: Optional[str] = None) -> List[sqlite3.Row]:
    sql = """
        SELECT s.* FROM sets s
        JOIN workout_sessions w ON w.id = s.workout_session_id
        WHERE w.user_id = ? AND w.started_at >= ?
    """
    params: list = [user_id, since]
    if exercise_id:
        sql += " AND s.exercise_id = ?"
        params.append(exercise_id)
    sql += " ORDER BY s.completed_at ASC"
    return conn.execute(sql, params).fetchall()


def weekly_volume(user_id: str, *, now: Optional[datetime] = None) -> tuple[str, Dict[str, int]]:
    """Set counts per muscle group name over the last 7 days."""
    since = _iso(_utc(now) - timedelta(days=7))
    with db_conn(settings.app_db_path) as conn:
        rows = _sets_since(conn, user_id, since)
    volume: Dict[str, int] = {}
    for row in rows:
        group = muscle_group_for(row["exercise_id"])
        if group is None:
            continue
        volume[group.name] = volume.get(group.name, 0) + 1
    return since, volume


def progress_data(user_id: str, exercise_id: str, *, days: int = 90, now: Optional[datetime] = None) -> List[ProgressPoint]:
    since = _iso(_utc(now) - timedelta(days=days))
    with db_conn(settings.app_db_path) as conn:
        rows = _sets_since(conn, user_id, since, exercise_id)

    points: List[ProgressPoint] = []
    for row in rows:
        s = _row_to_set(row)
        if s.weight_kg is not None and s.reps is not None:
            value, metric = estimated_one_rep_max(s.weight_kg, s.reps), "estimated_1rm"
        elif s.reps is not None:
            value, metric = float(s.reps), "reps"
        elif s.duration_seconds is not None:
            value, metric = float(s.duration_seconds), "duration_seconds"
        else:
            continue
        points.append(
            ProgressPoint(
                completed_at=s.completed_at,
                session_id=s.workout_session_id,
                set_number=s.set_number,
                reps=s.reps,
                weight_kg=s.weight_kg,
                duration_seconds=s.duration_seconds,
                value=round(value, 2),
                metric=metric,
            )
        )
    return points
