# -*- coding: utf-8 -*-
"""Workouts — Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..exercises.catalog import ExerciseType


class WorkoutSession(BaseModel):
    id: str
    name: str
    started_at: str
    ended_at: Optional[str] = None
    duration_minutes: Optional[int] = None
    created_at: str

    @property
    def is_active(self) -> bool:
        return self.ended_at is None


class WorkoutSet(BaseModel):
    id: str
    workout_session_id: str
    exercise_id: str
    set_number: int
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None
    rest_seconds: Optional[int] = None
    completed_at: str

    def describe(self) -> str:
        """Short label: ``80.0kg×5``, ``12 reps``, ``1m 5s`` or ``45s``."""
        if self.weight_kg is not None and self.reps is not None:
            return f"{self.weight_kg:.1f}kg×{self.reps}"
        if self.reps is not None:
            return f"{self.reps} reps"
        if self.duration_seconds is not None:
            minutes, seconds = divmod(self.duration_seconds, 60)
            return f"{minutes}m {seconds}s" if minutes > 0 else f"{seconds}s"
        return "Unknown"


def estimated_one_rep_max(weight_kg: float, reps: int) -> float:
    """Epley estimate."""
    return weight_kg * (1 + reps / 30)


class PersonalRecord(BaseModel):
    id: str
    exercise_id: str
    max_weight_kg: float
    reps: int
    achieved_at: str


class PreviousSessionData(BaseModel):
    exercise_id: str
    session_id: str
    session_date: str
    sets: List[WorkoutSet] = []
    formatted_sets: str = ""

    @classmethod
    def build(cls, *, exercise_id: str, session_id: str, session_date: str, sets: List[WorkoutSet]) -> "PreviousSessionData":
        return cls(
            exercise_id=exercise_id,
            session_id=session_id,
            session_date=session_date,
            sets=sets,
            formatted_sets=", ".join(s.describe() for s in sets),
        )


class WorkoutSessionCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    started_at: Optional[datetime] = Field(None, description="Defaults to now")


class WorkoutSessionFinishRequest(BaseModel):
    ended_at: Optional[datetime] = Field(None, description="Defaults to now")


class WorkoutSetCreateRequest(BaseModel):
    exercise_id: str = Field(..., min_length=1, max_length=100)
    reps: Optional[int] = Field(None, ge=1, le=1000)
    weight_kg: Optional[float] = Field(None, ge=0, le=1000)
    duration_seconds: Optional[int] = Field(None, ge=1, le=24 * 3600)
    rest_seconds: Optional[int] = Field(None, ge=0, le=3600)


class ExerciseSets(BaseModel):
    exercise_id: str
    exercise_name: Optional[str] = None
    exercise_type: Optional[ExerciseType] = None
    sets: List[WorkoutSet] = []
    formatted_sets: str = ""


class WorkoutSessionDetail(BaseModel):
    session: WorkoutSession
    exercises: List[ExerciseSets] = []
    total_sets: int = 0


class WorkoutSessionsResponse(BaseModel):
    sessions: List[WorkoutSession] = []


class AddSetResponse(BaseModel):
    workout_set: WorkoutSet
    new_personal_record: Optional[PersonalRecord] = None


class ProgressPoint(BaseModel):
    completed_at: str
    session_id: str
    set_number: int
    reps: Optional[int] = None
    weight_kg: Optional[float] = None
    duration_seconds: Optional[int] = None
    value: float
    metric: str = Field(..., description="estimated_1rm | reps | duration_seconds")


class ProgressResponse(BaseModel):
    exercise_id: str
    days: int
    points: List[ProgressPoint] = []
    best_value: Optional[float] = None


class WeeklyVolumeResponse(BaseModel):
    since: str
    sets_by_muscle_group: Dict[str, int] = {}
    total_sets: int = 0
