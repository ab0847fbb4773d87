# -*- coding: utf-8 -*-
"""Exercise catalog — API endpoints."""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from .catalog import (
    Exercise,
    ExerciseCategory,
    ExerciseEquipment,
    ExerciseType,
    filter_exercises,
    get_exercise,
    get_muscle_group,
    grouped_by_category,
    grouped_by_equipment,
    muscle_group_for,
    muscle_groups,
)

router = APIRouter(prefix="/api/exercises", tags=["Exercises"])


class ExerciseOut(BaseModel):
    id: str
    name: str
    instructions: str
    type: ExerciseType
    equipment: ExerciseEquipment
    category: ExerciseCategory
    primary_muscles: List[str] = []
    secondary_muscles: List[str] = []
    tips: List[str] = []
    muscle_group: Optional[str] = None

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> "ExerciseOut":
        group = muscle_group_for(exercise.id)
        return cls(
            **exercise.model_dump(),
            type=exercise.type,
            muscle_group=group.id if group else None,
        )


class MuscleGroupSummary(BaseModel):
    id: str
    name: str
    emoji: str
    exercise_count: int


class MuscleGroupDetail(MuscleGroupSummary):
    exercises: List[ExerciseOut] = []
    by_category: Dict[str, List[str]] = {}
    by_equipment: Dict[str, List[str]] = {}


@router.get("", response_model=List[ExerciseOut], summary="Search and filter the exercise catalog")
def list_exercises(
    group: List[str] = Query(default=[], description="Muscle group ids"),
    equipment: List[ExerciseEquipment] = Query(default=[]),
    category: List[ExerciseCategory] = Query(default=[]),
    q: str = Query(default="", max_length=100),
):
    found = filter_exercises(groups=group, equipment=equipment, categories=category, query=q.strip())
    return [ExerciseOut.from_exercise(e) for e in found]


@router.get("/muscle-groups", response_model=List[MuscleGroupSummary], summary="List muscle groups")
def list_muscle_groups():
    return [
        MuscleGroupSummary(id=g.id, name=g.name, emoji=g.emoji, exercise_count=len(g.exercises))
        for g in muscle_groups()
    ]


@router.get("/muscle-groups/{group_id}", response_model=MuscleGroupDetail, summary="Muscle group with its exercises")
def muscle_group_detail(group_id: str):
    group = get_muscle_group(group_id)
    if group is None:
        raise HTTPException(status_code=404, detail="Muscle group not found")
    return MuscleGroupDetail(
        id=group.id,
        name=group.name,
        emoji=group.emoji,
        exercise_count=len(group.exercises),
        exercises=[ExerciseOut.from_exercise(e) for e in group.exercises],
        by_category={k: [e.id for e in v] for k, v in grouped_by_category(group.id).items()},
        by_equipment={k: [e.id for e in v] for k, v in grouped_by_equipment(group.id).items()},
    )


@router.get("/{exercise_id}", response_model=ExerciseOut, summary="Get an exercise")
def exercise_detail(exercise_id: str):
    exercise = get_exercise(exercise_id)
    if exercise is None:
        raise HTTPException(status_code=404, detail="Exercise not found")
    return ExerciseOut.from_exercise(exercise)
