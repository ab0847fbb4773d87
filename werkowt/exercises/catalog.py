# -*- coding: utf-8 -*-
"""Exercise catalog — read-only reference data loaded from ``catalog.json``.

An exercise id may be listed under more than one muscle group (chin-ups
train both back and arms); lookups by id return the first occurrence.
"""

from __future__ import annotations

import json
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

CATALOG_PATH = Path(__file__).with_name("catalog.json")


class ExerciseType(str, Enum):
    weight = "weight"
    bodyweight = "bodyweight"
    timed = "timed"


class ExerciseEquipment(str, Enum):
    barbell = "barbell"
    dumbbell = "dumbbell"
    cable = "cable"
    bodyweight = "bodyweight"
    machine = "machine"
    kettlebell = "kettlebell"
    resistance_band = "resistance_band"


class ExerciseCategory(str, Enum):
    compound = "compound"
    isolation = "isolation"
    bodyweight = "bodyweight"
    cardio = "cardio"

    @property
    def exercise_type(self) -> ExerciseType:
        if self is ExerciseCategory.bodyweight:
            return ExerciseType.bodyweight
        if self is ExerciseCategory.cardio:
            return ExerciseType.timed
        return ExerciseType.weight


class Exercise(BaseModel):
    id: str
    name: str
    instructions: str
    equipment: ExerciseEquipment
    category: ExerciseCategory
    primary_muscles: List[str] = Field(default_factory=list)
    secondary_muscles: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)

    @property
    def type(self) -> ExerciseType:
        return self.category.exercise_type

    def matches(self, query: str, *, include_tips: bool = False) -> bool:
        q = query.casefold()
        haystacks = [self.name, self.instructions]
        if include_tips:
            haystacks.append(" ".join(self.tips))
        return any(q in h.casefold() for h in haystacks)


class MuscleGroup(BaseModel):
    id: str
    name: str
    emoji: str
    exercises: List[Exercise] = Field(default_factory=list)


@lru_cache(maxsize=1)
def muscle_groups() -> List[MuscleGroup]:
    raw = json.loads(CATALOG_PATH.read_text(encoding="utf-8"))
    return [MuscleGroup.model_validate(g) for g in raw["muscle_groups"]]


def all_exercises() -> List[Exercise]:
    return [e for g in muscle_groups() for e in g.exercises]


def get_muscle_group(group_id: str) -> Optional[MuscleGroup]:
    return next((g for g in muscle_groups() if g.id == group_id), None)


def get_exercise(exercise_id: str) -> Optional[Exercise]:
    return next((e for e in all_exercises() if e.id == exercise_id), None)


def exercises_for(group_id: str) -> List[Exercise]:
    group = get_muscle_group(group_id)
    return list(group.exercises) if group else []


def muscle_group_for(exercise_id: str) -> Optional[MuscleGroup]:
    return next((g for g in muscle_groups() if any(e.id == exercise_id for e in g.exercises)), None)


def search_exercises(query: str) -> List[Exercise]:
    if not query:
        return all_exercises()
    return [e for e in all_exercises() if e.matches(query)]


def filter_exercises(
    *,
    groups: Iterable[str] = (),
    equipment: Iterable[ExerciseEquipment] = (),
    categories: Iterable[ExerciseCategory] = (),
    query: str = "",
) -> List[Exercise]:
    group_ids = list(groups)
    if group_ids:
        exercises = [e for gid in group_ids for e in exercises_for(gid)]
    else:
        exercises = all_exercises()

    equipment_set = set(equipment)
    if equipment_set:
        exercises = [e for e in exercises if e.equipment in equipment_set]

    category_set = set(categories)
    if category_set:
        exercises = [e for e in exercises if e.category in category_set]

    if query:
        exercises = [e for e in exercises if e.matches(query, include_tips=True)]
    return exercises


def grouped_by_category(group_id: str) -> Dict[str, List[Exercise]]:
    out: Dict[str, List[Exercise]] = {}
    for e in exercises_for(group_id):
        out.setdefault(e.category.value, []).append(e)
    return out


def grouped_by_equipment(group_id: str) -> Dict[str, List[Exercise]]:
    out: Dict[str, List[Exercise]] = {}
    for e in exercises_for(group_id):
        out.setdefault(e.equipment.value, []).append(e)
    return out
