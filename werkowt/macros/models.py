# -*- coding: utf-8 -*-
"""Macros — Pydantic models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

DEFAULT_CALORIES = 2000.0
DEFAULT_PROTEIN = 150.0
DEFAULT_CARBS = 200.0
DEFAULT_FAT = 80.0


class MacroGoals(BaseModel):
    calories: float = Field(DEFAULT_CALORIES, ge=0, le=20000)
    protein: float = Field(DEFAULT_PROTEIN, ge=0, le=2000)
    carbs: float = Field(DEFAULT_CARBS, ge=0, le=3000)
    fat: float = Field(DEFAULT_FAT, ge=0, le=1000)


class MacroGoalsResponse(BaseModel):
    goals: MacroGoals
    is_default: bool = False
    updated_at: Optional[str] = None


class MacroProgressItem(BaseModel):
    current: float
    target: float
    progress: float = Field(..., description="current / target; 0 when target <= 0")
    percentage: float = Field(..., description="Progress in percent, capped at 100")
    achieved: bool


def progress_item(current: float, target: float) -> MacroProgressItem:
    progress = current / target if target > 0 else 0.0
    return MacroProgressItem(
        current=round(current, 1),
        target=round(target, 1),
        progress=round(progress, 4),
        percentage=round(min(progress, 1.0) * 100, 1),
        achieved=progress >= 1.0,
    )


class MacroProgress(BaseModel):
    calories: MacroProgressItem
    protein: MacroProgressItem
    carbs: MacroProgressItem
    fat: MacroProgressItem

    @property
    def all_achieved(self) -> bool:
        return all(i.achieved for i in (self.calories, self.protein, self.carbs, self.fat))

    @classmethod
    def compute(cls, *, goals: MacroGoals, calories: float, protein: float, carbs: float, fat: float) -> "MacroProgress":
        return cls(
            calories=progress_item(calories, goals.calories),
            protein=progress_item(protein, goals.protein),
            carbs=progress_item(carbs, goals.carbs),
            fat=progress_item(fat, goals.fat),
        )


class MacroProgressRequest(BaseModel):
    calories: float = Field(0.0, ge=0)
    protein: float = Field(0.0, ge=0)
    carbs: float = Field(0.0, ge=0)
    fat: float = Field(0.0, ge=0)


class MacroProgressResponse(BaseModel):
    goals: MacroGoals
    progress: MacroProgress
    all_achieved: bool
