# -*- coding: utf-8 -*-
"""Macros — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.security import get_current_user
from .models import MacroGoals, MacroGoalsResponse, MacroProgress, MacroProgressRequest, MacroProgressResponse
from .storage import get_macro_goals, upsert_macro_goals

router = APIRouter(prefix="/api/macros", tags=["Macros"])


@router.get("/goals", response_model=MacroGoalsResponse, summary="Get daily macro goals")
def get_goals(user: dict = Depends(get_current_user)):
    goals, updated_at = get_macro_goals(user["id"])
    return MacroGoalsResponse(goals=goals, is_default=updated_at is None, updated_at=updated_at)


@router.put("/goals", response_model=MacroGoalsResponse, summary="Save daily macro goals")
def put_goals(request: MacroGoals, user: dict = Depends(get_current_user)):
    updated_at = upsert_macro_goals(user["id"], request)
    return MacroGoalsResponse(goals=request, is_default=False, updated_at=updated_at)


@router.post("/progress", response_model=MacroProgressResponse, summary="Progress of intake against goals")
def progress(request: MacroProgressRequest, user: dict = Depends(get_current_user)):
    goals, _ = get_macro_goals(user["id"])
    result = MacroProgress.compute(
        goals=goals,
        calories=request.calories,
        protein=request.protein,
        carbs=request.carbs,
        fat=request.fat,
    )
    return MacroProgressResponse(goals=goals, progress=result, all_achieved=result.all_achieved)
