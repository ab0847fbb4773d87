# -*- coding: utf-8 -*-
"""Meal plans — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth.security import get_current_user
from ..llm.client import LLMError
from ..macros.storage import get_macro_goals
from .generator import generate_meal_plan, suggest_quick_meals
from .models import (
    MealPlanCreateRequest,
    MealPlanGenerateRequest,
    MealPlanListResponse,
    MealPlanResponse,
    QuickMealRequest,
    QuickMealResponse,
)
from .storage import delete_meal_plan, get_meal_plan, list_meal_plans, new_meal_plan, save_meal_plan

router = APIRouter(prefix="/api/meal-plans", tags=["MealPlans"])


@router.get("", response_model=MealPlanListResponse, summary="List meal plans (newest first)")
def list_plans(user: dict = Depends(get_current_user)):
    plans = list_meal_plans(user["id"])
    return MealPlanListResponse(plans=[MealPlanResponse.from_plan(p) for p in plans])


@router.post("", response_model=MealPlanResponse, summary="Save a manually written meal plan")
def create_plan(request: MealPlanCreateRequest, user: dict = Depends(get_current_user)):
    plan = new_meal_plan(
        title=request.title,
        description=request.description,
        start_date=request.start_date,
        number_of_days=request.number_of_days,
        meal_plan_text=request.meal_plan_text,
    )
    save_meal_plan(user["id"], plan)
    return MealPlanResponse.from_plan(plan)


@router.post("/generate", response_model=MealPlanResponse, summary="Generate and save an AI meal plan")
def generate_plan(request: MealPlanGenerateRequest, user: dict = Depends(get_current_user)):
    if request.macro_goals is None and request.use_saved_macro_goals:
        goals, _ = get_macro_goals(user["id"])
        request = request.model_copy(update={"macro_goals": goals})

    try:
        generated = generate_meal_plan(request)
    except LLMError as exc:
        raise exc.to_http_exception() from exc

    plan = new_meal_plan(
        title=generated.title,
        description=generated.description or None,
        start_date=request.start_date,
        number_of_days=request.number_of_days,
        meal_plan_text=generated.to_text(),
        generated=generated,
    )
    save_meal_plan(user["id"], plan)
    return MealPlanResponse.from_plan(plan)


@router.post("/suggestions", response_model=QuickMealResponse, summary="Three quick meal ideas (not stored)")
def quick_suggestions(request: QuickMealRequest, user: dict = Depends(get_current_user)):  # noqa: ARG001
    try:
        text = suggest_quick_meals(request.preferences)
    except LLMError as exc:
        raise exc.to_http_exception() from exc
    return QuickMealResponse(suggestions=text)


@router.get("/{plan_id}", response_model=MealPlanResponse, summary="Get a meal plan")
def get_plan(plan_id: str, user: dict = Depends(get_current_user)):
    return MealPlanResponse.from_plan(get_meal_plan(user["id"], plan_id))


@router.delete("/{plan_id}", summary="Delete a meal plan and its shopping list")
def delete_plan(plan_id: str, user: dict = Depends(get_current_user)):
    delete_meal_plan(user["id"], plan_id)
    return {"status": "ok", "id": plan_id}
