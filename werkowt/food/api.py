# -*- coding: utf-8 -*-
"""Food — API endpoints."""

from __future__ import annotations

import base64
import binascii
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.security import get_current_user
from ..config import settings
from ..mealplans.models import NutritionInfo
from .analysis import analyze_food_photo, analyze_food_text, estimate_nutrition
from .models import (
    DailyNutritionSummary,
    FoodAnalysisResult,
    FoodEntriesResponse,
    FoodEntry,
    FoodEntryCreateRequest,
    FoodItem,
    FoodItemCreateRequest,
    FoodItemsResponse,
    FoodPhotoAnalysisRequest,
    FoodTextAnalysisRequest,
    LogAnalyzedFoodRequest,
    MealTemplate,
    MealTemplateLogRequest,
    NutritionEstimate,
    NutritionEstimateRequest,
    RecentFood,
    ServingNutritionResponse,
    ServingSizeOut,
)
from .servings import FoodCategory, ServingSize, default_serving, find_serving, suggested_servings
from .storage import (
    create_food_item,
    daily_summary,
    delete_food_entry,
    find_food_item_by_name,
    get_food_item,
    list_food_entries,
    list_meal_templates,
    log_food_entry,
    log_meal_template,
    recent_foods,
    search_food_items,
)

router = APIRouter(prefix="/api/food", tags=["Food"])


def _serving_out(serving: ServingSize) -> ServingSizeOut:
    return ServingSizeOut(
        name=serving.name,
        grams=serving.grams,
        volume_ml=serving.volume_ml,
        kind=serving.kind.value,
        is_standard=serving.is_standard,
        food_category=serving.food_category.value if serving.food_category else None,
    )


def _decode_image_or_400(image_base64: str, max_bytes: int) -> bytes:
    payload = image_base64
    if image_base64.startswith("data:"):
        _, sep, payload = image_base64.partition(",")
        if not sep:
            raise HTTPException(status_code=400, detail="Invalid data URL: missing ',' before the image data")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid base64 image: {exc}") from exc
    if not data:
        raise HTTPException(status_code=400, detail="Empty image")
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=f"Image too large: {len(data)} bytes > {max_bytes}")
    return data


# ---- Library ----


@router.get("/items", response_model=FoodItemsResponse, summary="Search the food library")
def items(
    q: str = Query(default="", max_length=100),
    limit: int = Query(default=25, ge=1, le=100),
    user: dict = Depends(get_current_user),
):
    return FoodItemsResponse(items=search_food_items(user["id"], q, limit=limit))


@router.post("/items", response_model=FoodItem, summary="Create a food item")
def create_item(request: FoodItemCreateRequest, user: dict = Depends(get_current_user)):
    return create_food_item(user["id"], request)


@router.get("/items/recent", response_model=List[RecentFood], summary="Recently logged foods")
def recent(limit: int = Query(default=20, ge=1, le=100), user: dict = Depends(get_current_user)):
    return recent_foods(user["id"], limit=limit)


@router.get("/items/{item_id}", response_model=FoodItem, summary="Get a food item")
def item_detail(item_id: str, user: dict = Depends(get_current_user)):
    return get_food_item(user["id"], item_id)


@router.get("/items/{item_id}/servings", response_model=List[ServingSizeOut], summary="Suggested servings")
def item_servings(
    item_id: str,
    category: Optional[FoodCategory] = Query(default=None),
    user: dict = Depends(get_current_user),
):
    item = get_food_item(user["id"], item_id)
    default = default_serving(item.name)
    rest = [s for s in suggested_servings(category or default.food_category) if s.name != default.name]
    return [_serving_out(s) for s in [default, *rest]]


@router.get("/items/{item_id}/serving-nutrition", response_model=ServingNutritionResponse, summary="Nutrition for a serving")
def serving_nutrition(
    item_id: str,
    serving: Optional[str] = Query(default=None, description="Serving name; defaults to the food's default"),
    category: Optional[FoodCategory] = Query(default=None),
    user: dict = Depends(get_current_user),
):
    item = get_food_item(user["id"], item_id)
    chosen = default_serving(item.name)
    if serving:
        found = find_serving(serving, category or chosen.food_category)
        if found is None:
            raise HTTPException(status_code=400, detail=f"Unknown serving: {serving}")
        chosen = found
    per_100g = item.nutrition_for(100.0)
    return ServingNutritionResponse(serving=_serving_out(chosen), nutrition=chosen.nutrition(per_100g))


@router.get("/servings", response_model=List[ServingSizeOut], summary="Serving sizes for a food category")
def servings(category: Optional[FoodCategory] = Query(default=None)):
    return [_serving_out(s) for s in suggested_servings(category)]


# ---- Log ----


@router.get("/entries", response_model=FoodEntriesResponse, summary="Entries for a day")
def entries(day: Optional[date] = Query(default=None, description="YYYY-MM-DD, defaults to today"), user: dict = Depends(get_current_user)):
    target = day or datetime.now().date()
    return FoodEntriesResponse(consumed_date=target, entries=list_food_entries(user["id"], target))


@router.post("/entries", response_model=FoodEntry, summary="Log a food entry")
def create_entry(request: FoodEntryCreateRequest, user: dict = Depends(get_current_user)):
    item = get_food_item(user["id"], request.food_item_id)
    return log_food_entry(
        user["id"],
        item,
        quantity_grams=request.quantity_grams,
        consumed_date=request.consumed_date,
        meal_type=request.meal_type,
        notes=request.notes,
        source=request.source,
        confidence_score=request.confidence_score,
        meal_group_id=request.meal_group_id,
        meal_group_name=request.meal_group_name,
    )


@router.delete("/entries/{entry_id}", summary="Delete a food entry")
def remove_entry(entry_id: str, user: dict = Depends(get_current_user)):
    delete_food_entry(user["id"], entry_id)
    return {"ok": True}


@router.get("/summary", response_model=DailyNutritionSummary, summary="Daily totals and macro progress")
def summary(day: Optional[date] = Query(default=None, description="YYYY-MM-DD, defaults to today"), user: dict = Depends(get_current_user)):
    return daily_summary(user["id"], day or datetime.now().date())


@router.get("/meal-templates", response_model=List[MealTemplate], summary="Saved meals")
def meal_templates(user: dict = Depends(get_current_user)):
    return list_meal_templates(user["id"])


@router.post("/meal-templates/{meal_group_id}/log", response_model=List[FoodEntry], summary="Log a saved meal again")
def log_template(meal_group_id: str, request: Optional[MealTemplateLogRequest] = None, user: dict = Depends(get_current_user)):
    request = request or MealTemplateLogRequest()
    return log_meal_template(
        user["id"],
        meal_group_id,
        consumed_date=request.consumed_date,
        meal_type=request.meal_type,
    )


# ---- AI helpers ----


@router.post("/estimate", response_model=NutritionEstimate, summary="Estimate per-100g nutrition for a food")
def estimate(request: NutritionEstimateRequest, user: dict = Depends(get_current_user)):  # noqa: ARG001
    return estimate_nutrition(request.food_name, request.brand)


def _mark_known_foods(user_id: str, result: FoodAnalysisResult) -> FoodAnalysisResult:
    foods = [
        f.model_copy(update={"exists_in_database": find_food_item_by_name(user_id, f.name, f.brand) is not None})
        for f in result.foods
    ]
    return result.model_copy(update={"foods": foods})


@router.post("/analyze/text", response_model=FoodAnalysisResult, summary="Identify foods in a description")
def analyze_text(request: FoodTextAnalysisRequest, user: dict = Depends(get_current_user)):
    return _mark_known_foods(user["id"], analyze_food_text(request.text))


@router.post("/analyze/photo", response_model=FoodAnalysisResult, summary="Identify foods in a photo")
def analyze_photo(request: FoodPhotoAnalysisRequest, user: dict = Depends(get_current_user)):
    max_bytes = int(settings.max_upload_mb * 1024 * 1024)
    image_bytes = _decode_image_or_400(request.image_base64, max_bytes=max_bytes)
    result = analyze_food_photo(image_bytes, request.image_mime, has_nutrition_label=request.has_nutrition_label)
    return _mark_known_foods(user["id"], result)


def _clamp(value: float, upper: float) -> float:
    return min(max(value, 0.0), upper)


@router.post("/analyze/log", response_model=FoodEntry, summary="Log an analysed food")
def log_analyzed(request: LogAnalyzedFoodRequest, user: dict = Depends(get_current_user)):
    food = request.food
    item = find_food_item_by_name(user["id"], food.name, food.brand)
    if item is None:
        nutrition: NutritionInfo = food.nutrition
        item = create_food_item(
            user["id"],
            FoodItemCreateRequest(
                name=food.name,
                brand=food.brand,
                calories_per_100g=_clamp(nutrition.calories, 1000),
                protein_per_100g=_clamp(nutrition.protein, 100),
                carbs_per_100g=_clamp(nutrition.carbs, 100),
                fat_per_100g=_clamp(nutrition.fat, 100),
                fiber_per_100g=_clamp(nutrition.fiber, 100) if nutrition.fiber is not None else None,
                sugar_per_100g=_clamp(nutrition.sugar, 100) if nutrition.sugar is not None else None,
                sodium_per_100g=_clamp(nutrition.sodium, 100000) if nutrition.sodium is not None else None,
            ),
            is_verified=False,
        )
    return log_food_entry(
        user["id"],
        item,
        quantity_grams=request.quantity_grams or food.estimated_grams,
        consumed_date=request.consumed_date,
        meal_type=request.meal_type,
        source=request.source,
        confidence_score=food.confidence,
        meal_group_id=request.meal_group_id,
        meal_group_name=request.meal_group_name,
    )
