# -*- coding: utf-8 -*-
"""Food — Pydantic models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..macros.models import MacroGoals, MacroProgress
from ..mealplans.models import MealType, NutritionInfo


class FoodEntrySource(str, Enum):
    manual = "manual"
    voice = "voice"
    camera = "camera"
    text = "text"
    claude_search = "claude_search"
    meal_template = "meal_template"


def meal_type_for_hour(hour: int) -> MealType:
    """5-10 breakfast, 11-15 lunch, 16-21 dinner, otherwise snack."""
    if 5 <= hour <= 10:
        return MealType.breakfast
    if 11 <= hour <= 15:
        return MealType.lunch
    if 16 <= hour <= 21:
        return MealType.dinner
    return MealType.snack


class FoodItem(BaseModel):
    id: str
    name: str
    brand: Optional[str] = None
    barcode: Optional[str] = None
    calories_per_100g: float
    protein_per_100g: float
    carbs_per_100g: float
    fat_per_100g: float
    fiber_per_100g: Optional[float] = None
    sugar_per_100g: Optional[float] = None
    sodium_per_100g: Optional[float] = None
    serving_size_name: Optional[str] = None
    serving_size_grams: Optional[float] = None
    is_verified: bool = False
    created_by_user_id: Optional[str] = None
    use_count: int = 0
    last_used_at: Optional[str] = None
    created_at: str
    updated_at: str

    @property
    def display_name(self) -> str:
        if self.brand:
            return f"{self.brand} {self.name}"
        return self.name

    def nutrition_for(self, grams: float) -> NutritionInfo:
        return NutritionInfo(
            calories=self.calories_per_100g,
            protein=self.protein_per_100g,
            carbs=self.carbs_per_100g,
            fat=self.fat_per_100g,
            fiber=self.fiber_per_100g or 0.0,
            sugar=self.sugar_per_100g or 0.0,
            sodium=self.sodium_per_100g or 0.0,
        ).scaled(grams / 100.0)


class FoodItemCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    brand: Optional[str] = Field(None, max_length=200)
    barcode: Optional[str] = Field(None, max_length=64)
    calories_per_100g: float = Field(..., ge=0, le=1000)
    protein_per_100g: float = Field(..., ge=0, le=100)
    carbs_per_100g: float = Field(..., ge=0, le=100)
    fat_per_100g: float = Field(..., ge=0, le=100)
    fiber_per_100g: Optional[float] = Field(None, ge=0, le=100)
    sugar_per_100g: Optional[float] = Field(None, ge=0, le=100)
    sodium_per_100g: Optional[float] = Field(None, ge=0, le=100000)
    serving_size_name: Optional[str] = Field(None, max_length=100)
    serving_size_grams: Optional[float] = Field(None, gt=0, le=5000)

    @field_validator("name", "brand", "barcode", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class FoodItemsResponse(BaseModel):
    items: List[FoodItem] = []


class FoodEntry(BaseModel):
    id: str
    food_item_id: str
    consumed_date: date
    meal_type: MealType
    quantity_grams: float
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    notes: Optional[str] = None
    source: FoodEntrySource = FoodEntrySource.manual
    confidence_score: float = 1.0
    meal_group_id: Optional[str] = None
    meal_group_name: Optional[str] = None
    created_at: str
    food_name: Optional[str] = None

    def nutrition(self) -> NutritionInfo:
        return NutritionInfo(calories=self.calories, protein=self.protein_g, carbs=self.carbs_g, fat=self.fat_g)


class FoodEntryCreateRequest(BaseModel):
    food_item_id: str
    quantity_grams: float = Field(..., gt=0, le=5000)
    consumed_date: Optional[date] = Field(None, description="Defaults to today")
    meal_type: Optional[MealType] = Field(None, description="Defaults to the meal for the current hour")
    notes: Optional[str] = Field(None, max_length=500)
    source: FoodEntrySource = FoodEntrySource.manual
    confidence_score: float = Field(1.0, ge=0, le=1)
    meal_group_id: Optional[str] = None
    meal_group_name: Optional[str] = Field(None, max_length=200)


class FoodEntriesResponse(BaseModel):
    consumed_date: date
    entries: List[FoodEntry] = []


class DailyNutritionSummary(BaseModel):
    consumed_date: date
    totals: NutritionInfo
    by_meal_type: Dict[str, NutritionInfo] = {}
    entry_count: int = 0
    goals: MacroGoals
    progress: MacroProgress


class RecentFood(BaseModel):
    food_item: FoodItem
    last_used: str
    use_count: int
    avg_quantity_grams: float


class MealComponent(BaseModel):
    food_item_id: str
    food_name: str
    brand: Optional[str] = None
    quantity_grams: float
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float


class MealTemplate(BaseModel):
    meal_group_id: str
    meal_group_name: str
    components: List[MealComponent] = []
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fat: float = 0.0
    last_used: str
    use_count: int = 0


class MealTemplateLogRequest(BaseModel):
    consumed_date: Optional[date] = None
    meal_type: Optional[MealType] = None


class NutritionEstimateRequest(BaseModel):
    food_name: str = Field(..., min_length=1, max_length=200)
    brand: Optional[str] = Field(None, max_length=200)


class NutritionEstimate(BaseModel):
    """Per-100g values."""

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    sodium: Optional[float] = None
    is_fallback: bool = False
    warnings: List[str] = []


class AnalyzedFood(BaseModel):
    name: str
    brand: Optional[str] = None
    nutrition: NutritionInfo = Field(..., description="Per 100g")
    estimated_grams: float = 100.0
    confidence: float = 0.5
    exists_in_database: bool = False


class FoodAnalysisResult(BaseModel):
    foods: List[AnalyzedFood] = []
    confidence: float = 0.0
    warnings: List[str] = []

    @property
    def estimated_amounts(self) -> Dict[str, float]:
        return {f.name: f.estimated_grams for f in self.foods}


class FoodTextAnalysisRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class FoodPhotoAnalysisRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    image_mime: str = Field("image/jpeg", pattern=r"^image/(jpeg|png|gif|webp)$")
    has_nutrition_label: bool = False


class LogAnalyzedFoodRequest(BaseModel):
    food: AnalyzedFood
    quantity_grams: Optional[float] = Field(None, gt=0, le=5000, description="Defaults to the estimate")
    consumed_date: Optional[date] = None
    meal_type: Optional[MealType] = None
    source: FoodEntrySource = FoodEntrySource.text
    meal_group_id: Optional[str] = None
    meal_group_name: Optional[str] = Field(None, max_length=200)

    @field_validator("food")
    @classmethod
    def _loggable_food(cls, food: AnalyzedFood) -> AnalyzedFood:
        name = food.name.strip()
        if not name:
            raise ValueError("food name must not be blank")
        if len(name) > 200:
            raise ValueError("food name must be at most 200 characters")
        brand = (food.brand or "").strip()[:200] or None
        confidence = min(max(food.confidence, 0.0), 1.0)
        return food.model_copy(update={"name": name, "brand": brand, "confidence": confidence})


class ServingSizeOut(BaseModel):
    name: str
    grams: float
    volume_ml: Optional[float] = None
    kind: str
    is_standard: bool = False
    food_category: Optional[str] = None


class ServingNutritionResponse(BaseModel):
    serving: ServingSizeOut
    nutrition: NutritionInfo
