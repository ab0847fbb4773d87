# -*- coding: utf-8 -*-
"""Meal plans — Pydantic models.

Generated plans keep the camelCase keys the model is asked to return;
``populate_by_name`` lets Python callers use the snake_case field names.
"""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..llm.parsing import as_str_list, coerce_float, coerce_int, coerce_str, first_present
from ..macros.models import MacroGoals


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"

    @classmethod
    def parse(cls, value: Any) -> "MealType":
        raw = coerce_str(value).lower()
        for member in cls:
            if member.value == raw:
                return member
        return cls.snack


class ShoppingCategory(str, Enum):
    dairy = "Dairy"
    meat_fish = "Meat & Fish"
    fruit_veg = "Fruit & Veg"
    store_cupboard = "Store Cupboard"
    frozen = "Frozen"
    breads_grains = "Breads & Grains"
    other = "Other"

    @classmethod
    def parse(cls, value: Any) -> "ShoppingCategory":
        raw = coerce_str(value).lower()
        for member in cls:
            if raw in {member.value.lower(), member.name}:
                return member
        return cls.other


class NutritionInfo(BaseModel):
    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    sodium: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key_map = {
            "kcal": "calories",
            "energy": "calories",
            "calories_kcal": "calories",
            "protein_g": "protein",
            "carbohydrates": "carbs",
            "carbs_g": "carbs",
            "fat_g": "fat",
            "fiber_g": "fiber",
            "fibre": "fiber",
            "sugar_g": "sugar",
            "sodium_mg": "sodium",
        }
        out = dict(data)
        for src, dst in key_map.items():
            if src in data and dst not in data:
                out[dst] = data[src]
        return out

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _required_number(cls, value: Any) -> float:
        number = coerce_float(value)
        return max(0.0, number) if number is not None else 0.0

    @field_validator("fiber", "sugar", "sodium", mode="before")
    @classmethod
    def _optional_number(cls, value: Any) -> Optional[float]:
        number = coerce_float(value)
        return max(0.0, number) if number is not None else None

    @classmethod
    def zero(cls) -> "NutritionInfo":
        return cls(calories=0, protein=0, carbs=0, fat=0, fiber=0, sugar=0, sodium=0)

    def __add__(self, other: "NutritionInfo") -> "NutritionInfo":
        return NutritionInfo(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
            fiber=(self.fiber or 0) + (other.fiber or 0),
            sugar=(self.sugar or 0) + (other.sugar or 0),
            sodium=(self.sodium or 0) + (other.sodium or 0),
        )

    def scaled(self, factor: float) -> "NutritionInfo":
        return NutritionInfo(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
            fiber=(self.fiber or 0) * factor,
            sugar=(self.sugar or 0) * factor,
            sodium=(self.sodium or 0) * factor,
        )


class NutritionSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_calories: float = Field(0.0, alias="totalCalories")
    total_protein: float = Field(0.0, alias="totalProtein")
    total_carbs: float = Field(0.0, alias="totalCarbs")
    total_fat: float = Field(0.0, alias="totalFat")

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        groups = {
            "totalCalories": ["totalCalories", "total_calories", "calories", "kcal"],
            "totalProtein": ["totalProtein", "total_protein", "protein"],
            "totalCarbs": ["totalCarbs", "total_carbs", "carbs", "carbohydrates"],
            "totalFat": ["totalFat", "total_fat", "fat"],
        }
        return {key: first_present(data, keys) for key, keys in groups.items()}

    @field_validator("total_calories", "total_protein", "total_carbs", "total_fat", mode="before")
    @classmethod
    def _number(cls, value: Any) -> float:
        number = coerce_float(value)
        return max(0.0, number) if number is not None else 0.0

    @classmethod
    def from_nutrition(cls, nutrition: NutritionInfo) -> "NutritionSummary":
        return cls(
            total_calories=round(nutrition.calories, 1),
            total_protein=round(nutrition.protein, 1),
            total_carbs=round(nutrition.carbs, 1),
            total_fat=round(nutrition.fat, 1),
        )

    def __add__(self, other: "NutritionSummary") -> "NutritionSummary":
        return NutritionSummary(
            total_calories=round(self.total_calories + other.total_calories, 1),
            total_protein=round(self.total_protein + other.total_protein, 1),
            total_carbs=round(self.total_carbs + other.total_carbs, 1),
            total_fat=round(self.total_fat + other.total_fat, 1),
        )


def _ingredient_lines(value: Any) -> List[str]:
    if not isinstance(value, list):
        return as_str_list(value)
    out: List[str] = []
    for raw in value:
        if isinstance(raw, dict):
            name = coerce_str(first_present(raw, ["name", "item", "ingredient", "food"]))
            amount = coerce_str(first_present(raw, ["amount", "quantity", "qty"]))
            line = f"{amount} {name}".strip() if amount else name
            if line:
                out.append(line)
            continue
        line = coerce_str(raw)
        if line:
            out.append(line)
    return out


class Meal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: MealType = MealType.snack
    name: str = "Untitled meal"
    description: str = ""
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    prep_time: Optional[int] = Field(None, alias="prepTime", description="Minutes")
    nutrition: Optional[NutritionInfo] = None

    @model_validator(mode="before")
    @classmethod
    def _aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)
        if "type" not in out:
            out["type"] = first_present(data, ["mealType", "meal_type", "meal"])
        if "prepTime" not in out and "prep_time" not in out:
            out["prepTime"] = first_present(data, ["prep_time_minutes", "prepTimeMinutes", "cookTime", "time"])
        if "nutrition" not in out:
            out["nutrition"] = first_present(data, ["macros", "nutritionInfo"])
        return out

    @field_validator("type", mode="before")
    @classmethod
    def _meal_type(cls, value: Any) -> MealType:
        return MealType.parse(value)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return coerce_str(value) or "Untitled meal"

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("ingredients", mode="before")
    @classmethod
    def _ingredients(cls, value: Any) -> List[str]:
        return _ingredient_lines(value)

    @field_validator("instructions", mode="before")
    @classmethod
    def _instructions(cls, value: Any) -> List[str]:
        return as_str_list(value)

    @field_validator("prep_time", mode="before")
    @classmethod
    def _prep_time(cls, value: Any) -> Optional[int]:
        minutes = coerce_int(value)
        return max(0, minutes) if minutes is not None else None

    @field_validator("nutrition", mode="before")
    @classmethod
    def _nutrition(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, NutritionInfo)) else None


class DailyMeal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    day: int = 1
    date: str = ""
    meals: List[Meal] = Field(default_factory=list)
    daily_nutrition: Optional[NutritionSummary] = Field(None, alias="dailyNutrition")

    @field_validator("day", mode="before")
    @classmethod
    def _day(cls, value: Any) -> int:
        day = coerce_int(value)
        return day if day is not None and day > 0 else 1

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("meals", mode="before")
    @classmethod
    def _meals(cls, value: Any) -> List[Any]:
        if isinstance(value, dict):
            # {"breakfast": {...}, "lunch": {...}}
            out = []
            for meal_type, meal in value.items():
                if isinstance(meal, dict):
                    out.append({"type": meal_type, **meal})
            return out
        if not isinstance(value, list):
            return []
        return [m for m in value if isinstance(m, (dict, Meal))]

    @field_validator("daily_nutrition", mode="before")
    @classmethod
    def _daily_nutrition(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, NutritionSummary)) else None

    @model_validator(mode="after")
    def _derive_daily_nutrition(self) -> "DailyMeal":
        if self.daily_nutrition is None:
            with_nutrition = [m.nutrition for m in self.meals if m.nutrition is not None]
            if with_nutrition:
                total = NutritionInfo.zero()
                for nutrition in with_nutrition:
                    total = total + nutrition
                self.daily_nutrition = NutritionSummary.from_nutrition(total)
        return self


class ShoppingListItemDetail(BaseModel):
    name: str
    amount: str = ""
    category: ShoppingCategory = ShoppingCategory.other

    @model_validator(mode="before")
    @classmethod
    def _from_plain(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if isinstance(data, dict) and "name" not in data:
            out = dict(data)
            out["name"] = first_present(data, ["item", "ingredient", "food"])
            return out
        return data

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, value: Any) -> str:
        return coerce_str(value) or "Item"

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, value: Any) -> str:
        return coerce_str(value)

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: Any) -> ShoppingCategory:
        return ShoppingCategory.parse(value)


class GeneratedMealPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "Meal Plan"
    description: str = ""
    total_days: int = Field(0, alias="totalDays")
    daily_meals: List[DailyMeal] = Field(default_factory=list, alias="dailyMeals")
    shopping_list: Optional[List[ShoppingListItemDetail]] = Field(None, alias="shoppingList")
    categorized_shopping_list: Optional[Dict[str, List[str]]] = Field(None, alias="categorizedShoppingList")
    meal_prep_instructions: Optional[List[str]] = Field(None, alias="mealPrepInstructions")
    total_nutrition: Optional[NutritionSummary] = Field(None, alias="totalNutrition")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        out = dict(data)

        days = first_present(data, ["dailyMeals", "daily_meals", "days", "mealPlan"])
        if not isinstance(days, list):
            days = []
        numbered = []
        for idx, day in enumerate(days, start=1):
            if not isinstance(day, dict):
                continue
            day = dict(day)
            day.setdefault("day", idx)
            numbered.append(day)
        out["dailyMeals"] = numbered
        out.pop("daily_meals", None)

        total_days = coerce_int(first_present(data, ["totalDays", "total_days", "numberOfDays"]))
        out["totalDays"] = total_days if total_days and total_days > 0 else len(numbered)
        out.pop("total_days", None)

        shopping = first_present(data, ["shoppingList", "shopping_list"])
        out.pop("shopping_list", None)
        if isinstance(shopping, dict):
            # Model answered with the legacy {"Category": ["item", ...]} shape.
            if not data.get("categorizedShoppingList"):
                out["categorizedShoppingList"] = shopping
            out["shoppingList"] = None
        elif isinstance(shopping, list):
            out["shoppingList"] = [x for x in shopping if isinstance(x, (str, dict)) and x]
        else:
            out["shoppingList"] = None

        legacy = out.get("categorizedShoppingList")
        if isinstance(legacy, dict):
            out["categorizedShoppingList"] = {
                coerce_str(k) or "Other": as_str_list(v) for k, v in legacy.items()
            }
        elif legacy is not None:
            out["categorizedShoppingList"] = None

        prep = first_present(data, ["mealPrepInstructions", "meal_prep_instructions"])
        out["mealPrepInstructions"] = as_str_list(prep) if prep is not None else None
        out.pop("meal_prep_instructions", None)

        totals = first_present(data, ["totalNutrition", "total_nutrition"])
        out["totalNutrition"] = totals if isinstance(totals, dict) else None
        out.pop("total_nutrition", None)
        return out

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: Any) -> str:
        return coerce_str(value) or "Meal Plan"

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str:
        return coerce_str(value)

    @model_validator(mode="after")
    def _derive_totals(self) -> "GeneratedMealPlan":
        if self.total_nutrition is None:
            daily = [d.daily_nutrition for d in self.daily_meals if d.daily_nutrition is not None]
            if daily:
                total = NutritionSummary()
                for summary in daily:
                    total = total + summary
                self.total_nutrition = total
        return self

    def all_meals(self) -> List[Meal]:
        return [meal for day in self.daily_meals for meal in day.meals]

    def to_text(self) -> str:
        """Plain-text rendering stored alongside the structured plan."""
        lines = [self.title]
        if self.description:
            lines.append(self.description)
        for day in self.daily_meals:
            header = f"Day {day.day}"
            if day.date:
                header = f"{header} ({day.date})"
            lines.append("")
            lines.append(header)
            for meal in day.meals:
                line = f"- {meal.type.value.title()}: {meal.name}"
                if meal.nutrition is not None:
                    line = f"{line} ({int(meal.nutrition.calories)} kcal)"
                lines.append(line)
        return "\n".join(lines)


# ---- Planning preferences ----


class DietType(str, Enum):
    omnivore = "Omnivore"
    vegetarian = "Vegetarian"
    vegan = "Vegan"
    keto = "Keto"
    mediterranean = "Mediterranean"
    paleo = "Paleo"


class BudgetLevel(str, Enum):
    low = "Low"
    medium = "Medium"
    high = "High"


class ShopType(str, Enum):
    corner_store = "Corner Store"
    supermarket = "Supermarket"


class SkillLevel(str, Enum):
    beginner = "Beginner"
    intermediate = "Intermediate"
    advanced = "Advanced"


class PrepTime(str, Enum):
    five = "5 min"
    fifteen = "15 min"
    thirty = "30 min"
    forty_five_plus = "45+ min"


class CookingFrequency(str, Enum):
    daily = "Daily"
    every_other_day = "Every Other Day"
    twice_per_week = "Twice Per Week"
    once_per_week = "Once Per Week"

    @property
    def is_batch_cooking(self) -> bool:
        return self is not CookingFrequency.daily


class MeasurementUnit(str, Enum):
    metric = "metric"
    imperial = "imperial"


class TemperatureUnit(str, Enum):
    celsius = "celsius"
    fahrenheit = "fahrenheit"


class MealPlanningConfiguration(BaseModel):
    meal_types: List[MealType] = Field(
        default_factory=lambda: [MealType.breakfast, MealType.lunch, MealType.dinner]
    )
    household_size: int = Field(1, ge=1, le=12)
    max_prep_time: PrepTime = PrepTime.thirty
    cooking_frequency: CookingFrequency = CookingFrequency.daily
    diet_type: DietType = DietType.omnivore
    skill_level: SkillLevel = SkillLevel.intermediate
    budget_level: BudgetLevel = BudgetLevel.medium
    shop_type: ShopType = ShopType.supermarket
    allergens: List[str] = Field(default_factory=list)
    additional_notes: str = Field("", max_length=2000)


class MealPlanGenerateRequest(BaseModel):
    number_of_days: int = Field(7, ge=1, le=14)
    start_date: date = Field(default_factory=date.today)
    preferences: str = Field("", max_length=4000)
    macro_goals: Optional[MacroGoals] = Field(
        None, description="Daily targets; the saved goals are used when omitted"
    )
    use_saved_macro_goals: bool = True
    configuration: Optional[MealPlanningConfiguration] = None
    measurement_unit: MeasurementUnit = MeasurementUnit.metric
    temperature_unit: TemperatureUnit = TemperatureUnit.celsius


class QuickMealRequest(BaseModel):
    preferences: str = Field(..., min_length=1, max_length=2000)


class QuickMealResponse(BaseModel):
    suggestions: str


# ---- Stored plans ----


class MealPlan(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_date: date
    number_of_days: int
    meal_plan_text: str
    created_at: str
    is_ai_generated: bool = False
    generated_meal_plan: Optional[GeneratedMealPlan] = None

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=max(self.number_of_days, 1) - 1)

    @property
    def date_range(self) -> str:
        start, end = self.start_date, self.end_date
        return f"{start:%b} {start.day} - {end:%b} {end.day}, {end.year}"


class MealPlanCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    start_date: date
    number_of_days: int = Field(..., ge=1, le=31)
    meal_plan_text: str = Field(..., min_length=1)


class MealPlanResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    start_date: date
    end_date: date
    date_range: str
    number_of_days: int
    meal_plan_text: str
    created_at: str
    is_ai_generated: bool
    generated_meal_plan: Optional[GeneratedMealPlan] = None

    @classmethod
    def from_plan(cls, plan: MealPlan) -> "MealPlanResponse":
        return cls(
            id=plan.id,
            title=plan.title,
            description=plan.description,
            start_date=plan.start_date,
            end_date=plan.end_date,
            date_range=plan.date_range,
            number_of_days=plan.number_of_days,
            meal_plan_text=plan.meal_plan_text,
            created_at=plan.created_at,
            is_ai_generated=plan.is_ai_generated,
            generated_meal_plan=plan.generated_meal_plan,
        )


class MealPlanListResponse(BaseModel):
    plans: List[MealPlanResponse] = []
