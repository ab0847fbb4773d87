# -*- coding: utf-8 -*-
"""Food — serving size reference table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from ..mealplans.models import NutritionInfo


class FoodCategory(str, Enum):
    fruits = "fruits"
    vegetables = "vegetables"
    dairy = "dairy"
    grains = "grains"
    protein = "protein"
    beverages = "beverages"
    snacks = "snacks"
    desserts = "desserts"
    condiments = "condiments"


class ServingKind(str, Enum):
    weight = "weight"
    volume = "volume"
    piece = "piece"
    custom = "custom"


@dataclass(frozen=True)
class ServingSize:
    name: str
    grams: float
    kind: ServingKind
    volume_ml: Optional[float] = None
    is_standard: bool = False
    food_category: Optional[FoodCategory] = None

    def nutrition(self, per_100g: NutritionInfo) -> NutritionInfo:
        return per_100g.scaled(self.grams / 100.0)


STANDARD_SERVINGS: List[ServingSize] = [
    ServingSize("100g", 100, ServingKind.weight, is_standard=True),
    ServingSize("50g", 50, ServingKind.weight, is_standard=True),
    ServingSize("25g", 25, ServingKind.weight, is_standard=True),
    ServingSize("250g", 250, ServingKind.weight, is_standard=True),
    ServingSize("100ml", 100, ServingKind.volume, volume_ml=100, is_standard=True),
    ServingSize("250ml", 250, ServingKind.volume, volume_ml=250, is_standard=True),
    ServingSize("500ml", 500, ServingKind.volume, volume_ml=500, is_standard=True),
    ServingSize("1 cup (240ml)", 240, ServingKind.volume, volume_ml=240, is_standard=True),
    ServingSize("1/2 cup (120ml)", 120, ServingKind.volume, volume_ml=120, is_standard=True),
    ServingSize("1 tablespoon", 15, ServingKind.volume, volume_ml=15, is_standard=True),
    ServingSize("1 teaspoon", 5, ServingKind.volume, volume_ml=5, is_standard=True),
    ServingSize("1 small", 80, ServingKind.piece, food_category=FoodCategory.fruits),
    ServingSize("1 medium", 120, ServingKind.piece, food_category=FoodCategory.fruits),
    ServingSize("1 large", 180, ServingKind.piece, food_category=FoodCategory.fruits),
    ServingSize("1 cup", 240, ServingKind.volume, volume_ml=240, food_category=FoodCategory.dairy),
    ServingSize("1 slice (20g)", 20, ServingKind.piece, food_category=FoodCategory.dairy),
    ServingSize("1 serving (30g)", 30, ServingKind.piece, food_category=FoodCategory.dairy),
    ServingSize("1 slice", 25, ServingKind.piece, food_category=FoodCategory.grains),
    ServingSize("1 cup cooked", 175, ServingKind.volume, food_category=FoodCategory.grains),
    ServingSize("1/2 cup cooked", 90, ServingKind.volume, food_category=FoodCategory.grains),
    ServingSize("1 piece (100g)", 100, ServingKind.piece, food_category=FoodCategory.protein),
    ServingSize("1 serving (150g)", 150, ServingKind.piece, food_category=FoodCategory.protein),
    ServingSize("1 can (330ml)", 330, ServingKind.volume, volume_ml=330, food_category=FoodCategory.beverages),
    ServingSize("1 bottle (500ml)", 500, ServingKind.volume, volume_ml=500, food_category=FoodCategory.beverages),
    ServingSize("1 glass (200ml)", 200, ServingKind.volume, volume_ml=200, food_category=FoodCategory.beverages),
    ServingSize("1 piece", 15, ServingKind.piece, food_category=FoodCategory.snacks),
    ServingSize("1 small portion", 30, ServingKind.piece, food_category=FoodCategory.snacks),
    ServingSize("1 serving", 40, ServingKind.piece, food_category=FoodCategory.snacks),
    ServingSize("1 scoop (65ml)", 60, ServingKind.volume, volume_ml=65, food_category=FoodCategory.desserts),
    ServingSize("1/2 cup (100ml)", 92, ServingKind.volume, volume_ml=100, food_category=FoodCategory.desserts),
]

# Household measures a model may answer with instead of grams.
HOUSEHOLD_MEASURE_GRAMS: Dict[str, float] = {
    "handful": 30.0,
    "slice": 25.0,
    "bowl": 150.0,
    "cup": 240.0,
    "glass": 200.0,
    "pint": 473.0,
    "bottle": 350.0,
    "can": 330.0,
    "piece": 50.0,
    "portion": 100.0,
    "scoop": 60.0,
    "tablespoon": 15.0,
    "tbsp": 15.0,
    "teaspoon": 5.0,
    "tsp": 5.0,
    "small": 80.0,
    "medium": 120.0,
    "large": 180.0,
    "serving": 100.0,
    "packet": 25.0,
    "bag": 35.0,
    "container": 150.0,
    "bar": 40.0,
    "stick": 15.0,
    "wedge": 30.0,
}

_UNIT_GRAMS: Dict[str, float] = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "ml": 1.0,
    "l": 1000.0,
    "oz": 28.35,
    "fl oz": 29.57,
    "lb": 453.6,
}

_AMOUNT_RE = re.compile(r"^\s*(\d+(?:\.\d+)?|\d+/\d+)?\s*([a-zA-Z][a-zA-Z ]*?)?\s*(?:\(.*\))?\s*$")


def suggested_servings(category: Optional[FoodCategory]) -> List[ServingSize]:
    """Category-specific servings first, then the universal ones."""
    specific = [s for s in STANDARD_SERVINGS if category is not None and s.food_category == category]
    universal = [s for s in STANDARD_SERVINGS if s.is_standard]
    return specific + universal


def default_serving(food_name: str) -> ServingSize:
    name = food_name.lower()
    if "banana" in name:
        return ServingSize("1 medium", 120, ServingKind.piece, food_category=FoodCategory.fruits)
    if "apple" in name:
        return ServingSize("1 medium", 180, ServingKind.piece, food_category=FoodCategory.fruits)
    if "milk" in name or "juice" in name:
        return ServingSize("1 cup (240ml)", 240, ServingKind.volume, volume_ml=240, food_category=FoodCategory.beverages)
    if "ice cream" in name or "yogurt" in name:
        return ServingSize("1/2 cup (100ml)", 92, ServingKind.volume, volume_ml=100, food_category=FoodCategory.dairy)
    if "bread" in name:
        return ServingSize("1 slice", 25, ServingKind.piece, food_category=FoodCategory.grains)
    if "chicken" in name or "beef" in name or "fish" in name:
        return ServingSize("1 serving (150g)", 150, ServingKind.piece, food_category=FoodCategory.protein)
    return ServingSize("100g", 100, ServingKind.weight, is_standard=True)


def find_serving(name: str, category: Optional[FoodCategory] = None) -> Optional[ServingSize]:
    wanted = name.strip().lower()
    for serving in suggested_servings(category):
        if serving.name.lower() == wanted:
            return serving
    return None


def amount_to_grams(amount: str) -> Optional[float]:
    """Best-effort grams for ``"150g"``, ``"2 slices"``, ``"1/2 cup"`` or ``"8 fl oz"``."""
    match = _AMOUNT_RE.match(amount or "")
    if not match:
        return None
    raw_qty, raw_unit = match.group(1), (match.group(2) or "").strip().lower()
    if raw_qty is None:
        qty = 1.0
    elif "/" in raw_qty:
        num, den = raw_qty.split("/")
        if float(den) == 0:
            return None
        qty = float(num) / float(den)
    else:
        qty = float(raw_qty)

    if not raw_unit:
        return qty if raw_qty is not None else None
    candidates = [raw_unit]
    if raw_unit.endswith("es"):
        candidates.append(raw_unit[:-2])
    if raw_unit.endswith("s"):
        candidates.append(raw_unit[:-1])
    per_unit = None
    for unit in candidates:
        per_unit = _UNIT_GRAMS.get(unit) or HOUSEHOLD_MEASURE_GRAMS.get(unit)
        if per_unit is not None:
            break
    if per_unit is None:
        return None
    return round(qty * per_unit, 1)
