# -*- coding: utf-8 -*-
"""Food — AI nutrition estimates and food text/photo analysis.

All three helpers are best-effort: any LLM or decoding failure degrades to a
static estimate or an empty analysis carrying a warning, never an exception.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..llm.client import LLMError, complete_text, create_message
from ..llm.parsing import (
    as_str_list,
    coerce_float,
    coerce_str,
    extract_json_object,
    extract_text,
    first_present,
)
from ..mealplans.models import NutritionInfo
from .models import AnalyzedFood, FoodAnalysisResult, NutritionEstimate
from .servings import amount_to_grams, default_serving

logger = logging.getLogger(__name__)

ANALYSIS_MAX_TOKENS = 1500
ESTIMATE_MAX_TOKENS = 400

# Generic mixed-food values per 100g.
FALLBACK_ESTIMATE = NutritionEstimate(calories=150.0, protein=5.0, carbs=20.0, fat=5.0, is_fallback=True)

_NUTRITION_KEYS = {
    "calories": ["calories", "calories_per_100g", "kcal", "energy"],
    "protein": ["protein", "protein_per_100g", "protein_g"],
    "carbs": ["carbs", "carbs_per_100g", "carbohydrates", "carbs_g"],
    "fat": ["fat", "fat_per_100g", "fat_g"],
    "fiber": ["fiber", "fiber_per_100g", "fibre"],
    "sugar": ["sugar", "sugar_per_100g"],
    "sodium": ["sodium", "sodium_per_100g", "sodium_mg"],
}

_ITEM_LIST_KEYS = ["foods", "items", "identified_foods", "identifiedFoods", "food"]
_GRAMS_KEYS = ["estimated_grams", "estimatedGrams", "grams", "quantity_grams", "weight_g"]
_AMOUNT_KEYS = ["amount", "quantity", "portion", "serving"]


def _clamp_confidence(value: Any, default: float) -> float:
    number = coerce_float(value)
    if number is None:
        return default
    # Some models answer in percent.
    if number > 1.0:
        number = number / 100.0
    return max(0.0, min(1.0, number))


def _pick_nutrition(obj: Dict[str, Any]) -> Dict[str, Optional[float]]:
    source = obj.get("nutrition") if isinstance(obj.get("nutrition"), dict) else obj
    if isinstance(obj.get("nutrition_per_100g"), dict):
        source = obj["nutrition_per_100g"]
    return {k: coerce_float(first_present(source, keys)) for k, keys in _NUTRITION_KEYS.items()}


def _normalize_food(item: Any) -> Optional[AnalyzedFood]:
    if isinstance(item, str):
        name = item.strip()
        if not name:
            return None
        return AnalyzedFood(
            name=name,
            nutrition=NutritionInfo(**FALLBACK_ESTIMATE.model_dump(include={"calories", "protein", "carbs", "fat"})),
            estimated_grams=default_serving(name).grams,
            confidence=0.2,
        )
    if not isinstance(item, dict):
        return None

    name = coerce_str(first_present(item, ["name", "food", "food_name", "title"]))
    if not name:
        return None

    grams = coerce_float(first_present(item, _GRAMS_KEYS))
    if grams is None:
        amount = first_present(item, _AMOUNT_KEYS)
        grams = amount_to_grams(coerce_str(amount)) if amount is not None else None
    if grams is None or grams <= 0:
        grams = default_serving(name).grams

    nutrition = {k: v for k, v in _pick_nutrition(item).items() if v is not None}
    return AnalyzedFood(
        name=name,
        brand=coerce_str(item.get("brand")) or None,
        nutrition=NutritionInfo(**nutrition),
        estimated_grams=round(grams, 1),
        confidence=_clamp_confidence(item.get("confidence"), 0.5),
    )


def normalize_analysis(parsed: Dict[str, Any]) -> FoodAnalysisResult:
    """Map a loosely shaped model answer onto :class:`FoodAnalysisResult`."""
    raw_items = first_present(parsed, _ITEM_LIST_KEYS)
    if isinstance(raw_items, dict):
        raw_items = [raw_items]
    foods: List[AnalyzedFood] = []
    for raw in raw_items if isinstance(raw_items, list) else []:
        food = _normalize_food(raw)
        if food is not None:
            foods.append(food)

    # Separate amounts map, as in {"estimatedAmounts": {"rice": 150}}.
    amounts = first_present(parsed, ["estimated_amounts", "estimatedAmounts"])
    if isinstance(amounts, dict):
        for i, food in enumerate(foods):
            grams = coerce_float(amounts.get(food.name))
            if grams is not None and grams > 0:
                foods[i] = food.model_copy(update={"estimated_grams": round(grams, 1)})

    warnings = as_str_list(first_present(parsed, ["warnings", "warning"]))
    if not foods:
        warnings.append("No food could be identified")
    overall = sum(f.confidence for f in foods) / len(foods) if foods else 0.0
    return FoodAnalysisResult(
        foods=foods,
        confidence=_clamp_confidence(parsed.get("confidence"), round(overall, 2)),
        warnings=warnings,
    )


def _failed_analysis(message: str) -> FoodAnalysisResult:
    return FoodAnalysisResult(foods=[], confidence=0.0, warnings=[message])


def _decode_analysis(text: str) -> FoodAnalysisResult:
    try:
        parsed = extract_json_object(text)
    except ValueError as exc:
        logger.warning("food analysis output parse failed: %s", exc, exc_info=True)
        return _failed_analysis("Could not read the analysis result; please add the food manually")
    return normalize_analysis(parsed)


_ANALYSIS_SCHEMA = (
    "Return ONLY a JSON object with this structure:\n"
    "{\n"
    '  "foods": [\n'
    "    {\n"
    '      "name": "string",\n'
    '      "brand": "string or null",\n'
    '      "estimated_grams": number,\n'
    '      "calories_per_100g": number,\n'
    '      "protein_per_100g": number,\n'
    '      "carbs_per_100g": number,\n'
    '      "fat_per_100g": number,\n'
    '      "confidence": number between 0 and 1\n'
    "    }\n"
    "  ],\n"
    '  "confidence": number between 0 and 1,\n'
    '  "warnings": ["string"]\n'
    "}"
)


def build_food_text_prompt(text: str) -> str:
    return "\n".join(
        [
            "Identify every food and drink in this description of what someone ate:",
            f'"{text.strip()}"',
            "",
            "For each item estimate the eaten amount in grams and typical nutrition per 100g.",
            "If the description is ambiguous, use low confidence and add a warning instead of guessing precise numbers.",
            "",
            _ANALYSIS_SCHEMA,
        ]
    )


def build_food_photo_prompt(has_nutrition_label: bool) -> str:
    if has_nutrition_label:
        focus = (
            "The photo shows a nutrition label. Read the per-100g values from the label exactly; "
            "if the label only lists per-serving values, convert them to per 100g."
        )
    else:
        focus = "Identify each food on the plate and estimate the portion size in grams from visual cues."
    return "\n".join(
        [
            focus,
            "If you cannot identify any food, return an empty foods list and add a warning.",
            "",
            _ANALYSIS_SCHEMA,
        ]
    )


def analyze_food_text(text: str, *, client: Optional[httpx.Client] = None) -> FoodAnalysisResult:
    try:
        reply = complete_text(build_food_text_prompt(text), max_tokens=ANALYSIS_MAX_TOKENS, client=client)
    except LLMError as exc:
        logger.warning("food text analysis unavailable: %s", exc)
        return _failed_analysis(exc.user_message)
    return _decode_analysis(reply)


def analyze_food_photo(
    image_bytes: bytes,
    image_mime: str,
    *,
    has_nutrition_label: bool = False,
    client: Optional[httpx.Client] = None,
) -> FoodAnalysisResult:
    content = [
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": image_mime,
                "data": base64.b64encode(image_bytes).decode("ascii"),
            },
        },
        {"type": "text", "text": build_food_photo_prompt(has_nutrition_label)},
    ]
    try:
        data = create_message(
            [{"role": "user", "content": content}],
            max_tokens=ANALYSIS_MAX_TOKENS,
            client=client,
        )
    except LLMError as exc:
        logger.warning("food photo analysis unavailable: %s", exc)
        return _failed_analysis(exc.user_message)

    reply = extract_text(data)
    if not reply.strip():
        return _failed_analysis("The analysis service returned no result")
    return _decode_analysis(reply)


def build_estimate_prompt(food_name: str, brand: Optional[str] = None) -> str:
    label = f"{brand.strip()} {food_name.strip()}" if brand and brand.strip() else food_name.strip()
    return "\n".join(
        [
            f"Estimate the typical nutrition values per 100g for: {label}",
            "",
            "Return ONLY a JSON object:",
            '{"calories": number, "protein": number, "carbs": number, "fat": number, '
            '"fiber": number, "sugar": number, "sodium": number}',
            "Use grams for macros and milligrams for sodium.",
        ]
    )


def _fallback_estimate(reason: str) -> NutritionEstimate:
    return FALLBACK_ESTIMATE.model_copy(update={"warnings": [reason]})


def estimate_nutrition(
    food_name: str,
    brand: Optional[str] = None,
    *,
    client: Optional[httpx.Client] = None,
) -> NutritionEstimate:
    """Per-100g estimate for a food; the static default on any failure."""
    try:
        reply = complete_text(build_estimate_prompt(food_name, brand), max_tokens=ESTIMATE_MAX_TOKENS, client=client)
    except LLMError as exc:
        logger.warning("nutrition estimate unavailable for %r: %s", food_name, exc)
        return _fallback_estimate(exc.user_message)

    try:
        parsed = extract_json_object(reply)
    except ValueError as exc:
        logger.warning("nutrition estimate parse failed for %r: %s", food_name, exc, exc_info=True)
        return _fallback_estimate("Could not read the estimate; showing a default")

    values = _pick_nutrition(parsed)
    if any(values[k] is None for k in ("calories", "protein", "carbs", "fat")):
        logger.warning("nutrition estimate for %r is missing macros: %s", food_name, sorted(parsed.keys()))
        return _fallback_estimate("The estimate was incomplete; showing a default")
    return NutritionEstimate(**{k: max(0.0, v) for k, v in values.items() if v is not None})
