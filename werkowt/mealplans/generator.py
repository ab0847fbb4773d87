# -*- coding: utf-8 -*-
"""Meal plans — prompt construction and model-output decoding."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..llm.client import LLMError, LLMErrorKind, complete_text
from ..llm.parsing import contains_json_object, extract_json_object
from .models import (
    GeneratedMealPlan,
    MealPlanGenerateRequest,
    MealPlanningConfiguration,
    MeasurementUnit,
    ShoppingCategory,
    TemperatureUnit,
)

logger = logging.getLogger(__name__)

QUICK_SUGGESTION_MAX_TOKENS = 512


def _long_date(d: date) -> str:
    return f"{d:%B} {d.day}, {d.year}"


def _configuration_block(cfg: MealPlanningConfiguration) -> str:
    meal_types = ", ".join(m.value for m in cfg.meal_types) or "breakfast, lunch, dinner"
    lines = [
        "",
        "**Meal Planning Configuration:**",
        f"- Meals to include each day: {meal_types}",
        f"- Household size: {cfg.household_size} (scale ingredient amounts accordingly)",
        f"- Maximum prep time per meal: {cfg.max_prep_time.value}",
        f"- Cooking frequency: {cfg.cooking_frequency.value}",
    ]
    if cfg.cooking_frequency.is_batch_cooking:
        lines.append(
            "- Batch cooking: design recipes that can be cooked in bulk and reheated, "
            "and add mealPrepInstructions describing each cooking session"
        )
    lines.extend(
        [
            f"- Diet type: {cfg.diet_type.value}",
            f"- Cooking skill level: {cfg.skill_level.value}",
            f"- Budget: {cfg.budget_level.value}",
            f"- Shopping at: {cfg.shop_type.value}",
        ]
    )
    if cfg.allergens:
        lines.append(f"- Allergens to strictly avoid: {', '.join(cfg.allergens)}")
    if cfg.additional_notes.strip():
        lines.append(f"- Additional notes: {cfg.additional_notes.strip()}")
    return "\n".join(lines)


def _units_block(measurement: MeasurementUnit, temperature: TemperatureUnit) -> str:
    amounts = "grams, kilograms and millilitres" if measurement == MeasurementUnit.metric else "ounces, pounds and cups"
    degrees = "°C" if temperature == TemperatureUnit.celsius else "°F"
    return "\n".join(
        [
            "",
            "**Units:**",
            f"- Use {amounts} for ingredient amounts",
            f"- Give oven temperatures in {degrees}",
        ]
    )


def build_meal_plan_prompt(request: MealPlanGenerateRequest) -> str:
    days = request.number_of_days
    start = request.start_date
    preferences = request.preferences.strip() or "No specific preferences"

    parts = [
        "Create a detailed meal plan in JSON format with the following specifications:",
        "",
        "**User Requirements:**",
        f"- Duration: {days} days starting from {_long_date(start)}",
        f"- User preferences: {preferences}",
    ]

    goals = request.macro_goals
    if goals is not None:
        parts.extend(
            [
                "",
                "**Daily Macro Targets:**",
                f"- Calories: {int(goals.calories)}",
                f"- Protein: {int(goals.protein)}g",
                f"- Carbs: {int(goals.carbs)}g",
                f"- Fat: {int(goals.fat)}g",
            ]
        )

    if request.configuration is not None:
        parts.append(_configuration_block(request.configuration))
    parts.append(_units_block(request.measurement_unit, request.temperature_unit))

    categories = ", ".join(f'"{c.value}"' for c in ShoppingCategory)
    second_day = _long_date(start + timedelta(days=1)) if days > 1 else _long_date(start)
    parts.extend(
        [
            "",
            "**Required JSON Structure:**",
            "{",
            '    "title": "Brief descriptive title for the meal plan",',
            '    "description": "2-3 sentence overview of the meal plan approach",',
            f'    "totalDays": {days},',
            '    "dailyMeals": [',
            "        {",
            '            "day": 1,',
            f'            "date": "{_long_date(start)}",',
            '            "meals": [',
            "                {",
            '                    "type": "breakfast",',
            '                    "name": "Meal name",',
            '                    "description": "Brief description",',
            '                    "ingredients": ["ingredient 1", "ingredient 2"],',
            '                    "instructions": ["step 1", "step 2"],',
            '                    "prepTime": 15,',
            '                    "nutrition": {',
            '                        "calories": 400,',
            '                        "protein": 25,',
            '                        "carbs": 45,',
            '                        "fat": 12,',
            '                        "fiber": 8,',
            '                        "sugar": 5',
            "                    }",
            "                }",
            "            ],",
            '            "dailyNutrition": {',
            '                "totalCalories": 2000,',
            '                "totalProtein": 150,',
            '                "totalCarbs": 200,',
            '                "totalFat": 80',
            "            }",
            "        }",
            "    ],",
            '    "shoppingList": [',
            '        {"name": "Chicken breast", "amount": "600g", "category": "Meat & Fish"}',
            "    ],",
            '    "mealPrepInstructions": ["optional batch cooking step"],',
            '    "totalNutrition": {',
            '        "totalCalories": 14000,',
            '        "totalProtein": 1050,',
            '        "totalCarbs": 1400,',
            '        "totalFat": 560',
            "    }",
            "}",
            "",
            "**Instructions:**",
            "1. Include breakfast, lunch, and dinner for each day unless the configuration says otherwise",
            "2. Make recipes practical and achievable",
            "3. Provide realistic nutrition estimates",
            "4. Consider the user's preferences and any dietary restrictions mentioned",
            "5. Include prep times in minutes",
            f"6. Create a comprehensive shopping list; category must be one of {categories}",
            "7. Ensure meals are varied and interesting",
            "8. Instructions should be clear and concise",
            f'9. Use consecutive dates for each day (day 2 is "{second_day}")',
            "",
            "Return ONLY the JSON object, no additional text or formatting.",
        ]
    )
    return "\n".join(parts)


def decode_meal_plan(text: str) -> GeneratedMealPlan:
    """Extract and decode a plan from the model's reply text.

    No JSON object at all is an ``invalid_format`` error; an object that
    cannot be parsed or validated is a ``json_parsing_error``.
    """
    if not contains_json_object(text):
        raise LLMError(LLMErrorKind.invalid_format)
    try:
        raw: Dict[str, Any] = extract_json_object(text)
    except ValueError as exc:
        logger.warning("meal plan JSON extraction failed: %s", exc, exc_info=True)
        raise LLMError(LLMErrorKind.json_parsing_error, str(exc)) from exc

    try:
        plan = GeneratedMealPlan.model_validate(raw)
    except ValidationError as exc:
        logger.warning("meal plan decoding failed: %s", exc)
        raise LLMError(LLMErrorKind.json_parsing_error, str(exc)) from exc

    if not plan.daily_meals:
        logger.warning("meal plan contains no days; keys=%s", sorted(raw.keys()))
        raise LLMError(LLMErrorKind.invalid_format, "meal plan contains no days")
    return plan


def generate_meal_plan(
    request: MealPlanGenerateRequest,
    *,
    client: Optional[httpx.Client] = None,
) -> GeneratedMealPlan:
    prompt = build_meal_plan_prompt(request)
    text = complete_text(prompt, client=client)
    plan = decode_meal_plan(text)
    logger.info(
        "meal plan generated: title=%r days=%d meals=%d",
        plan.title,
        len(plan.daily_meals),
        len(plan.all_meals()),
    )
    return plan


def build_quick_meal_prompt(preferences: str) -> str:
    return "\n".join(
        [
            "Suggest 3 quick and healthy meal ideas based on these preferences:",
            preferences.strip(),
            "",
            "For each meal include the name, a one-line description, approximate prep time "
            "and approximate calories. Keep the answer short and use plain text.",
        ]
    )


def suggest_quick_meals(preferences: str, *, client: Optional[httpx.Client] = None) -> str:
    text = complete_text(
        build_quick_meal_prompt(preferences),
        max_tokens=QUICK_SUGGESTION_MAX_TOKENS,
        client=client,
    )
    return text.strip()
