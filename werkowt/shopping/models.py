# -*- coding: utf-8 -*-
"""Shopping — Pydantic models."""

from __future__ import annotations

from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from ..mealplans.models import MealPlan, ShoppingCategory

NAME_MAX_LENGTH = 200
AMOUNT_MAX_LENGTH = 100


class ShoppingListItem(BaseModel):
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    amount: str = Field("", max_length=AMOUNT_MAX_LENGTH)
    category: ShoppingCategory = ShoppingCategory.other
    is_completed: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: object) -> ShoppingCategory:
        return ShoppingCategory.parse(value)


class ShoppingList(BaseModel):
    id: str
    meal_plan_id: str
    meal_plan_title: str
    items: List[ShoppingListItem] = []
    created_at: str

    @property
    def completed_items(self) -> List[ShoppingListItem]:
        return [i for i in self.items if i.is_completed]

    @property
    def remaining_items(self) -> List[ShoppingListItem]:
        return [i for i in self.items if not i.is_completed]

    @property
    def completion_percentage(self) -> float:
        if not self.items:
            return 0.0
        return len(self.completed_items) / len(self.items)

    @property
    def completion_text(self) -> str:
        return f"{len(self.completed_items)} of {len(self.items)} completed"

    def items_by_category(self) -> Dict[str, List[ShoppingListItem]]:
        grouped: Dict[str, List[ShoppingListItem]] = {}
        for category in ShoppingCategory:
            items = [i for i in self.items if i.category == category]
            if items:
                grouped[category.value] = items
        return grouped


def clip_text(value: str, limit: int) -> str:
    return value.strip()[:limit].rstrip()


def items_from_meal_plan(plan: MealPlan) -> List[ShoppingListItem]:
    """Structured ``shoppingList`` first, then the legacy categorised map.

    Model text is clipped to the item field limits and blank names are
    skipped, so a wordy plan still yields a list.
    """
    generated = plan.generated_meal_plan
    if generated is None:
        return []
    items: List[ShoppingListItem] = []
    if generated.shopping_list is not None:
        for d in generated.shopping_list:
            name = clip_text(d.name, NAME_MAX_LENGTH)
            if name:
                items.append(ShoppingListItem(name=name, amount=clip_text(d.amount, AMOUNT_MAX_LENGTH), category=d.category))
        return items
    if generated.categorized_shopping_list is not None:
        for category, names in generated.categorized_shopping_list.items():
            for raw in names:
                name = clip_text(raw, NAME_MAX_LENGTH)
                if name:
                    items.append(ShoppingListItem(name=name, category=category))
    return items


class ShoppingListItemInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    amount: str = Field("", max_length=AMOUNT_MAX_LENGTH)
    category: ShoppingCategory = ShoppingCategory.other
    is_completed: bool = False

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: object) -> ShoppingCategory:
        return ShoppingCategory.parse(value)


class ShoppingListCreateRequest(BaseModel):
    meal_plan_id: str = Field(..., min_length=1)


class ShoppingListItemsReplaceRequest(BaseModel):
    items: List[ShoppingListItemInput] = Field(default_factory=list)


class ShoppingItemUpdateRequest(BaseModel):
    is_completed: Optional[bool] = Field(None, description="Omit to toggle")


class ShoppingListResponse(BaseModel):
    id: str
    meal_plan_id: str
    meal_plan_title: str
    created_at: str
    items: List[ShoppingListItem] = []
    categories: Dict[str, List[ShoppingListItem]] = {}
    completed_count: int
    remaining_count: int
    completion_percentage: float
    completion_text: str

    @classmethod
    def from_list(cls, sl: ShoppingList) -> "ShoppingListResponse":
        return cls(
            id=sl.id,
            meal_plan_id=sl.meal_plan_id,
            meal_plan_title=sl.meal_plan_title,
            created_at=sl.created_at,
            items=sl.items,
            categories=sl.items_by_category(),
            completed_count=len(sl.completed_items),
            remaining_count=len(sl.remaining_items),
            completion_percentage=round(sl.completion_percentage, 4),
            completion_text=sl.completion_text,
        )


class ShoppingListCreateResponse(BaseModel):
    created: bool
    shopping_list: ShoppingListResponse


class ShoppingListsResponse(BaseModel):
    lists: List[ShoppingListResponse] = []
