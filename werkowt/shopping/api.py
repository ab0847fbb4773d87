# -*- coding: utf-8 -*-
"""Shopping — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..auth.security import get_current_user
from ..mealplans.storage import get_meal_plan
from .models import (
    ShoppingItemUpdateRequest,
    ShoppingList,
    ShoppingListCreateRequest,
    ShoppingListCreateResponse,
    ShoppingListItem,
    ShoppingListItemsReplaceRequest,
    ShoppingListResponse,
    ShoppingListsResponse,
)
from .storage import (
    create_shopping_list,
    delete_shopping_list,
    get_shopping_list,
    get_shopping_list_for_meal_plan,
    list_shopping_lists,
    reset_shopping_list,
    save_shopping_list,
    set_item_completed,
)

router = APIRouter(prefix="/api/shopping-lists", tags=["Shopping"])


@router.get("", response_model=ShoppingListsResponse, summary="List shopping lists")
def list_lists(user: dict = Depends(get_current_user)):
    return ShoppingListsResponse(lists=[ShoppingListResponse.from_list(sl) for sl in list_shopping_lists(user["id"])])


@router.post("", response_model=ShoppingListCreateResponse, summary="Create (or fetch) the list for a meal plan")
def create_list(request: ShoppingListCreateRequest, user: dict = Depends(get_current_user)):
    plan = get_meal_plan(user["id"], request.meal_plan_id)
    sl, created = create_shopping_list(user["id"], plan)
    return ShoppingListCreateResponse(created=created, shopping_list=ShoppingListResponse.from_list(sl))


@router.get("/by-meal-plan/{meal_plan_id}", response_model=ShoppingListResponse, summary="Shopping list of a meal plan")
def get_list_for_plan(meal_plan_id: str, user: dict = Depends(get_current_user)):
    sl = get_shopping_list_for_meal_plan(user["id"], meal_plan_id)
    if sl is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return ShoppingListResponse.from_list(sl)


@router.patch("/items/{item_id}", response_model=ShoppingListResponse, summary="Set or toggle item completion")
def update_item(item_id: str, request: ShoppingItemUpdateRequest, user: dict = Depends(get_current_user)):
    sl = set_item_completed(user["id"], item_id, request.is_completed)
    return ShoppingListResponse.from_list(sl)


@router.get("/{list_id}", response_model=ShoppingListResponse, summary="Get a shopping list")
def get_list(list_id: str, user: dict = Depends(get_current_user)):
    return ShoppingListResponse.from_list(get_shopping_list(user["id"], list_id))


@router.put("/{list_id}/items", response_model=ShoppingListResponse, summary="Replace all items of a list")
def replace_items(list_id: str, request: ShoppingListItemsReplaceRequest, user: dict = Depends(get_current_user)):
    current = get_shopping_list(user["id"], list_id)
    updated = ShoppingList(
        id=current.id,
        meal_plan_id=current.meal_plan_id,
        meal_plan_title=current.meal_plan_title,
        created_at=current.created_at,
        items=[ShoppingListItem(**i.model_dump()) for i in request.items],
    )
    return ShoppingListResponse.from_list(save_shopping_list(user["id"], updated))


@router.post("/{list_id}/reset", response_model=ShoppingListResponse, summary="Mark every item as not completed")
def reset_list(list_id: str, user: dict = Depends(get_current_user)):
    return ShoppingListResponse.from_list(reset_shopping_list(user["id"], list_id))


@router.delete("/{list_id}", summary="Delete a shopping list")
def delete_list(list_id: str, user: dict = Depends(get_current_user)):
    delete_shopping_list(user["id"], list_id)
    return {"status": "ok", "id": list_id}
