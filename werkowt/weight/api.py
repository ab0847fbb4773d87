# -*- coding: utf-8 -*-
"""Body weight — API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth.security import get_current_user
from .models import BodyWeightCreateRequest, BodyWeightEntry, BodyWeightListResponse, BodyWeightSummary
from .storage import add_entry, delete_entry, list_entries, recent_entries

router = APIRouter(prefix="/api/weight", tags=["Weight"])


@router.get("", response_model=BodyWeightListResponse, summary="List weight entries, newest first")
def entries(limit: int = Query(default=100, ge=1, le=1000), user: dict = Depends(get_current_user)):
    return BodyWeightListResponse(entries=list_entries(user["id"], limit=limit))


@router.post("", response_model=BodyWeightEntry, summary="Record body weight")
def record(request: BodyWeightCreateRequest, user: dict = Depends(get_current_user)):
    return add_entry(
        user["id"],
        weight_kg=request.weight_kg,
        recorded_at=request.recorded_at,
        notes=request.notes,
    )


@router.get("/recent", response_model=BodyWeightListResponse, summary="Entries of the last N days, oldest first")
def recent(days: int = Query(default=30, ge=1, le=3650), user: dict = Depends(get_current_user)):
    return BodyWeightListResponse(entries=recent_entries(user["id"], days=days))


@router.get("/summary", response_model=BodyWeightSummary, summary="Latest weight, change and range")
def summary(days: int = Query(default=90, ge=1, le=3650), user: dict = Depends(get_current_user)):
    newest_first = list(reversed(recent_entries(user["id"], days=days)))
    return BodyWeightSummary.from_entries(newest_first)


@router.delete("/{entry_id}", summary="Delete a weight entry")
def remove(entry_id: str, user: dict = Depends(get_current_user)):
    delete_entry(user["id"], entry_id)
    return {"ok": True}
