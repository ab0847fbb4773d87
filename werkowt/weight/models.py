# -*- coding: utf-8 -*-
"""Body weight — Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class BodyWeightEntry(BaseModel):
    id: str
    weight_kg: float
    recorded_at: str
    notes: Optional[str] = None
    created_at: str


class BodyWeightCreateRequest(BaseModel):
    weight_kg: float = Field(..., gt=0, le=500)
    recorded_at: Optional[datetime] = Field(None, description="Defaults to now")
    notes: Optional[str] = Field(None, max_length=500)


class BodyWeightListResponse(BaseModel):
    entries: List[BodyWeightEntry] = []


class BodyWeightSummary(BaseModel):
    latest: Optional[BodyWeightEntry] = None
    change_kg: Optional[float] = Field(None, description="Latest minus the entry before it")
    min_kg: Optional[float] = None
    max_kg: Optional[float] = None
    entry_count: int = 0

    @classmethod
    def from_entries(cls, entries: List[BodyWeightEntry]) -> "BodyWeightSummary":
        """``entries`` newest first."""
        if not entries:
            return cls()
        change = None
        if len(entries) > 1:
            change = round(entries[0].weight_kg - entries[1].weight_kg, 2)
        weights = [e.weight_kg for e in entries]
        return cls(
            latest=entries[0],
            change_kg=change,
            min_kg=min(weights),
            max_kg=max(weights),
            entry_count=len(entries),
        )
