# -*- coding: utf-8 -*-
"""Diary: Pydantic models."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

NUTRIENT_FIELDS = ("calories", "carbs", "protein", "fat")


class Entry(BaseModel):
    id: str
    filename: str
    url: str
    timestamp: str = Field(..., description="ISO8601 timestamp with offset")
    analysis: str = ""


class NutritionFields(BaseModel):
    """Extractor output, before it is bound to an entry timestamp."""

    calories: int = Field(0, ge=0)
    carbs: int = Field(0, ge=0)
    protein: int = Field(0, ge=0)
    fat: int = Field(0, ge=0)
    missing: List[str] = Field(
        default_factory=list,
        description="Fields the analysis text did not mention (their value is 0)",
    )


class NutritionSnapshot(NutritionFields):
    timestamp: str = Field(..., description="Copied from the owning entry")


class DiaryRecord(BaseModel):
    """An entry joined with its supplement note and nutrition snapshot."""

    entry: Entry
    note: Optional[str] = None
    nutrition: Optional[NutritionSnapshot] = None


class AnalyzeRequest(BaseModel):
    note: str = Field("", max_length=2000, description="Free-text annotation from the user")


class AnalysisResult(BaseModel):
    entry: Entry
    note: str
    nutrition: Optional[NutritionSnapshot] = None


class RecordsResponse(BaseModel):
    count: int
    records: List[DiaryRecord]
