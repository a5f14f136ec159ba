# -*- coding: utf-8 -*-
"""Nutrition: Pydantic models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class NutritionTotals(BaseModel):
    calories: int = Field(0, ge=0)
    carbs: int = Field(0, ge=0)
    protein: int = Field(0, ge=0)
    fat: int = Field(0, ge=0)


class NutritionDay(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    totals: NutritionTotals
    entry_count: int = Field(0, ge=0)


class TimeSeries(BaseModel):
    """Per-day nutrition sums, ascending by date; days without data are absent."""

    dates: List[str] = Field(default_factory=list, description="MM/DD labels for charting")
    calories: List[int] = Field(default_factory=list)
    carbs: List[int] = Field(default_factory=list)
    protein: List[int] = Field(default_factory=list)
    fat: List[int] = Field(default_factory=list)
    counts: List[int] = Field(default_factory=list)
    days: List[NutritionDay] = Field(default_factory=list)
