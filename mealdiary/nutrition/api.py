# -*- coding: utf-8 -*-
"""Nutrition: API endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from ..diary.api import get_store
from ..diary.store import RecordStore, parse_timestamp
from .analytics import NutritionAnalytics
from .models import TimeSeries

router = APIRouter(prefix="/analytics", tags=["Nutrition"])


def _parse_bound(value: Optional[str], name: str) -> Union[date, datetime, None]:
    if not value:
        return None
    try:
        if "T" in value or " " in value.strip():
            return parse_timestamp(value)
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid '{name}' bound: {value}") from exc


@router.get("/nutrition", response_model=TimeSeries, summary="Daily nutrition totals")
def nutrition_series(
    start: Optional[str] = Query(default=None, alias="from", description="YYYY-MM-DD or ISO8601"),
    end: Optional[str] = Query(default=None, alias="to", description="YYYY-MM-DD or ISO8601"),
    inclusive: bool = Query(default=True, description="Include the upper bound"),
    store: RecordStore = Depends(get_store),
):
    analytics = NutritionAnalytics(store.nutrition, store.entries)
    return analytics.aggregate(
        _parse_bound(start, "from"),
        _parse_bound(end, "to"),
        inclusive=inclusive,
    )
