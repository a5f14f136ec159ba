# -*- coding: utf-8 -*-
"""Nutrition: date-bucketed trends over the nutrition table."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from ..diary.models import NUTRIENT_FIELDS
from ..diary.store import parse_timestamp
from ..diary.tables import Table
from .models import NutritionDay, NutritionTotals, TimeSeries

logger = logging.getLogger(__name__)

Bound = Union[date, datetime, None]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _after_start(ts: datetime, start: Bound) -> bool:
    if start is None:
        return True
    if isinstance(start, datetime):
        return ts >= _aware(start)
    return ts.date() >= start


def _before_end(ts: datetime, end: Union[date, datetime], inclusive: bool) -> bool:
    if isinstance(end, datetime):
        end = _aware(end)
        return ts <= end if inclusive else ts < end
    return ts.date() <= end if inclusive else ts.date() < end


class NutritionAnalytics:
    """Reads the nutrition table on demand; it never writes.

    When given the entry table, snapshots whose entry is gone (left behind by
    an interrupted delete) are ignored.
    """

    def __init__(self, nutrition: Table, entries: Optional[Table] = None) -> None:
        self.nutrition = nutrition
        self.entries = entries

    def _live_ids(self) -> Optional[set]:
        if self.entries is None:
            return None
        return {row.get("id") for row in self.entries.load() if isinstance(row, dict)}

    def aggregate(
        self,
        start: Bound = None,
        end: Bound = None,
        *,
        inclusive: bool = True,
        now: Optional[datetime] = None,
    ) -> TimeSeries:
        """Sum snapshots per calendar date within ``[start, end]``.

        ``inclusive=False`` makes the upper bound exclusive. ``end`` defaults to
        now. Dates are taken in each timestamp's own offset.
        """
        upper: Union[date, datetime] = end if end is not None else (now or datetime.now(timezone.utc))
        live = self._live_ids()

        buckets: Dict[date, Dict[str, int]] = {}
        for entry_id, raw in self.nutrition.load().items():
            if live is not None and entry_id not in live:
                continue
            if not isinstance(raw, dict):
                continue
            try:
                ts = _aware(parse_timestamp(str(raw.get("timestamp") or "")))
            except ValueError:
                logger.warning("skip nutrition row %s: bad timestamp %r", entry_id, raw.get("timestamp"))
                continue
            if not (_after_start(ts, start) and _before_end(ts, upper, inclusive)):
                continue

            bucket = buckets.setdefault(ts.date(), {k: 0 for k in (*NUTRIENT_FIELDS, "count")})
            for field in NUTRIENT_FIELDS:
                bucket[field] += _as_int(raw.get(field))
            bucket["count"] += 1

        series = TimeSeries()
        for day in sorted(buckets):
            bucket = buckets[day]
            series.dates.append(day.strftime("%m/%d"))
            series.calories.append(bucket["calories"])
            series.carbs.append(bucket["carbs"])
            series.protein.append(bucket["protein"])
            series.fat.append(bucket["fat"])
            series.counts.append(bucket["count"])
            series.days.append(
                NutritionDay(
                    date=day.isoformat(),
                    totals=NutritionTotals(**{k: bucket[k] for k in NUTRIENT_FIELDS}),
                    entry_count=bucket["count"],
                )
            )
        return series


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(0, int(value))
    return 0
