# -*- coding: utf-8 -*-
"""Diary: nutrition scrape over free-text analysis.

The vision model answers in prose whose phrasing is not stable, so extraction
is best-effort: every field is located independently and a field that cannot
be found resolves to 0 (and is listed in ``missing``) instead of failing the
analysis.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .models import NUTRIENT_FIELDS, NutritionFields

_CALORIE_UNITS = ("大卡", "千卡", "kcal")
_GRAM_UNITS = ("公克", "克", "g")


@dataclass(frozen=True)
class NutrientPattern:
    field: str
    names: Sequence[str]
    units: Sequence[str]

    def compile(self) -> re.Pattern[str]:
        names = "|".join(re.escape(n) for n in self.names)
        units = "|".join(re.escape(u) for u in self.units)
        return re.compile(
            rf"(?:{names})"
            r"[^\d\n]{0,20}?"
            r"(\d{1,3}(?:,\d{3})+|\d+)"
            # "450-500大卡" / "450~500 大卡": keep the first number of a range.
            r"(?:\.\d+)?(?:\s*[-~～–至到]\s*\d+(?:\.\d+)?)?"
            rf"\s*(?:{units})",
            re.IGNORECASE,
        )


DEFAULT_PATTERNS = (
    NutrientPattern("calories", ("熱量", "热量", "卡路里"), _CALORIE_UNITS),
    NutrientPattern("carbs", ("碳水化合物", "碳水"), _GRAM_UNITS),
    NutrientPattern("protein", ("蛋白質", "蛋白质"), _GRAM_UNITS),
    NutrientPattern("fat", ("脂肪",), _GRAM_UNITS),
)


class NutritionExtractor(Protocol):
    def extract(self, text: Optional[str]) -> Optional[NutritionFields]:
        ...


class RegexNutritionExtractor:
    """First ``<name> ... <integer> ... <unit>`` occurrence per nutrient."""

    def __init__(self, patterns: Sequence[NutrientPattern] = DEFAULT_PATTERNS) -> None:
        unknown = {p.field for p in patterns} - set(NUTRIENT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown nutrient fields: {sorted(unknown)}")
        self._compiled = [(p.field, p.compile()) for p in patterns]

    def extract(self, text: Optional[str]) -> Optional[NutritionFields]:
        if not text:
            return None

        values = {}
        missing = []
        for field, pattern in self._compiled:
            m = pattern.search(text)
            if m is None:
                missing.append(field)
                continue
            values[field] = int(m.group(1).replace(",", ""))
        for field in NUTRIENT_FIELDS:
            if field not in values and field not in missing:
                missing.append(field)
        return NutritionFields(**values, missing=missing)


default_extractor = RegexNutritionExtractor()


def extract_nutrition(text: Optional[str]) -> Optional[NutritionFields]:
    return default_extractor.extract(text)
