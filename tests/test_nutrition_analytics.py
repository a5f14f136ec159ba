# -*- coding: utf-8 -*-

from __future__ import annotations

import unittest
from datetime import date, datetime, timedelta, timezone

from mealdiary.diary.tables import entry_table, nutrition_table
from mealdiary.nutrition.analytics import NutritionAnalytics

TZ8 = timezone(timedelta(hours=8))


def snap(ts: str, calories: int, carbs: int = 0, protein: int = 0, fat: int = 0) -> dict:
    return {
        "timestamp": ts,
        "calories": calories,
        "carbs": carbs,
        "protein": protein,
        "fat": fat,
        "missing": [],
    }


class TestNutritionAnalytics(unittest.TestCase):
    def setUp(self) -> None:
        self.nutrition = nutrition_table().open()
        self.nutrition.replace(
            {
                "a": snap("2024-01-01T08:00:00+08:00", 300, carbs=40, protein=10, fat=5),
                "b": snap("2024-01-01T19:00:00+08:00", 500, carbs=60, protein=30, fat=20),
                "c": snap("2024-01-02T12:00:00+08:00", 400, carbs=50, protein=25, fat=15),
            }
        )
        self.analytics = NutritionAnalytics(self.nutrition)

    def test_groups_by_date_in_ascending_order(self) -> None:
        series = self.analytics.aggregate(date(2024, 1, 1), date(2024, 1, 2))
        self.assertEqual(series.dates, ["01/01", "01/02"])
        self.assertEqual(series.calories, [800, 400])
        self.assertEqual(series.carbs, [100, 50])
        self.assertEqual(series.protein, [40, 25])
        self.assertEqual(series.fat, [25, 15])
        self.assertEqual(series.counts, [2, 1])
        self.assertEqual([d.date for d in series.days], ["2024-01-01", "2024-01-02"])
        self.assertEqual(series.days[0].totals.calories, 800)
        self.assertEqual(series.days[0].entry_count, 2)

    def test_days_without_data_are_omitted(self) -> None:
        data = self.nutrition.load()
        data["d"] = snap("2024-01-04T12:00:00+08:00", 250)
        self.nutrition.replace(data)

        series = self.analytics.aggregate(date(2024, 1, 1), date(2024, 1, 5))
        self.assertEqual(series.dates, ["01/01", "01/02", "01/04"])
        self.assertEqual(series.calories, [800, 400, 250])

    def test_dates_use_the_timestamp_offset(self) -> None:
        # 23:30 at -05:00 is already the next day in UTC.
        self.nutrition.replace({"x": snap("2024-01-01T23:30:00-05:00", 100)})
        series = self.analytics.aggregate(date(2024, 1, 1), date(2024, 1, 2))
        self.assertEqual(series.dates, ["01/01"])

    def test_upper_bound_defaults_to_now(self) -> None:
        data = self.nutrition.load()
        data["future"] = snap("2999-01-01T12:00:00+08:00", 999)
        self.nutrition.replace(data)

        series = self.analytics.aggregate(now=datetime(2024, 1, 3, tzinfo=timezone.utc))
        self.assertEqual(series.dates, ["01/01", "01/02"])
        self.assertNotIn(999, series.calories)

    def test_exclusive_upper_bound(self) -> None:
        series = self.analytics.aggregate(date(2024, 1, 1), date(2024, 1, 2), inclusive=False)
        self.assertEqual(series.dates, ["01/01"])

    def test_datetime_bounds_compare_instants(self) -> None:
        series = self.analytics.aggregate(
            datetime(2024, 1, 1, 12, 0, tzinfo=TZ8),
            datetime(2024, 1, 2, 12, 0, tzinfo=TZ8),
        )
        self.assertEqual(series.calories, [500, 400])

        series = self.analytics.aggregate(
            datetime(2024, 1, 1, 12, 0, tzinfo=TZ8),
            datetime(2024, 1, 2, 12, 0, tzinfo=TZ8),
            inclusive=False,
        )
        self.assertEqual(series.calories, [500])

    def test_ordering_spans_years(self) -> None:
        self.nutrition.replace(
            {
                "new": snap("2024-01-01T12:00:00+08:00", 200),
                "old": snap("2023-12-31T12:00:00+08:00", 100),
            }
        )
        series = self.analytics.aggregate(date(2023, 12, 1), date(2024, 1, 31))
        self.assertEqual(series.dates, ["12/31", "01/01"])
        self.assertEqual(series.calories, [100, 200])

    def test_orphans_and_bad_rows_are_skipped(self) -> None:
        entries = entry_table().open()
        entries.replace([{"id": "a"}, {"id": "c"}, {"id": "bad"}])
        data = self.nutrition.load()
        data["bad"] = snap("yesterday", 700)
        self.nutrition.replace(data)

        series = NutritionAnalytics(self.nutrition, entries).aggregate(date(2024, 1, 1), date(2024, 1, 2))
        self.assertEqual(series.calories, [300, 400])

    def test_empty_table(self) -> None:
        series = NutritionAnalytics(nutrition_table().open()).aggregate()
        self.assertEqual(series.dates, [])
        self.assertEqual(series.days, [])


if __name__ == "__main__":
    unittest.main()
