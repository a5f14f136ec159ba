# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from mealdiary.diary.errors import StorageError
from mealdiary.diary.tables import JsonTable, MemoryTable, entry_table, nutrition_table


class TestJsonTable(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="mealdiary-tables-"))
        self.path = self._tmp / "nested" / "entries.json"

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_open_seeds_empty_collection(self) -> None:
        table = entry_table(self.path).open()
        self.assertTrue(self.path.exists())
        self.assertEqual(json.loads(self.path.read_text(encoding="utf-8")), [])
        self.assertEqual(table.load(), [])

    def test_replace_is_visible_to_a_fresh_table(self) -> None:
        with entry_table(self.path) as table:
            table.replace([{"id": "a", "analysis": "熱量：450大卡"}])

        with entry_table(self.path) as reopened:
            self.assertEqual(reopened.load(), [{"id": "a", "analysis": "熱量：450大卡"}])

    def test_failed_replace_keeps_previous_state(self) -> None:
        table = nutrition_table(self._tmp / "nutrition.json").open()
        table.replace({"a": {"calories": 1}})

        with self.assertRaises(StorageError):
            table.replace({"b": object()})
        with self.assertRaises(StorageError):
            table.replace([{"wrong": "shape"}])

        self.assertEqual(table.load(), {"a": {"calories": 1}})

    def test_replace_leaves_no_temp_files(self) -> None:
        table = entry_table(self.path).open()
        for i in range(3):
            table.replace([{"id": str(i)}])
        leftovers = [p.name for p in self.path.parent.iterdir() if p.name != "entries.json"]
        self.assertEqual(leftovers, [])

    def test_corrupt_file_raises_storage_error(self) -> None:
        table = entry_table(self.path).open()
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertRaises(StorageError):
            table.load()

    def test_wrong_shape_on_disk_raises_storage_error(self) -> None:
        table = JsonTable("supplements", dict, self._tmp / "supplements.json").open()
        (self._tmp / "supplements.json").write_text("[]", encoding="utf-8")
        with self.assertRaises(StorageError):
            table.load()

    def test_closed_table_rejects_access(self) -> None:
        table = entry_table(self.path)
        with self.assertRaises(StorageError):
            table.load()
        table.open()
        table.close()
        with self.assertRaises(StorageError):
            table.replace([])


class TestMemoryTable(unittest.TestCase):
    def test_loaded_collection_is_a_copy(self) -> None:
        table = MemoryTable("supplements", dict).open()
        table.replace({"a": "少油"})
        data = table.load()
        data["b"] = "changed"
        self.assertEqual(table.load(), {"a": "少油"})

    def test_unsupported_shape(self) -> None:
        with self.assertRaises(ValueError):
            MemoryTable("bad", set)


if __name__ == "__main__":
    unittest.main()
