# -*- coding: utf-8 -*-
"""Diary: persistent tables (whole-collection load / replace).

A table holds one JSON-shaped collection: a list for the entry table and an
id-keyed object for the supplement and nutrition tables. There is no partial
write; ``replace`` overwrites the whole collection.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Union

from .errors import StorageError

Collection = Union[list, dict]


class Table:
    """Base contract shared by the file-backed and in-memory tables."""

    def __init__(self, name: str, shape: type) -> None:
        if shape not in (list, dict):
            raise ValueError(f"Unsupported table shape: {shape!r}")
        self.name = name
        self.shape = shape
        self._lock = threading.RLock()
        self._open = False

    # ---- lifecycle ----
    def open(self) -> "Table":
        self._open = True
        return self

    def close(self) -> None:
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> "Table":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def locked(self) -> Iterator["Table"]:
        """Serialize a load-modify-replace cycle against this table."""
        with self._lock:
            yield self

    # ---- collection access ----
    def empty(self) -> Collection:
        return self.shape()

    def load(self) -> Collection:
        self._require_open()
        data = self._read()
        self._check_shape(data)
        return data

    def replace(self, collection: Collection) -> None:
        self._require_open()
        self._check_shape(collection)
        try:
            encoded = json.dumps(collection, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Table '{self.name}' cannot serialize collection: {exc}") from exc
        self._write(encoded)

    def _require_open(self) -> None:
        if not self._open:
            raise StorageError(f"Table '{self.name}' is not open")

    def _check_shape(self, data: Any) -> None:
        if not isinstance(data, self.shape):
            raise StorageError(
                f"Table '{self.name}' expects a {self.shape.__name__}, got {type(data).__name__}"
            )

    def _read(self) -> Collection:
        raise NotImplementedError

    def _write(self, encoded: str) -> None:
        raise NotImplementedError


class JsonTable(Table):
    """Table persisted as a single JSON file, replaced atomically."""

    def __init__(self, name: str, shape: type, path: Path) -> None:
        super().__init__(name, shape)
        self.path = Path(path)

    def open(self) -> "JsonTable":
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Table '{self.name}' storage unavailable: {exc}") from exc
        super().open()
        if not self.path.exists():
            self.replace(self.empty())
        return self

    def _read(self) -> Collection:
        if not self.path.exists():
            return self.empty()
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Table '{self.name}' read failed: {exc}") from exc
        if not raw.strip():
            return self.empty()
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise StorageError(f"Table '{self.name}' is not valid JSON: {exc}") from exc

    def _write(self, encoded: str) -> None:
        # Write beside the target then rename, so readers only ever see a complete file.
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                fh.write(encoded)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise StorageError(f"Table '{self.name}' write failed: {exc}") from exc
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


class MemoryTable(Table):
    """In-process table; stores the encoded form so callers never share state."""

    def __init__(self, name: str, shape: type) -> None:
        super().__init__(name, shape)
        self._encoded = json.dumps(self.empty())

    def _read(self) -> Collection:
        return json.loads(self._encoded)

    def _write(self, encoded: str) -> None:
        self._encoded = encoded


def entry_table(path: Path | None = None) -> Table:
    if path is None:
        return MemoryTable("entries", list)
    return JsonTable("entries", list, path)


def supplement_table(path: Path | None = None) -> Table:
    if path is None:
        return MemoryTable("supplements", dict)
    return JsonTable("supplements", dict, path)


def nutrition_table(path: Path | None = None) -> Table:
    if path is None:
        return MemoryTable("nutrition", dict)
    return JsonTable("nutrition", dict, path)
