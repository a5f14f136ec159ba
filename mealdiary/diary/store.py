# -*- coding: utf-8 -*-
"""Diary: record store over the entry, supplement and nutrition tables.

Writes to the three tables are sequential and each one is durable on its own;
there is no cross-table transaction. The ordering below keeps any
intermediate state recoverable: a crash mid-delete leaves at worst orphan
supplement/nutrition keys (readers skip them, ``purge_orphans`` removes them)
and the image file is only removed after every table mutation succeeded.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from ..config import settings
from .errors import NotFoundError, StorageError
from .extractor import NutritionExtractor, default_extractor
from .images import ImageStore
from .models import AnalysisResult, DiaryRecord, Entry, NutritionSnapshot
from .tables import Table, entry_table, nutrition_table, supplement_table
from .vision import Collaborator, build_instruction

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now().astimezone().isoformat(timespec="seconds")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO8601 timestamp; a trailing 'Z' is accepted as UTC."""
    raw = (value or "").strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    return datetime.fromisoformat(raw)


def _normalize_timestamp(timestamp: Union[str, datetime, None]) -> str:
    if timestamp is None:
        return now_iso()
    if isinstance(timestamp, datetime):
        if timestamp.tzinfo is None:
            timestamp = timestamp.astimezone()
        return timestamp.isoformat(timespec="seconds")
    parsed = parse_timestamp(timestamp)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp must carry an explicit offset: {timestamp!r}")
    return timestamp


class RecordStore:
    def __init__(
        self,
        *,
        entries: Table,
        supplements: Table,
        nutrition: Table,
        images: ImageStore,
        extractor: NutritionExtractor = default_extractor,
    ) -> None:
        self.entries = entries
        self.supplements = supplements
        self.nutrition = nutrition
        self.images = images
        self.extractor = extractor

    @classmethod
    def from_settings(cls) -> "RecordStore":
        return cls(
            entries=entry_table(settings.entries_file),
            supplements=supplement_table(settings.supplements_file),
            nutrition=nutrition_table(settings.nutrition_file),
            images=ImageStore(
                settings.upload_dir,
                public_base_url=settings.public_base_url,
                max_bytes=settings.max_upload_mb * 1024 * 1024,
            ),
        )

    # ---- lifecycle ----
    def open(self) -> "RecordStore":
        for table in (self.entries, self.supplements, self.nutrition):
            table.open()
        return self

    def close(self) -> None:
        for table in (self.entries, self.supplements, self.nutrition):
            table.close()

    def __enter__(self) -> "RecordStore":
        return self.open()

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ---- helpers ----
    def _load_entries(self) -> List[Dict[str, Any]]:
        return self.entries.load()

    @staticmethod
    def _find(rows: List[Dict[str, Any]], entry_id: str) -> int:
        for idx, row in enumerate(rows):
            if isinstance(row, dict) and row.get("id") == entry_id:
                return idx
        raise NotFoundError(f"Entry not found: {entry_id}")

    @staticmethod
    def _entry(row: Dict[str, Any]) -> Entry:
        try:
            return Entry.model_validate(row)
        except ValidationError as exc:
            raise StorageError(f"Malformed entry row: {exc}") from exc

    # ---- entries ----
    def create_entry(
        self,
        filename: str,
        url: str,
        timestamp: Union[str, datetime, None] = None,
    ) -> Entry:
        entry = Entry(
            id=str(uuid4()),
            filename=filename,
            url=url,
            timestamp=_normalize_timestamp(timestamp),
            analysis="",
        )
        with self.entries.locked():
            rows = self._load_entries()
            # uuid4 collisions are not expected; guard the table invariant anyway.
            while any(r.get("id") == entry.id for r in rows if isinstance(r, dict)):
                entry.id = str(uuid4())
            rows.append(entry.model_dump())
            self.entries.replace(rows)
        logger.info("entry created id=%s file=%s", entry.id, filename)
        return entry

    def create_entry_from_upload(self, data: bytes, original_name: str) -> Entry:
        filename = self.images.save(data, original_name)
        try:
            return self.create_entry(filename, self.images.url_for(filename))
        except StorageError:
            self.images.delete(filename)
            raise

    def get_entry(self, entry_id: str) -> Entry:
        rows = self._load_entries()
        return self._entry(rows[self._find(rows, entry_id)])

    def list_entries(self) -> List[Entry]:
        return [self._entry(r) for r in self._load_entries() if isinstance(r, dict)]

    # ---- supplement / nutrition reads ----
    @staticmethod
    def _note(raw: Any) -> Optional[str]:
        return raw if isinstance(raw, str) else None

    @staticmethod
    def _snapshot(raw: Any, entry_id: str) -> Optional[NutritionSnapshot]:
        if raw is None:
            return None
        try:
            return NutritionSnapshot.model_validate(raw)
        except ValidationError as exc:
            raise StorageError(f"Malformed nutrition row for {entry_id}: {exc}") from exc

    def get_supplement(self, entry_id: str) -> Optional[str]:
        return self._note(self.supplements.load().get(entry_id))

    def get_nutrition(self, entry_id: str) -> Optional[NutritionSnapshot]:
        return self._snapshot(self.nutrition.load().get(entry_id), entry_id)

    def list_records(self) -> List[DiaryRecord]:
        notes = self.supplements.load()
        snapshots = self.nutrition.load()
        records: List[DiaryRecord] = []
        for entry in self.list_entries():
            records.append(
                DiaryRecord(
                    entry=entry,
                    note=self._note(notes.get(entry.id)),
                    nutrition=self._snapshot(snapshots.get(entry.id), entry.id),
                )
            )
        return records

    # ---- analysis ----
    def record_analysis(
        self,
        entry_id: str,
        analysis_text: str,
        supplement_note: str = "",
    ) -> Optional[NutritionSnapshot]:
        with self.entries.locked():
            rows = self._load_entries()
            idx = self._find(rows, entry_id)
            rows[idx]["analysis"] = analysis_text
            entry = self._entry(rows[idx])
            self.entries.replace(rows)

        with self.supplements.locked():
            notes = self.supplements.load()
            notes[entry_id] = supplement_note or ""
            self.supplements.replace(notes)

        fields = self.extractor.extract(analysis_text)
        if fields is None:
            logger.info("analysis recorded id=%s (no nutrition text)", entry_id)
            return None

        snapshot = NutritionSnapshot(timestamp=entry.timestamp, **fields.model_dump())
        with self.nutrition.locked():
            snapshots = self.nutrition.load()
            snapshots[entry_id] = snapshot.model_dump()
            self.nutrition.replace(snapshots)
        logger.info(
            "analysis recorded id=%s calories=%s missing=%s",
            entry_id,
            snapshot.calories,
            ",".join(snapshot.missing) or "-",
        )
        return snapshot

    def analyze_entry(
        self,
        entry_id: str,
        supplement_note: str,
        collaborator: Collaborator,
    ) -> AnalysisResult:
        """Run the collaborator on the entry's image, then record the result.

        Collaborator failures propagate before any table is touched.
        """
        entry = self.get_entry(entry_id)
        text = collaborator.analyze(entry.url, build_instruction(supplement_note))
        snapshot = self.record_analysis(entry_id, text, supplement_note)
        return AnalysisResult(
            entry=self.get_entry(entry_id),
            note=supplement_note or "",
            nutrition=snapshot,
        )

    # ---- deletion ----
    def delete_entry(self, entry_id: str) -> None:
        with self.entries.locked():
            rows = self._load_entries()
            removed = self._entry(rows.pop(self._find(rows, entry_id)))
            self.entries.replace(rows)

        self._discard(self.supplements, entry_id)
        self._discard(self.nutrition, entry_id)
        # Irreversible, so it runs only after every table mutation succeeded.
        self.images.delete(removed.filename)
        logger.info("entry deleted id=%s", entry_id)

    @staticmethod
    def _discard(table: Table, entry_id: str) -> bool:
        with table.locked():
            data = table.load()
            if entry_id not in data:
                return False
            del data[entry_id]
            table.replace(data)
            return True

    def purge_orphans(self) -> int:
        """Drop supplement/nutrition keys whose entry no longer exists."""
        live = {e.id for e in self.list_entries()}
        removed = 0
        for table in (self.supplements, self.nutrition):
            with table.locked():
                data = table.load()
                orphans = [k for k in data if k not in live]
                if not orphans:
                    continue
                for k in orphans:
                    del data[k]
                table.replace(data)
                removed += len(orphans)
                logger.warning("purged %d orphan rows from %s", len(orphans), table.name)
        return removed
