# -*- coding: utf-8 -*-
"""Diary: uploaded meal photos on disk."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from uuid import uuid4

from .errors import InvalidUploadError, StorageError

logger = logging.getLogger(__name__)

_ALLOWED_SUFFIXES = {".jpg", ".jpeg", ".png", ".heic", ".webp", ".gif"}


def _safe_suffix(filename: str) -> str:
    suffix = Path(filename or "").suffix.lower()
    if not suffix:
        return ""
    # Keep a conservative suffix to avoid weird filesystem behaviors.
    if len(suffix) > 12 or not re.fullmatch(r"\.[a-z0-9]+", suffix):
        return ""
    return suffix


class ImageStore:
    def __init__(self, root: Path, *, public_base_url: str, max_bytes: int) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def _path_for(self, filename: str) -> Path:
        # Only ever touch files directly inside the upload directory.
        return self.root / Path(filename).name

    def url_for(self, filename: str) -> str:
        return f"{self.public_base_url}/uploads/{Path(filename).name}"

    def save(self, data: bytes, original_name: str) -> str:
        if not data:
            raise InvalidUploadError("請選擇圖片檔案上傳")
        if len(data) > self.max_bytes:
            raise InvalidUploadError(f"Image too large: {len(data)} bytes > {self.max_bytes}")
        suffix = _safe_suffix(original_name)
        if suffix and suffix not in _ALLOWED_SUFFIXES:
            raise InvalidUploadError(f"Unsupported image type: {suffix}")

        filename = f"{uuid4().hex}{suffix}"
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            self._path_for(filename).write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to store image: {exc}") from exc
        return filename

    def exists(self, filename: str) -> bool:
        return self._path_for(filename).exists()

    def delete(self, filename: str) -> bool:
        """Remove the binary; a missing file is not an error. Returns True if removed."""
        path = self._path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("image already gone: %s", path.name)
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete image {path.name}: {exc}") from exc
        return True
