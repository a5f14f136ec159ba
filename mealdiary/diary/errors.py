# -*- coding: utf-8 -*-
"""Diary: error kinds with machine-readable codes."""

from __future__ import annotations


class DiaryError(Exception):
    code = "diary_error"
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "detail": self.detail}


class NotFoundError(DiaryError):
    """The operation referenced an entry id that is not live."""

    code = "not_found"
    status_code = 404


class StorageError(DiaryError):
    """A table could not be read or written (I/O or serialization)."""

    code = "storage_error"
    status_code = 500


class CollaboratorError(DiaryError):
    """The vision/text-generation call failed. Callers may retry."""

    code = "collaborator_error"
    status_code = 502


class InvalidUploadError(DiaryError):
    code = "invalid_upload"
    status_code = 400
