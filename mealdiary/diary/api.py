# -*- coding: utf-8 -*-
"""Diary: API endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse

from .errors import InvalidUploadError
from .models import AnalysisResult, AnalyzeRequest, Entry, RecordsResponse
from .store import RecordStore
from .vision import Collaborator, VisionClient

router = APIRouter(tags=["Diary"])

_store: Optional[RecordStore] = None


def get_store() -> RecordStore:
    global _store
    if _store is None:
        _store = RecordStore.from_settings().open()
    return _store


def get_collaborator() -> Collaborator:
    return VisionClient()


@router.get("/", response_class=PlainTextResponse, summary="Health check")
def index() -> str:
    return "✅ 圖片上傳伺服器運作中！"


@router.post("/upload", response_model=Entry, summary="Upload a meal photo")
def upload(
    image: Optional[UploadFile] = File(default=None),
    store: RecordStore = Depends(get_store),
):
    if image is None:
        raise InvalidUploadError("請選擇圖片檔案上傳")
    if image.content_type and not image.content_type.startswith("image/"):
        raise InvalidUploadError(f"Not an image: {image.content_type}")
    # One byte past the limit is enough for the size check to reject it.
    data = image.file.read(store.images.max_bytes + 1)
    return store.create_entry_from_upload(data, image.filename or "")


@router.get("/records", response_model=RecordsResponse, summary="List diary records")
def list_records(store: RecordStore = Depends(get_store)):
    records = store.list_records()
    return RecordsResponse(count=len(records), records=records)


@router.post(
    "/records/{entry_id}/analyze",
    response_model=AnalysisResult,
    summary="Analyze a meal photo and store the nutrition snapshot",
)
def analyze(
    entry_id: str,
    request: Optional[AnalyzeRequest] = Body(default=None),
    store: RecordStore = Depends(get_store),
    collaborator: Collaborator = Depends(get_collaborator),
):
    note = request.note if request is not None else ""
    return store.analyze_entry(entry_id, note, collaborator)


@router.delete("/records/{entry_id}", summary="Delete a record and its photo")
def delete_record(entry_id: str, store: RecordStore = Depends(get_store)) -> dict:
    store.delete_entry(entry_id)
    return {"id": entry_id, "deleted": True}
