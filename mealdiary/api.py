# -*- coding: utf-8 -*-
"""
Meal diary API

餐點照片上傳、營養分析與營養趨勢統計。
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .config import settings
from .diary.api import router as diary_router
from .diary.errors import DiaryError
from .nutrition.api import router as nutrition_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Meal Diary",
    description="餐點照片、營養分析與趨勢",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DiaryError)
async def _diary_error_handler(request: Request, exc: DiaryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


settings.upload_dir.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir)), name="uploads")

app.include_router(diary_router)
app.include_router(nutrition_router)


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        port = int(settings.port_raw)
    except ValueError:
        port = 8000

    uvicorn.run("mealdiary.api:app", host=settings.host, port=port, reload=False)
