from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the meal diary backend."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        # ---- Tables + uploads ----
        self.data_root: Path = Path(
            os.environ.get("DIARY_DATA_ROOT") or data_root_default
        ).expanduser()
        self.upload_dir: Path = Path(
            os.environ.get("DIARY_UPLOAD_DIR") or (self.data_root / "uploads")
        ).expanduser()
        self.entries_file: Path = self.data_root / "entries.json"
        self.supplements_file: Path = self.data_root / "supplements.json"
        self.nutrition_file: Path = self.data_root / "nutrition.json"
        # Entry URLs must be reachable by the vision service, so in deployments this is the
        # public origin of the server (e.g. https://diary.example.com).
        self.public_base_url: str = (
            os.environ.get("DIARY_PUBLIC_BASE_URL") or "http://127.0.0.1:8000"
        ).rstrip("/")
        self.max_upload_mb: int = int(os.environ.get("DIARY_MAX_UPLOAD_MB") or "10")

        # ---- Vision collaborator (OpenAI-compatible chat completions) ----
        self.vision_base_url: str = (
            os.environ.get("DIARY_VISION_BASE_URL")
            or os.environ.get("OPENAI_BASE_URL")
            or "https://api.openai.com/v1"
        )
        self.vision_api_key: str | None = os.environ.get("DIARY_VISION_API_KEY") or os.environ.get(
            "OPENAI_API_KEY"
        )
        self.vision_model: str = os.environ.get("DIARY_VISION_MODEL") or "gpt-4o"
        self.vision_timeout: float = float(os.environ.get("DIARY_VISION_TIMEOUT") or "60")
        self.vision_max_tokens: int = int(os.environ.get("DIARY_VISION_MAX_TOKENS") or "1024")

        self.host: str = os.environ.get("DIARY_HOST") or os.environ.get("HOST") or "127.0.0.1"
        self.port_raw: str = os.environ.get("DIARY_PORT") or os.environ.get("PORT") or "8000"

        cors = os.environ.get("DIARY_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()
