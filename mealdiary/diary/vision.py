# -*- coding: utf-8 -*-
"""Diary: meal photo analysis via an OpenAI-compatible chat completions API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import httpx

from ..config import settings
from .errors import CollaboratorError

logger = logging.getLogger(__name__)


class Collaborator(Protocol):
    def analyze(self, image_url: str, instruction: str) -> str:
        ...


@dataclass(frozen=True)
class VisionSettings:
    base_url: str
    api_key: Optional[str]
    model: str
    timeout: float
    max_tokens: int


def resolve_vision_settings() -> VisionSettings:
    return VisionSettings(
        base_url=settings.vision_base_url.rstrip("/"),
        api_key=settings.vision_api_key,
        model=settings.vision_model,
        timeout=settings.vision_timeout,
        max_tokens=settings.vision_max_tokens,
    )


# The summary line comes first so the extractor's first match is the meal total.
_BASE_PROMPT = (
    "你是一位專業營養師，請根據這張圖片回覆下列項目：\n\n"
    "1. 營養總結（請用這個格式寫成一行）：熱量：X大卡，碳水化合物：X公克，蛋白質：X公克，脂肪：X公克\n"
    "2. 食物項目\n"
    "3. 每項估計熱量（卡路里）\n"
    "4. 餐點健康程度分析\n"
    "5. 飲食建議（如增加蔬菜、降低油脂）\n"
    "請用繁體中文回答。"
)


def build_instruction(note: str | None = None) -> str:
    note = (note or "").strip()
    if not note:
        return _BASE_PROMPT
    return f"{_BASE_PROMPT}\n\n使用者補充說明：{note}"


def _extract_text(data: object) -> str:
    """Pull assistant text out of a chat completions payload."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list):
        return ""
    out: list[str] = []
    for choice in choices:
        if not isinstance(choice, dict):
            continue
        msg = choice.get("message")
        if not isinstance(msg, dict):
            continue
        content = msg.get("content")
        if isinstance(content, str) and content:
            out.append(content)
        elif isinstance(content, list):
            # Some providers return content as typed parts.
            for part in content:
                if isinstance(part, dict) and isinstance(part.get("text"), str):
                    out.append(part["text"])
    return "".join(out).strip()


def _error_message(resp: httpx.Response) -> str:
    raw = (resp.text or "").strip()
    try:
        parsed = json.loads(raw) if raw else None
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        err = parsed.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
        for key in ("message", "detail"):
            if isinstance(parsed.get(key), str):
                return parsed[key]
    return raw.replace("\n", " ")[:200] or resp.reason_phrase


class VisionClient:
    """Sends one image URL plus an instruction, returns the model's prose."""

    def __init__(
        self,
        cfg: VisionSettings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.cfg = cfg or resolve_vision_settings()
        self._transport = transport

    @property
    def url(self) -> str:
        base = self.cfg.base_url.rstrip("/")
        if base.endswith("/chat/completions"):
            return base
        return f"{base}/chat/completions"

    def _payload(self, image_url: str, instruction: str) -> Dict[str, Any]:
        return {
            "model": self.cfg.model,
            "max_tokens": self.cfg.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instruction},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
        }

    def analyze(self, image_url: str, instruction: str) -> str:
        if not self.cfg.api_key:
            raise CollaboratorError("Vision API key not set (DIARY_VISION_API_KEY / OPENAI_API_KEY)")

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.cfg.api_key}",
        }
        logger.info("vision request model=%s image=%s", self.cfg.model, image_url)
        try:
            with httpx.Client(
                timeout=self.cfg.timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = client.post(self.url, headers=headers, json=self._payload(image_url, instruction))
        except httpx.TimeoutException as exc:
            raise CollaboratorError(f"Vision API timed out after {self.cfg.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise CollaboratorError(f"Vision API unreachable: {exc}") from exc

        if resp.status_code >= 400:
            raise CollaboratorError(f"Vision API error ({resp.status_code}): {_error_message(resp)}")
        try:
            data = resp.json()
        except ValueError as exc:
            snippet = (resp.text or "").replace("\n", " ").strip()[:200]
            raise CollaboratorError(f"Vision API returned non-JSON response: {snippet}") from exc

        text = _extract_text(data)
        if not text:
            raise CollaboratorError("Vision API returned an empty analysis")
        return text
