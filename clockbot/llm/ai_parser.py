from __future__ import annotations

import json
import re
from datetime import date
from typing import Any, Optional

import httpx
from loguru import logger

from clockbot.config import Settings


def _extract_json_object(text: str) -> Optional[dict]:
    if not text:
        return None

    cleaned = re.sub(r"```(?:json)?", "", text, flags=re.IGNORECASE).replace("```", "").strip()

    try:
        obj = json.loads(cleaned)
        if isinstance(obj, dict):
            return obj
    except ValueError:
        pass

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None

    try:
        obj = json.loads(cleaned[start : end + 1])
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def build_ai_prompt(user_text: str, today: date, timezone_name: str) -> list[dict[str, str]]:
    system = " ".join(
        [
            "Extract Clockify command fields from user text.",
            "Input can be Russian/English/translit and free-form speech.",
            "Return ONLY JSON with fields:",
            "projectQuery (string), taskQuery (string), startTimeHHmm (HH:MM 24h),",
            "startDate (YYYY-MM-DD), durationMinutes (integer).",
            "projectQuery and taskQuery must be real names from the phrase,",
            "never generic words like project/task/проект/задача/работа.",
            f"Interpret relative date words by {timezone_name} date.",
            f"Today date in {timezone_name} is {today.isoformat()}.",
        ]
    )
    return [{"role": "system", "content": system}, {"role": "user", "content": user_text}]


class AiCommandParser:
    """Thin OpenAI-compatible client: text in, raw field dict (or None) out."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 45.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key or ""
        self.model = model
        self.timeout = float(timeout)
        self.transport = transport
        self.enabled = bool(self.base_url and self.api_key)

    @classmethod
    def from_settings(cls, cfg: Settings) -> "AiCommandParser":
        return cls(
            base_url=cfg.ai_parser_url,
            api_key=cfg.ai_parser_api_key,
            model=cfg.ai_parser_model,
            timeout=cfg.ai_parser_timeout_seconds,
        )

    async def chat_completions(self, messages: list[dict[str, str]]) -> Optional[str]:
        if not self.enabled:
            return None

        url = f"{self.base_url}/chat/completions"
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": 0,
            "response_format": {"type": "json_object"},
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
                return data["choices"][0]["message"]["content"]
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("ai_parser: request failed: {}", exc)
            return None

    async def extract(self, text: str, today: date, timezone_name: str) -> Optional[dict]:
        content = await self.chat_completions(build_ai_prompt(text, today, timezone_name))
        if not content:
            return None
        obj = _extract_json_object(content)
        if obj is None:
            logger.warning("ai_parser: reply is not a JSON object: {!r}", content[:200])
        return obj
