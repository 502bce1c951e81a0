# services/ai/llm_service.py
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from config.settings import get_settings

logger = logging.getLogger(__name__)


class LLMServiceError(Exception):
    """Raised when the language-model provider fails or answers with nothing."""


@dataclass
class LLMConfig:
    api_key: str = ""
    model: str = "gpt-3.5-turbo"
    timeout_s: float = 60.0

    @staticmethod
    def from_settings() -> "LLMConfig":
        s = get_settings()
        return LLMConfig(
            api_key=s.openai_api_key,
            model=s.openai_model,
            timeout_s=s.openai_timeout_s,
        )


class LLMService:
    """
    Thin wrapper around OpenAI chat completions: one user message in, the
    first choice's text out. The SDK client is sync, so calls run in a
    worker thread.
    """

    def __init__(self, cfg: Optional[LLMConfig] = None, client: Optional[OpenAI] = None):
        self.cfg = cfg or LLMConfig.from_settings()
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            if not self.cfg.api_key:
                raise LLMServiceError("OPENAI_API_KEY is not set")
            self._client = OpenAI(api_key=self.cfg.api_key, timeout=self.cfg.timeout_s)
        return self._client

    def _complete_blocking(self, prompt: str) -> str:
        client = self._get_client()
        completion = client.chat.completions.create(
            model=self.cfg.model,
            messages=[{"role": "user", "content": prompt}],
        )
        if not completion.choices:
            raise LLMServiceError("Empty completion (no choices)")
        content = completion.choices[0].message.content
        if not content:
            raise LLMServiceError("Empty completion (no content)")
        return content

    async def complete(self, prompt: str) -> str:
        try:
            return await asyncio.to_thread(self._complete_blocking, prompt)
        except OpenAIError as e:
            raise LLMServiceError(f"OpenAI request failed: {e}") from e

    @staticmethod
    def strip_code_fences(text: str) -> str:
        t = (text or "").strip()
        if t.startswith("```"):
            lines = t.split("\n")
            # drop opening fence (may carry a language tag)
            lines = lines[1:]
            if lines and lines[-1].strip().startswith("```"):
                lines = lines[:-1]
            t = "\n".join(lines).strip()
        return t

    @staticmethod
    def _reject_constant(name: str) -> Any:
        raise ValueError(f"Non-standard JSON constant: {name}")

    def parse_json(self, text: str) -> Any:
        """Strict JSON: NaN, Infinity and -Infinity raise ValueError."""
        return json.loads(self.strip_code_fences(text), parse_constant=self._reject_constant)


_llm_singleton: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    global _llm_singleton
    if _llm_singleton is None:
        _llm_singleton = LLMService()
    return _llm_singleton
