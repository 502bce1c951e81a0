# config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or ["*"]


@dataclass
class Settings:
    # Finnhub
    finnhub_api_key: str = ""
    finnhub_timeout_s: float = 5.0

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    openai_timeout_s: float = 60.0

    # Quote cache
    quote_ttl_sec: float = 60.0

    # HTTP
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            finnhub_api_key=os.getenv("FINNHUB_API_KEY", ""),
            finnhub_timeout_s=float(os.getenv("FINNHUB_TIMEOUT_S", "5")),

            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-3.5-turbo",
            openai_timeout_s=float(os.getenv("OPENAI_TIMEOUT_S", "60")),

            quote_ttl_sec=float(os.getenv("QUOTE_TTL_SEC", "60")),

            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
