# services/ai/advisor_service.py
"""
Language-model commentary: per-position advice, news-driven ticker picks,
and a whole-portfolio summary. Each flow builds one prompt and makes one
completion call; nothing is persisted, so a failure leaves no state behind.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional, Protocol, Sequence

from services.ai.llm_service import LLMServiceError
from services.ai.prompts import (
    build_advice_prompt,
    build_recommendations_prompt,
    build_summary_prompt,
    format_summary_line,
)
from services.errors import (
    AdviceGenerationError,
    RecommendationError,
    SummaryGenerationError,
    ValidationError,
)
from services.finnhub.finnhub_service import FinnhubServiceError, NewsItem

logger = logging.getLogger(__name__)

HEADLINE_COUNT = 5


class CompletionSource(Protocol):
    async def complete(self, prompt: str) -> str:
        ...

    def parse_json(self, text: str) -> Any:
        ...


class NewsSource(Protocol):
    async def fetch_general_news(self, category: str = "general", limit: int = 5) -> List[NewsItem]:
        ...


class PortfolioLineLike(Protocol):
    ticker: str
    quantity: float
    buy_price: float
    current_price: float


async def generate_advice(
    llm: CompletionSource,
    *,
    ticker: str,
    quantity: float,
    buy_price: float,
    current_price: float,
) -> str:
    prompt = build_advice_prompt(ticker.strip().upper(), quantity, buy_price, current_price)
    try:
        return await llm.complete(prompt)
    except LLMServiceError as e:
        raise AdviceGenerationError(f"Failed to get AI advice: {e}") from e


async def generate_recommendations(
    llm: CompletionSource,
    news: NewsSource,
    *,
    headline_count: int = HEADLINE_COUNT,
) -> Any:
    try:
        items = await news.fetch_general_news("general", limit=headline_count)
    except FinnhubServiceError as e:
        raise RecommendationError(f"Could not fetch market headlines: {e}") from e

    headlines = [it.get("title", "") for it in items[:headline_count] if it.get("title")]
    prompt = build_recommendations_prompt(headlines)

    try:
        raw = await llm.complete(prompt)
    except LLMServiceError as e:
        raise RecommendationError(f"Could not fetch AI recommendations: {e}") from e

    try:
        return llm.parse_json(raw)
    except ValueError as e:
        logger.warning("recommendations response is not JSON (%d chars)", len(raw or ""))
        raise RecommendationError("AI recommendations were not valid JSON") from e


async def generate_summary(
    llm: CompletionSource,
    portfolio: Optional[Sequence[PortfolioLineLike]],
) -> str:
    if not portfolio:
        raise ValidationError("No portfolio data provided")

    lines = [
        format_summary_line(p.ticker.strip().upper(), p.quantity, p.buy_price, p.current_price)
        for p in portfolio
    ]
    try:
        return await llm.complete(build_summary_prompt(lines))
    except LLMServiceError as e:
        raise SummaryGenerationError(f"Failed to generate AI summary: {e}") from e
