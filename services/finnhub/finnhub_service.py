# services/finnhub/finnhub_service.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional, TypedDict

import finnhub
import httpx

from config.settings import get_settings
from utils.common_helpers import safe_float, safe_json

logger = logging.getLogger(__name__)


class FinnhubServiceError(Exception):
    """Domain-level error for the Finnhub service."""


@dataclass(frozen=True)
class Quote:
    price: float
    change: Optional[float]
    percent: Optional[float]
    previous_close: Optional[float]
    fetched_at: float

    @classmethod
    def from_finnhub(cls, data: Dict[str, Any], *, fetched_at: float) -> Optional["Quote"]:
        """
        Build a Quote from a raw /quote payload
        ({c: current, d: change, dp: percent change, pc: previous close}).
        Returns None when there is no usable current price; Finnhub answers
        unknown symbols with c == 0.
        """
        price = safe_float(data.get("c")) if isinstance(data, dict) else None
        if not price:
            return None
        return cls(
            price=price,
            change=safe_float(data.get("d")),
            percent=safe_float(data.get("dp")),
            previous_close=safe_float(data.get("pc")),
            fetched_at=fetched_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": self.price,
            "change": self.change,
            "percent": self.percent,
            "previousClose": self.previous_close,
            "fetchedAt": self.fetched_at,
        }


class NewsItem(TypedDict):
    title: str


def _normalize_news(raw: Dict[str, Any]) -> NewsItem:
    # general_news schema: {headline, url, summary, datetime, source, image, ...}
    return {"title": (raw.get("headline") or "").strip()}


class FinnhubService:
    """
    Async access to the three Finnhub endpoints the tracker needs:
    quote, symbol search and general news.

    Every failure (missing key, transport error, non-2xx, bad payload)
    surfaces as FinnhubServiceError; callers decide what that means.
    """

    BASE_URL = "https://finnhub.io/api/v1"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 5.0):
        self.api_key = api_key or ""
        self.timeout = timeout

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as c:
            yield c

    def _require_key(self) -> str:
        if not self.api_key:
            raise FinnhubServiceError("Missing FINNHUB_API_KEY")
        return self.api_key

    def _auth_params(self, **params: Any) -> Dict[str, Any]:
        return {**params, "token": self._require_key()}

    async def _get(
        self,
        path: str,
        params: Dict[str, Any],
        client: Optional[httpx.AsyncClient] = None,
    ) -> Any:
        auth = self._auth_params(**params)
        async with self._client(client) as c:
            try:
                r = await c.get(f"{self.BASE_URL}{path}", params=auth)
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise FinnhubServiceError(
                    f"Finnhub {path} failed: {e.response.status_code}"
                ) from e
            except httpx.HTTPError as e:
                raise FinnhubServiceError(f"Finnhub {path} unreachable: {e}") from e
            return safe_json(r)

    # -----------------------
    # Quote
    # -----------------------

    async def fetch_quote(
        self,
        symbol: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> Dict[str, Any]:
        """Raw /quote payload for ONE symbol."""
        sym = (symbol or "").strip().upper()
        if not sym:
            raise FinnhubServiceError("Missing symbol")
        data = await self._get("/quote", {"symbol": sym}, client)
        if not isinstance(data, dict):
            raise FinnhubServiceError(f"Unexpected quote payload for {sym}")
        return data

    # -----------------------
    # Search
    # -----------------------

    async def search_symbols(
        self,
        query: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> List[Dict[str, Any]]:
        """Raw /search results ({symbol, description, displaySymbol, type})."""
        q = (query or "").strip()
        if not q:
            return []
        data = await self._get("/search", {"q": q}, client)
        if not isinstance(data, dict):
            raise FinnhubServiceError("Unexpected search payload")
        results = data.get("result") or []
        if not isinstance(results, list):
            raise FinnhubServiceError("Unexpected search result list")
        return [item for item in results if isinstance(item, dict)]

    # -----------------------
    # News (SDK, sync -> thread)
    # -----------------------

    def _fetch_general_news_blocking(self, category: str) -> List[NewsItem]:
        client = finnhub.Client(api_key=self._require_key())
        data = client.general_news(category or "general", min_id=0) or []
        return [_normalize_news(d) for d in data if isinstance(d, dict) and d.get("headline")]

    async def fetch_general_news(
        self,
        category: str = "general",
        limit: int = 5,
    ) -> List[NewsItem]:
        """Latest general market news in provider order, capped at `limit`."""
        try:
            items = await asyncio.to_thread(self._fetch_general_news_blocking, category)
        except FinnhubServiceError:
            raise
        except Exception as e:
            raise FinnhubServiceError(f"Finnhub general_news failed: {e}") from e
        return items[:limit] if limit else items


@lru_cache(maxsize=1)
def get_finnhub_service() -> FinnhubService:
    settings = get_settings()
    return FinnhubService(api_key=settings.finnhub_api_key, timeout=settings.finnhub_timeout_s)
