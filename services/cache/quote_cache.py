# services/cache/quote_cache.py
"""
Process-wide, in-memory quote cache.

Entries are keyed by uppercase ticker and live for a fixed TTL. A stale or
missing entry triggers one provider fetch for that call; concurrent misses
for the same ticker each fetch (no request coalescing) and the last write
wins. Entries are immutable and replaced wholesale, so a reader never sees a
half-written one.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from config.settings import get_settings
from services.errors import QuoteUnavailable, ValidationError
from services.finnhub.finnhub_service import (
    FinnhubServiceError,
    Quote,
    get_finnhub_service,
)

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_TTL_SEC = 60.0


class QuoteSource(Protocol):
    async def fetch_quote(self, symbol: str) -> Dict[str, Any]:
        """Raw provider quote payload."""


@dataclass(frozen=True)
class CacheEntry:
    timestamp: float
    quote: Quote


def _norm_ticker(ticker: str) -> str:
    return (ticker or "").strip().upper()


class QuoteCache:
    def __init__(
        self,
        source: QuoteSource,
        ttl_seconds: float = DEFAULT_QUOTE_TTL_SEC,
        clock: Callable[[], float] = time.time,
    ):
        self.source = source
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _fresh(self, key: str, now: float) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if now - entry.timestamp < self.ttl_seconds:
            return entry
        return None

    def peek(self, ticker: str) -> Optional[Quote]:
        """Fresh cached quote or None. Never calls the provider."""
        entry = self._fresh(_norm_ticker(ticker), self._clock())
        return entry.quote if entry else None

    def invalidate(self, ticker: Optional[str] = None) -> None:
        if ticker is None:
            self._entries.clear()
            return
        self._entries.pop(_norm_ticker(ticker), None)

    async def get_quote(self, ticker: str) -> Quote:
        key = _norm_ticker(ticker)
        if not key:
            raise ValidationError("Missing ticker")

        entry = self._fresh(key, self._clock())
        if entry is not None:
            return entry.quote

        try:
            data = await self.source.fetch_quote(key)
        except FinnhubServiceError as e:
            raise QuoteUnavailable(key, str(e)) from e

        now = self._clock()
        quote = Quote.from_finnhub(data, fetched_at=now)
        if quote is None:
            raise QuoteUnavailable(key)

        self._entries[key] = CacheEntry(timestamp=now, quote=quote)
        logger.debug("quote cached ticker=%s price=%s", key, quote.price)
        return quote


_quote_cache: Optional[QuoteCache] = None


def get_quote_cache() -> QuoteCache:
    global _quote_cache
    if _quote_cache is None:
        _quote_cache = QuoteCache(
            get_finnhub_service(),
            ttl_seconds=get_settings().quote_ttl_sec,
        )
    return _quote_cache
