# services/suggestion_service.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Protocol

from services.errors import SuggestionSourceError
from services.finnhub.finnhub_service import FinnhubServiceError

logger = logging.getLogger(__name__)

# Plain equity tickers only: drops ADR suffixes, share classes, foreign listings.
SYMBOL_PATTERN = re.compile(r"[A-Z]{1,6}")
MAX_SUGGESTIONS = 8


class SymbolSearchSource(Protocol):
    async def search_symbols(self, query: str) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class Suggestion:
    symbol: str
    name: str
    score: int

    def to_dict(self) -> Dict[str, str]:
        return {"symbol": self.symbol, "name": self.name}


def score_symbol(symbol: str, query: str) -> int:
    if symbol == query:
        return 2
    if symbol.startswith(query):
        return 1
    return 0


def rank_suggestions(
    results: Iterable[Dict[str, Any]],
    query: str,
    limit: int = MAX_SUGGESTIONS,
) -> List[Suggestion]:
    q = (query or "").strip().upper()
    candidates: List[Suggestion] = []
    for r in results:
        symbol = r.get("symbol") or ""
        name = r.get("description") or ""
        if not isinstance(symbol, str) or not isinstance(name, str):
            continue
        if not symbol or not name:
            continue
        if not SYMBOL_PATTERN.fullmatch(symbol):
            continue
        candidates.append(Suggestion(symbol=symbol, name=name, score=score_symbol(symbol, q)))

    candidates.sort(key=lambda s: (-s.score, s.symbol))
    return candidates[:limit]


async def suggest(query: str, source: SymbolSearchSource) -> List[Suggestion]:
    q = (query or "").strip().upper()
    if not q:
        return []
    try:
        results = await source.search_symbols(q)
    except FinnhubServiceError as e:
        raise SuggestionSourceError(f"Symbol search failed for {q}: {e}") from e
    return rank_suggestions(results, q)
