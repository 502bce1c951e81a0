# routers/market_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from schemas.market import QuoteOut, SuggestionOut
from services.cache.quote_cache import QuoteCache, get_quote_cache
from services.errors import PortfolioTrackerError
from services.finnhub.finnhub_service import FinnhubService, get_finnhub_service
from services.suggestion_service import suggest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/price/{ticker}", response_model=QuoteOut)
async def get_price(
    ticker: str,
    quote_cache: QuoteCache = Depends(get_quote_cache),
):
    try:
        quote = await quote_cache.get_quote(ticker)
    except PortfolioTrackerError as e:
        logger.error("quote failed ticker=%s: %s", ticker.upper(), e)
        raise HTTPException(status_code=e.status_code, detail="Failed to fetch price")
    return quote.to_dict()


@router.get("/suggest/{query}", response_model=List[SuggestionOut])
async def get_suggestions(
    query: str,
    finnhub: FinnhubService = Depends(get_finnhub_service),
):
    try:
        results = await suggest(query, finnhub)
    except PortfolioTrackerError as e:
        logger.error("suggest failed query=%s: %s", query.upper(), e)
        raise HTTPException(status_code=e.status_code, detail="Failed to fetch suggestions")
    return [s.to_dict() for s in results]
