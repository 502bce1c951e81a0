# routers/ai_routes.py
import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from schemas.ai import AdviceOut, AdviceRequest, SummaryOut, SummaryRequest
from services.ai.advisor_service import (
    generate_advice,
    generate_recommendations,
    generate_summary,
)
from services.ai.llm_service import LLMService, get_llm_service
from services.errors import PortfolioTrackerError
from services.finnhub.finnhub_service import FinnhubService, get_finnhub_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/advise", response_model=AdviceOut)
async def advise(req: AdviceRequest, llm: LLMService = Depends(get_llm_service)):
    try:
        advice = await generate_advice(
            llm,
            ticker=req.ticker,
            quantity=req.quantity,
            buy_price=req.buy_price,
            current_price=req.current_price,
        )
    except PortfolioTrackerError as e:
        logger.error("AI advice failed ticker=%s: %s", req.ticker, e)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"advice": advice}


@router.get("/recommendations")
async def recommendations(
    llm: LLMService = Depends(get_llm_service),
    finnhub: FinnhubService = Depends(get_finnhub_service),
) -> Any:
    try:
        return await generate_recommendations(llm, finnhub)
    except PortfolioTrackerError as e:
        logger.error("AI stock rec failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("/summary", response_model=SummaryOut)
async def summary(req: SummaryRequest, llm: LLMService = Depends(get_llm_service)):
    try:
        text = await generate_summary(llm, req.portfolio)
    except PortfolioTrackerError as e:
        if e.status_code >= 500:
            logger.error("AI summary failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return {"summary": text}
