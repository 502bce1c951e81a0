# routers/portfolio_routes.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models.position import PositionOut, to_dto
from schemas.portfolio import EnrichedPortfolioOut, PositionCreate
from services.cache.quote_cache import QuoteCache, get_quote_cache
from services.errors import PortfolioTrackerError
from services.position_service import (
    create_position,
    delete_position,
    get_enriched_portfolio,
    list_positions,
    parse_position_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[PositionOut])
def get_portfolio(db: Session = Depends(get_db)):
    try:
        return [to_dto(p) for p in list_positions(db)]
    except PortfolioTrackerError as e:
        logger.exception("portfolio list failed")
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.post("", response_model=PositionOut, status_code=201)
def add_position(body: PositionCreate, db: Session = Depends(get_db)):
    try:
        return to_dto(create_position(db, body.ticker, body.quantity, body.buy_price))
    except PortfolioTrackerError as e:
        logger.warning("portfolio create failed ticker=%s: %s", body.ticker, e)
        # Create failures are reported as a bad request, store errors included.
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/enriched", response_model=EnrichedPortfolioOut)
async def get_portfolio_enriched(
    db: Session = Depends(get_db),
    quote_cache: QuoteCache = Depends(get_quote_cache),
):
    try:
        return await get_enriched_portfolio(db, quote_cache)
    except PortfolioTrackerError as e:
        logger.exception("enriched portfolio failed")
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.delete("/{position_id}", status_code=204)
def remove_position(position_id: str, db: Session = Depends(get_db)):
    try:
        deleted = delete_position(db, parse_position_id(position_id))
    except PortfolioTrackerError as e:
        logger.warning("portfolio delete failed id=%s: %s", position_id, e)
        raise HTTPException(status_code=400, detail=str(e))
    if not deleted:
        logger.info("portfolio delete id=%s matched nothing", position_id)
    return Response(status_code=204)
