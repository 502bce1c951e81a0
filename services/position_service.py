# services/position_service.py
from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.position import Position
from services.cache.quote_cache import QuoteCache
from services.errors import PortfolioTrackerError, StoreUnavailable, ValidationError
from services.finnhub.finnhub_service import Quote
from utils.common_helpers import pct_change

logger = logging.getLogger(__name__)


def _require_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    f = float(value)
    if math.isnan(f) or math.isinf(f):
        raise ValidationError(f"{name} must be a finite number")
    return f


def validate_position_input(ticker: Any, quantity: Any, buy_price: Any) -> tuple[str, float, float]:
    if not isinstance(ticker, str) or not ticker.strip():
        raise ValidationError("ticker is required")
    sym = ticker.strip().upper()
    if len(sym) > 16:
        raise ValidationError("ticker is too long")

    qty = _require_number("quantity", quantity)
    if qty <= 0:
        raise ValidationError("quantity must be positive")

    price = _require_number("buyPrice", buy_price)
    if price < 0:
        raise ValidationError("buyPrice must not be negative")

    return sym, qty, price


def parse_position_id(raw: str) -> int:
    try:
        position_id = int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"Invalid position id: {raw!r}") from None
    if position_id <= 0:
        raise ValidationError(f"Invalid position id: {raw!r}")
    return position_id


# -----------------------
# Store adapter
# -----------------------

def list_positions(db: Session) -> List[Position]:
    try:
        return db.query(Position).all()
    except SQLAlchemyError as e:
        raise StoreUnavailable("Failed to fetch portfolio") from e


def create_position(db: Session, ticker: Any, quantity: Any, buy_price: Any) -> Position:
    sym, qty, price = validate_position_input(ticker, quantity, buy_price)
    position = Position(ticker=sym, quantity=qty, buy_price=price)
    try:
        db.add(position)
        db.commit()
        db.refresh(position)
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailable("Failed to add stock") from e
    logger.info("position created id=%s ticker=%s", position.id, position.ticker)
    return position


def delete_position(db: Session, position_id: int) -> bool:
    """Delete by identity. Returns False (not an error) when nothing matched."""
    try:
        position = db.get(Position, position_id)
        if position is None:
            return False
        db.delete(position)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreUnavailable("Failed to delete stock") from e
    logger.info("position deleted id=%s", position_id)
    return True


# -----------------------
# Enrichment
# -----------------------

def _round(x: Optional[float], d: int = 4) -> Optional[float]:
    return None if x is None else round(float(x), d)


async def _quotes_for(tickers: List[str], quote_cache: QuoteCache) -> Dict[str, Optional[Quote]]:
    async def one(sym: str) -> Optional[Quote]:
        try:
            return await quote_cache.get_quote(sym)
        except PortfolioTrackerError as e:
            logger.warning("enrichment quote failed ticker=%s: %s", sym, e)
            return None

    results = await asyncio.gather(*[one(t) for t in tickers])
    return dict(zip(tickers, results))


def _enrich_row(p: Position, quote: Optional[Quote]) -> Dict[str, Any]:
    cost = p.quantity * p.buy_price
    row: Dict[str, Any] = {
        "id": p.id,
        "ticker": p.ticker,
        "quantity": p.quantity,
        "buy_price": p.buy_price,
        "date_added": p.date_added,
        "cost": _round(cost),
        "current_price": None,
        "previous_close": None,
        "price_status": "unavailable",
        "value": None,
        "gain": None,
        "gain_pct": None,
    }
    if quote is not None:
        value = p.quantity * quote.price
        gp = pct_change(quote.price, p.buy_price)
        row.update(
            current_price=quote.price,
            previous_close=quote.previous_close,
            price_status="ok",
            value=_round(value),
            gain=_round(value - cost),
            gain_pct=_round(gp),
        )
    return row


async def get_enriched_portfolio(db: Session, quote_cache: QuoteCache) -> Dict[str, Any]:
    """
    Every position joined with its current quote, per-ticker aggregates and
    portfolio totals. A ticker whose quote fails stays in the output unpriced.
    """
    positions = list_positions(db)
    tickers = sorted({p.ticker for p in positions})
    quotes = await _quotes_for(tickers, quote_cache)

    rows = [_enrich_row(p, quotes.get(p.ticker)) for p in positions]

    holdings: Dict[str, Dict[str, Any]] = {}
    for p in positions:
        h = holdings.setdefault(
            p.ticker,
            {"ticker": p.ticker, "quantity": 0.0, "total_cost": 0.0},
        )
        h["quantity"] += p.quantity
        h["total_cost"] += p.quantity * p.buy_price

    total_value = 0.0
    total_priced_cost = 0.0
    for sym, h in holdings.items():
        cost = h["total_cost"]
        h["total_cost"] = _round(cost)
        quote = quotes.get(sym)
        if quote is None:
            h.update(current_price=None, value=None, gain=None)
            continue
        value = h["quantity"] * quote.price
        h.update(current_price=quote.price, value=_round(value), gain=_round(value - cost))
        total_value += value
        total_priced_cost += cost

    total_invested = sum(p.quantity * p.buy_price for p in positions)
    return {
        "positions": rows,
        "holdings": [holdings[t] for t in tickers],
        "total_invested": _round(total_invested),
        "total_value": _round(total_value),
        "total_gain": _round(total_value - total_priced_cost),
    }
