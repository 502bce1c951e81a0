from typing import Optional

from schemas.portfolio import CamelModel


class QuoteOut(CamelModel):
    price: float
    change: Optional[float] = None
    percent: Optional[float] = None
    previous_close: Optional[float] = None
    fetched_at: float


class SuggestionOut(CamelModel):
    symbol: str
    name: str
