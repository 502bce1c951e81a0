from typing import List, Optional

from schemas.portfolio import CamelModel, StrictNumber


class AdviceRequest(CamelModel):
    ticker: str
    quantity: StrictNumber
    buy_price: StrictNumber
    current_price: StrictNumber


class AdviceOut(CamelModel):
    advice: str


class PortfolioLine(CamelModel):
    """One enriched position as the UI posts it; extra keys (e.g. ids) are ignored."""

    ticker: str
    quantity: StrictNumber
    buy_price: StrictNumber
    current_price: StrictNumber


class SummaryRequest(CamelModel):
    portfolio: Optional[List[PortfolioLine]] = None


class SummaryOut(CamelModel):
    summary: str
