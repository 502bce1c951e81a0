from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Strict, field_validator
from pydantic.alias_generators import to_camel

from utils.common_helpers import as_utc


# JSON numbers only: no booleans, no numeric strings.
StrictNumber = Annotated[float, Strict()]


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PositionCreate(CamelModel):
    ticker: str
    quantity: StrictNumber
    buy_price: StrictNumber


class EnrichedPositionOut(CamelModel):
    id: int
    ticker: str
    quantity: float
    buy_price: float
    date_added: datetime
    current_price: Optional[float] = None
    previous_close: Optional[float] = None
    price_status: str = "unavailable"
    cost: float
    value: Optional[float] = None
    gain: Optional[float] = None
    gain_pct: Optional[float] = None

    @field_validator("date_added")
    @classmethod
    def date_added_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


class HoldingAggregateOut(CamelModel):
    ticker: str
    quantity: float
    total_cost: float
    current_price: Optional[float] = None
    value: Optional[float] = None
    gain: Optional[float] = None


class EnrichedPortfolioOut(CamelModel):
    positions: List[EnrichedPositionOut]
    holdings: List[HoldingAggregateOut]
    total_invested: float
    total_value: float
    total_gain: float
