from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from database import Base
from utils.common_helpers import as_utc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Position(Base):
    __tablename__ = "positions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ticker: Mapped[str] = mapped_column(String(16), index=True)
    quantity: Mapped[float] = mapped_column(Float)
    buy_price: Mapped[float] = mapped_column(Float)
    date_added: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return f"<Position id={self.id} ticker={self.ticker} qty={self.quantity}>"


class PositionOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: int
    ticker: str
    quantity: float
    buy_price: float
    date_added: datetime

    @field_validator("date_added")
    @classmethod
    def date_added_utc(cls, v: datetime) -> datetime:
        return as_utc(v)


def to_dto(p: Position) -> PositionOut:
    return PositionOut.model_validate(p)
