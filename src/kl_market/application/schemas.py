"""Pydantic request/response schemas for kl_market."""

from pydantic import BaseModel, Field, field_validator

from src.kl_common.datetime_utils import iso_timestamp, parse_iso
from src.kl_common.enums import Outcome
from src.kl_market.domain.models import Market, Trade


class CreateMarketRequest(BaseModel):
    market_id: str = Field(..., min_length=1, max_length=128)
    question: str = Field(..., min_length=1, max_length=500)
    kit_id: str = Field(..., min_length=1, max_length=128)
    deadline: str | None = None

    @field_validator("deadline")
    @classmethod
    def normalize_deadline(cls, v: str | None) -> str | None:
        """Informational only; stored in the canonical UTC timestamp format."""
        if v is None:
            return v
        return iso_timestamp(parse_iso(v))


class TradeRequest(BaseModel):
    outcome: Outcome
    amount: int = Field(..., gt=0)


class ResolveMarketRequest(BaseModel):
    outcome: Outcome


class MarketResponse(BaseModel):
    market_id: str
    question: str
    kit_id: str
    deadline: str | None
    created_by: str
    created_at: str
    status: str
    winning_outcome: str | None
    total_volume: float
    resolved_at: str | None
    pool: dict[str, int]
    probabilities: dict[str, int]

    @classmethod
    def from_domain(cls, market: Market) -> "MarketResponse":
        return cls(
            market_id=market.market_id,
            question=market.question,
            kit_id=market.subject_id,
            deadline=market.deadline,
            created_by=market.created_by,
            created_at=market.created_at,
            status=market.status.value,
            winning_outcome=market.winning_outcome.value if market.winning_outcome else None,
            total_volume=round(market.total_volume, 2),
            resolved_at=market.resolved_at,
            pool={o.value: n for o, n in market.pools.items()},
            probabilities=market.probabilities(),
        )


class MarketListResponse(BaseModel):
    items: list[MarketResponse]


class TradeResponse(BaseModel):
    trade_id: str
    market_id: str
    participant_id: str
    outcome: str
    direction: str
    shares: int
    amount: float
    timestamp: str

    @classmethod
    def from_domain(cls, trade: Trade) -> "TradeResponse":
        return cls(
            trade_id=trade.trade_id,
            market_id=trade.market_id,
            participant_id=trade.participant_id,
            outcome=trade.outcome.value,
            direction=trade.direction.value,
            shares=trade.shares,
            amount=trade.amount,
            timestamp=trade.timestamp,
        )


class TradeListResponse(BaseModel):
    market_id: str
    items: list[TradeResponse]
