"""Pydantic response schemas for kl_positions."""

from pydantic import BaseModel

from src.kl_positions.domain.models import LeaderboardEntry, ParticipantAccount


class HoldingOut(BaseModel):
    market_id: str
    yes_shares: int
    no_shares: int
    yes_cost_sum: float
    no_cost_sum: float


class StatsOut(BaseModel):
    correct_predictions: int
    total_predictions: int
    profit: float
    total_trades: int


class PositionsResponse(BaseModel):
    participant_id: str
    credits: float
    holdings: list[HoldingOut]
    stats: StatsOut

    @classmethod
    def from_domain(cls, account: ParticipantAccount) -> "PositionsResponse":
        return cls(
            participant_id=account.participant_id,
            credits=account.credits,
            holdings=[
                HoldingOut(
                    market_id=market_id,
                    yes_shares=h.yes_shares,
                    no_shares=h.no_shares,
                    yes_cost_sum=round(h.yes_cost_sum, 2),
                    no_cost_sum=round(h.no_cost_sum, 2),
                )
                for market_id, h in account.holdings.items()
            ],
            stats=StatsOut(
                correct_predictions=account.stats.correct_predictions,
                total_predictions=account.stats.total_predictions,
                profit=account.stats.profit,
                total_trades=account.stats.total_trades,
            ),
        )


class LeaderboardEntryOut(BaseModel):
    rank: int
    participant_id: str
    accuracy: int
    correct_predictions: int
    total_predictions: int
    profit: float
    total_trades: int
    credits: float


class LeaderboardResponse(BaseModel):
    items: list[LeaderboardEntryOut]

    @classmethod
    def from_entries(cls, entries: list[LeaderboardEntry]) -> "LeaderboardResponse":
        return cls(
            items=[
                LeaderboardEntryOut(
                    rank=rank,
                    participant_id=e.participant_id,
                    accuracy=e.accuracy,
                    correct_predictions=e.correct_predictions,
                    total_predictions=e.total_predictions,
                    profit=e.profit,
                    total_trades=e.total_trades,
                    credits=e.credits,
                )
                for rank, e in enumerate(entries, start=1)
            ]
        )
