"""Domain models for kl_positions — per-participant credits, holdings and stats."""

from dataclasses import dataclass, field

from src.kl_common.enums import Outcome


@dataclass
class Holding:
    """Shares held in one market, plus the credits paid for shares still held."""

    yes_shares: int = 0
    no_shares: int = 0
    yes_cost_sum: float = 0.0
    no_cost_sum: float = 0.0

    def shares(self, outcome: Outcome) -> int:
        return self.yes_shares if outcome == Outcome.YES else self.no_shares

    def cost_sum(self, outcome: Outcome) -> float:
        return self.yes_cost_sum if outcome == Outcome.YES else self.no_cost_sum

    def add(self, outcome: Outcome, shares: int, cost: float) -> None:
        if outcome == Outcome.YES:
            self.yes_shares += shares
            self.yes_cost_sum += cost
        else:
            self.no_shares += shares
            self.no_cost_sum += cost

    def remove(self, outcome: Outcome, shares: int) -> float:
        """Take `shares` out at average cost; returns the cost basis released."""
        held = self.shares(outcome)
        basis = self.cost_sum(outcome) * shares / held if held else 0.0
        if outcome == Outcome.YES:
            self.yes_shares -= shares
            self.yes_cost_sum = 0.0 if self.yes_shares == 0 else self.yes_cost_sum - basis
        else:
            self.no_shares -= shares
            self.no_cost_sum = 0.0 if self.no_shares == 0 else self.no_cost_sum - basis
        return basis


@dataclass
class ParticipantStats:
    correct_predictions: int = 0
    total_predictions: int = 0
    profit: float = 0.0
    total_trades: int = 0

    @property
    def accuracy(self) -> float:
        """Exact hit ratio in [0, 1]; 0 when nothing has been resolved."""
        if self.total_predictions == 0:
            return 0.0
        return self.correct_predictions / self.total_predictions


@dataclass
class ParticipantAccount:
    participant_id: str
    credits: float
    holdings: dict[str, Holding] = field(default_factory=dict)
    stats: ParticipantStats = field(default_factory=ParticipantStats)


@dataclass(frozen=True)
class LeaderboardEntry:
    participant_id: str
    accuracy: int              # rounded percent, display only
    correct_predictions: int
    total_predictions: int
    profit: float
    total_trades: int
    credits: float
