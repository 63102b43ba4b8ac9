"""Domain models for kl_market — pure dataclasses.

Pool mutation lives on Market so the invariants (pools stay positive,
OPEN -> RESOLVED exactly once) are enforced in one place.
"""

from dataclasses import dataclass, field

from src.kl_common.enums import MarketStatus, Outcome, TradeDirection
from src.kl_common.errors import (
    InsufficientLiquidityError,
    InvalidTradeAmountError,
    MarketNotOpenError,
)
from src.kl_market.domain.pricing import calculate_price, implied_probabilities


@dataclass
class Trade:
    trade_id: str
    market_id: str
    participant_id: str
    outcome: Outcome
    direction: TradeDirection
    shares: int
    amount: float          # cost on BUY, payout on SELL
    timestamp: str


@dataclass
class Market:
    market_id: str
    question: str
    subject_id: str
    deadline: str | None
    created_by: str
    created_at: str
    pools: dict[Outcome, int]
    status: MarketStatus = MarketStatus.OPEN
    winning_outcome: Outcome | None = None
    total_volume: float = 0.0
    resolved_at: str | None = None
    trades: list[Trade] = field(default_factory=list)

    @classmethod
    def open(
        cls,
        market_id: str,
        question: str,
        subject_id: str,
        deadline: str | None,
        created_by: str,
        created_at: str,
        initial_liquidity: int,
    ) -> "Market":
        if initial_liquidity <= 0:
            raise ValueError("initial liquidity must be positive")
        return cls(
            market_id=market_id,
            question=question,
            subject_id=subject_id,
            deadline=deadline,
            created_by=created_by,
            created_at=created_at,
            pools={Outcome.YES: initial_liquidity, Outcome.NO: initial_liquidity},
        )

    @property
    def is_open(self) -> bool:
        return self.status == MarketStatus.OPEN

    def ensure_open(self) -> None:
        if not self.is_open:
            raise MarketNotOpenError(self.market_id)

    def price(self, outcome: Outcome, amount: int) -> float:
        return calculate_price(self.pools[outcome], self.pools[outcome.other], amount)

    def probabilities(self) -> dict[str, int]:
        return implied_probabilities(self.pools[Outcome.YES], self.pools[Outcome.NO])

    def quote_buy(self, outcome: Outcome, amount: int) -> float:
        """Cost of buying `amount` shares; raises if the pool cannot stay positive."""
        self.ensure_open()
        _check_amount(amount)
        pool = self.pools[outcome]
        if amount >= pool:
            raise InsufficientLiquidityError(outcome.value, amount, pool)
        return self.price(outcome, amount)

    def quote_sell(self, outcome: Outcome, amount: int) -> float:
        self.ensure_open()
        _check_amount(amount)
        return self.price(outcome, amount)

    def apply_buy(self, outcome: Outcome, amount: int, cost: float) -> None:
        self.pools[outcome] -= amount
        self.total_volume += cost

    def apply_sell(self, outcome: Outcome, amount: int, payout: float) -> None:
        self.pools[outcome] += amount
        self.total_volume += payout

    def resolve(self, outcome: Outcome, resolved_at: str) -> None:
        self.ensure_open()
        self.winning_outcome = outcome
        self.status = MarketStatus.RESOLVED
        self.resolved_at = resolved_at


def _check_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidTradeAmountError(amount)
