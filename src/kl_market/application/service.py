"""MarketEngine — binary prediction markets tied to tracked kits.

Each market has its own asyncio.Lock (same per-market locking pattern as an
order-matching engine), so trades on different markets proceed in parallel
while trades on one market are serialised. Credit and share bookkeeping is
delegated to the PositionLedger.
"""

import asyncio
import logging
import uuid
from collections import defaultdict

from src.kl_common.datetime_utils import iso_timestamp
from src.kl_common.enums import MarketStatus, Outcome, TradeDirection
from src.kl_common.errors import (
    MarketExistsError,
    MarketNotFoundError,
    MarketNotResolvedError,
)
from src.kl_market.domain.models import Market, Trade
from src.kl_positions.application.service import PositionLedger

logger = logging.getLogger(__name__)


class MarketEngine:
    def __init__(self, positions: PositionLedger, initial_liquidity: int = 1000) -> None:
        self._positions = positions
        self._initial_liquidity = initial_liquidity
        self._markets: dict[str, Market] = {}
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _get(self, market_id: str) -> Market:
        market = self._markets.get(market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    def _lock_for(self, market_id: str) -> asyncio.Lock:
        """Lock of an existing market; unknown ids raise before a lock is made."""
        self._get(market_id)
        return self._market_locks[market_id]

    def _new_trade(
        self,
        market: Market,
        participant_id: str,
        outcome: Outcome,
        direction: TradeDirection,
        shares: int,
        amount: float,
    ) -> Trade:
        trade = Trade(
            trade_id=f"trd_{uuid.uuid4().hex[:16]}",
            market_id=market.market_id,
            participant_id=participant_id,
            outcome=outcome,
            direction=direction,
            shares=shares,
            amount=amount,
            timestamp=iso_timestamp(),
        )
        market.trades.append(trade)
        return trade

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def create_market(
        self,
        market_id: str,
        question: str,
        subject_id: str,
        deadline: str | None,
        created_by: str,
    ) -> Market:
        if market_id in self._markets:
            raise MarketExistsError(market_id)
        async with self._market_locks[market_id]:
            if market_id in self._markets:
                raise MarketExistsError(market_id)
            market = Market.open(
                market_id=market_id,
                question=question,
                subject_id=subject_id,
                deadline=deadline,
                created_by=created_by,
                created_at=iso_timestamp(),
                initial_liquidity=self._initial_liquidity,
            )
            self._markets[market_id] = market
        logger.info("Market %s created for kit %s by %s", market_id, subject_id, created_by)
        return market

    async def resolve(self, market_id: str, outcome: Outcome) -> Market:
        """Fix the winning outcome. Irreversible; does not settle positions."""
        async with self._lock_for(market_id):
            market = self._get(market_id)
            market.resolve(outcome, iso_timestamp())
        logger.info("Market %s resolved as %s", market_id, outcome.value)
        return market

    async def settle(self, market_id: str) -> int:
        """Resolve every holder's position in a resolved market. Returns the count."""
        async with self._lock_for(market_id):
            market = self._get(market_id)
            if market.status != MarketStatus.RESOLVED or market.winning_outcome is None:
                raise MarketNotResolvedError(market_id)
            settled = sum(
                1
                for pid in self._positions.holders(market_id)
                if self._positions.resolve_position(pid, market_id, market.winning_outcome)
            )
        logger.info("Market %s settled: %d position(s)", market_id, settled)
        return settled

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def buy(self, market_id: str, participant_id: str, outcome: Outcome, amount: int) -> Trade:
        async with self._lock_for(market_id):
            market = self._get(market_id)
            cost = market.quote_buy(outcome, amount)
            self._positions.initialize_participant(participant_id)
            self._positions.check_buy(participant_id, cost)
            market.apply_buy(outcome, amount, cost)
            self._positions.record_buy(participant_id, market_id, outcome, amount, cost)
            trade = self._new_trade(market, participant_id, outcome, TradeDirection.BUY, amount, cost)
        logger.info(
            "BUY %s: %s %d %s for %.2f", market_id, participant_id, amount, outcome.value, cost
        )
        return trade

    async def sell(self, market_id: str, participant_id: str, outcome: Outcome, amount: int) -> Trade:
        async with self._lock_for(market_id):
            market = self._get(market_id)
            payout = market.quote_sell(outcome, amount)
            self._positions.check_sell(participant_id, market_id, outcome, amount)
            market.apply_sell(outcome, amount, payout)
            self._positions.record_sell(participant_id, market_id, outcome, amount, payout)
            trade = self._new_trade(
                market, participant_id, outcome, TradeDirection.SELL, amount, payout
            )
        logger.info(
            "SELL %s: %s %d %s for %.2f", market_id, participant_id, amount, outcome.value, payout
        )
        return trade

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_market(self, market_id: str) -> Market:
        return self._get(market_id)

    def list_markets(self, status: MarketStatus | None = None) -> list[Market]:
        markets = sorted(self._markets.values(), key=lambda m: m.created_at)
        if status is not None:
            markets = [m for m in markets if m.status == status]
        return markets

    def probabilities(self, market_id: str) -> dict[str, int]:
        return self._get(market_id).probabilities()

    def trades(self, market_id: str) -> list[Trade]:
        return list(self._get(market_id).trades)
