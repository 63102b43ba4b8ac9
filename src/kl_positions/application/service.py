"""PositionLedger — credits, holdings and prediction stats per participant.

All methods are synchronous. The market engine calls a check_* method and
the matching record_* method back to back with no await in between, so a
participant's credits cannot be spent twice by trades on different
markets interleaving on the event loop.
"""

import copy
import logging

from src.kl_common.credits import credits_to_display, normalize_credits, round_half_up
from src.kl_common.enums import Outcome
from src.kl_common.errors import (
    InsufficientCreditsError,
    InsufficientSharesError,
    ParticipantNotFoundError,
)
from src.kl_positions.domain.models import (
    Holding,
    LeaderboardEntry,
    ParticipantAccount,
)

logger = logging.getLogger(__name__)


class PositionLedger:
    def __init__(self, starting_credits: float = 10000) -> None:
        self._starting_credits = starting_credits
        self._accounts: dict[str, ParticipantAccount] = {}

    def initialize_participant(
        self, participant_id: str, starting_credits: float | None = None
    ) -> ParticipantAccount:
        """Create the account if missing. Existing accounts are left untouched."""
        account = self._accounts.get(participant_id)
        if account is None:
            credits = self._starting_credits if starting_credits is None else starting_credits
            account = ParticipantAccount(participant_id=participant_id, credits=float(credits))
            self._accounts[participant_id] = account
            logger.info(
                "Initialized participant %s with %s", participant_id, credits_to_display(credits)
            )
        return account

    def _account(self, participant_id: str) -> ParticipantAccount:
        account = self._accounts.get(participant_id)
        if account is None:
            raise ParticipantNotFoundError(participant_id)
        return account

    # ------------------------------------------------------------------
    # Checks (no mutation)
    # ------------------------------------------------------------------

    def check_buy(self, participant_id: str, cost: float) -> None:
        account = self._account(participant_id)
        if account.credits < cost:
            raise InsufficientCreditsError(cost, account.credits)

    def check_sell(self, participant_id: str, market_id: str, outcome: Outcome, shares: int) -> None:
        account = self._account(participant_id)
        holding = account.holdings.get(market_id)
        held = holding.shares(outcome) if holding else 0
        if held < shares:
            raise InsufficientSharesError(
                f"holding {held} {outcome.value} shares in {market_id}, tried to sell {shares}"
            )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_buy(
        self, participant_id: str, market_id: str, outcome: Outcome, shares: int, cost: float
    ) -> None:
        account = self._account(participant_id)
        account.credits = normalize_credits(account.credits - cost)
        account.holdings.setdefault(market_id, Holding()).add(outcome, shares, cost)
        account.stats.total_trades += 1

    def record_sell(
        self, participant_id: str, market_id: str, outcome: Outcome, shares: int, payout: float
    ) -> float:
        """Credit the payout and realise profit against average cost. Returns the profit."""
        account = self._account(participant_id)
        basis = account.holdings[market_id].remove(outcome, shares)
        profit = normalize_credits(payout - basis)
        account.credits = normalize_credits(account.credits + payout)
        account.stats.profit = normalize_credits(account.stats.profit + profit)
        account.stats.total_trades += 1
        return profit

    def resolve_position(self, participant_id: str, market_id: str, winning_outcome: Outcome) -> bool:
        """Score and clear one participant's holding in a resolved market.

        Returns False when there was nothing to resolve (no account, no
        holding, or already resolved). No credits are paid out.
        """
        account = self._accounts.get(participant_id)
        if account is None or market_id not in account.holdings:
            return False
        holding = account.holdings.pop(market_id)
        winning = holding.shares(winning_outcome)
        losing = holding.shares(winning_outcome.other)
        if winning > 0:
            account.stats.correct_predictions += 1
        if winning > 0 or losing > 0:
            account.stats.total_predictions += 1
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def holders(self, market_id: str) -> list[str]:
        return [pid for pid, acct in self._accounts.items() if market_id in acct.holdings]

    def positions(self, participant_id: str) -> ParticipantAccount:
        """Snapshot of the participant's account (initialised on first access)."""
        return copy.deepcopy(self.initialize_participant(participant_id))

    def leaderboard(self) -> list[LeaderboardEntry]:
        """Ranked by exact accuracy, then profit, both descending."""
        ranked = sorted(
            self._accounts.values(),
            key=lambda a: (a.stats.accuracy, a.stats.profit),
            reverse=True,
        )
        return [
            LeaderboardEntry(
                participant_id=a.participant_id,
                accuracy=int(round_half_up(a.stats.accuracy * 100)),
                correct_predictions=a.stats.correct_predictions,
                total_predictions=a.stats.total_predictions,
                profit=a.stats.profit,
                total_trades=a.stats.total_trades,
                credits=a.credits,
            )
            for a in ranked
        ]
