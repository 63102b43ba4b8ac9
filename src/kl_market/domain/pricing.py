"""Constant-relation pricing for binary markets.

Price is linear in the share amount and uses the pools as they stand
before the trade:

    price = round_half_up(amount * pool_other / pool_current, 2)

Buying YES shrinks the YES pool, which raises the next YES price and the
implied YES probability.
"""

from src.kl_common.credits import round_half_up
from src.kl_common.enums import Outcome


def calculate_price(pool_current: int, pool_other: int, amount: int) -> float:
    if pool_current <= 0:
        raise ValueError(f"pool_current must be positive, got {pool_current}")
    return round_half_up(amount * (pool_other / pool_current), 2)


def implied_probabilities(pool_yes: int, pool_no: int) -> dict[str, int]:
    """Integer percentages that always sum to 100.

    YES = round_half_up(NO / (YES + NO) * 100); NO = 100 - YES.
    """
    total = pool_yes + pool_no
    if total <= 0:
        return {Outcome.YES.value: 50, Outcome.NO.value: 50}
    yes = int(round_half_up(pool_no / total * 100))
    return {Outcome.YES.value: yes, Outcome.NO.value: 100 - yes}
