"""Credit arithmetic helpers.

Credits are floats with two decimal places. Prices are rounded half-up at
the second decimal once, when computed; balances are re-normalised after
each mutation so float noise does not accumulate.
"""

import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """floor(x * 10^n + 0.5) / 10^n: halves round toward +infinity."""
    factor = 10**ndigits
    return math.floor(value * factor + 0.5) / factor


def normalize_credits(value: float) -> float:
    return round(value, 2)


def credits_to_display(value: float) -> str:
    """12345.5 -> '12,345.50 cr', -3 -> '-3.00 cr'."""
    if value < 0:
        return f"-{-value:,.2f} cr"
    return f"{value:,.2f} cr"
