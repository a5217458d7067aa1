"""
Half-up rounding.

Python's round() is banker's rounding (round(12.5) == 12). Confidence and
coverage figures, and the reported deviation percentages, use half-up rounding
so 12.5% shows as 13%.
"""

import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round to ndigits decimals, ties toward positive infinity."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_half_up_int(value: float) -> int:
    return int(math.floor(value + 0.5))
