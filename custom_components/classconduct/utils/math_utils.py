# File: utils/math_utils.py
"""Math and calculation utilities for Class Conduct.

Pure Python math functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Functions:
    - clamp: Bound a value to a closed range
    - round_half_up: Integer rounding that matches classroom grading (2.5 -> 3)
    - mean: Arithmetic mean that tolerates empty input
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
import math

# ==============================================================================
# Score Arithmetic
# ==============================================================================


def clamp(value: int, min_val: int, max_val: int) -> int:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
        clamp(50, 0, 100) → 50
    """
    return max(min_val, min(value, max_val))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero.

    The builtin round() uses banker's rounding, which would rank an average
    of 49.5 as a fail.

    Examples:
        round_half_up(49.5) → 50
        round_half_up(49.49) → 49
        round_half_up(-2.5) → -3
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean(values: list[int] | list[float]) -> float:
    """Return the arithmetic mean, or NaN for an empty list."""
    if not values:
        return math.nan
    return sum(values) / len(values)
