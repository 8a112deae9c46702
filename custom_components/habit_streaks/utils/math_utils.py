# File: utils/math_utils.py
"""Math and calculation utilities for Habit Streaks.

Pure Python math functions with ZERO Home Assistant dependencies.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - round_half_up: Integer rounding with .5 always going up
    - calculate_rate: Whole-number percentage with zero-denominator fallback
    - clamp: Bound a value to a range
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity.

    Python's round() uses banker's rounding (round(2.5) == 2); completion
    rates use schoolbook rounding instead.

    Examples:
        round_half_up(2.5) → 3
        round_half_up(2.4999) → 2
        round_half_up(-2.5) → -2
    """
    return math.floor(value + 0.5)


def calculate_rate(numerator: float, denominator: float) -> int:
    """Return ``round_half_up(100 * numerator / denominator)``.

    Args:
        numerator: Achieved count
        denominator: Possible count

    Returns:
        Whole-number percentage, or 0 if denominator is not positive

    Examples:
        calculate_rate(1, 3) → 33
        calculate_rate(2, 3) → 67
        calculate_rate(5, 0) → 0  # Division by zero protection
    """
    if denominator <= 0:
        return 0
    return round_half_up(numerator * 100 / denominator)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
        clamp(50, 0, 100) → 50
    """
    return max(min_val, min(value, max_val))
