# File: utils/__init__.py
"""Pure Python utilities for Habit Streaks.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Date key parsing, formatting and calendar arithmetic
    - math_utils: Rounding, rates and clamping

Usage:
    from . import dt_utils
    from .math_utils import calculate_rate
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
