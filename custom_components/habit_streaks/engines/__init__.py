"""Engine modules for Habit Streaks integration.

Contains specialized computation engines:
- continuity_engine: Streaks, restarts and hall-of-fame progress
- economy_engine: Check points, levels and ledger entries
- statistics_engine: Weekly/monthly breakdowns and lifetime statistics
"""

# Use relative imports within package to avoid mypy module resolution issues
from .continuity_engine import ContinuityEngine
from .economy_engine import EconomyEngine
from .statistics_engine import StatisticsEngine

__all__ = [
    "ContinuityEngine",
    "EconomyEngine",
    "StatisticsEngine",
]
