"""Manager modules for Habit Streaks integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own all storage writes.
"""

from .base_manager import BaseManager
from .economy_manager import EconomyManager
from .habit_manager import HabitManager
from .statistics_manager import StatisticsManager

__all__ = [
    "BaseManager",
    "EconomyManager",
    "HabitManager",
    "StatisticsManager",
]
