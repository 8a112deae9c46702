"""Statistics Manager - Statistics requests and the same-day result cache.

This manager is the bridge between stored habits and the StatisticsEngine:
- Builds HabitSnapshot lists through HabitManager
- Computes weekly/monthly/overall statistics via StatisticsEngine
- Caches results per (user, today, weeks, months) for the current day

Cache invalidation:
- Any check toggle, habit creation or habit deletion drops the user's entries
- A new local day drops every entry computed for an earlier day
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.core import callback

from .. import const
from ..engines.statistics_engine import StatisticsEngine
from ..utils.dt_utils import dt_today_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..store import HabitStreaksStore
    from ..type_defs import EventPayload, StatisticsResult
    from .habit_manager import HabitManager

# Cache key: (user_id, today, weeks, months)
_CacheKey = tuple[str, str, int, int]


class StatisticsManager(BaseManager):
    """Manager for statistics requests.

    Responsibilities:
    - Serve statistics for a user
    - Keep computed results for the current day until habits change

    NOT responsible for:
    - Aggregation math (StatisticsEngine)
    - Habit or check storage (HabitManager)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: HabitStreaksStore,
        habit_manager: HabitManager,
    ) -> None:
        """Initialize the StatisticsManager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry owning this manager
            store: Shared document store
            habit_manager: Source of habit snapshots
        """
        super().__init__(hass, config_entry, store)
        self._habits = habit_manager
        self._stats_engine = StatisticsEngine()
        self._cache: dict[_CacheKey, StatisticsResult] = {}

    async def async_setup(self) -> None:
        """Subscribe to events that invalidate cached statistics."""
        self.listen(const.SIGNAL_SUFFIX_CHECK_TOGGLED, self._on_habits_changed)
        self.listen(const.SIGNAL_SUFFIX_HABIT_CREATED, self._on_habits_changed)
        self.listen(const.SIGNAL_SUFFIX_HABIT_DELETED, self._on_habits_changed)
        const.LOGGER.debug("DEBUG: StatisticsManager subscribed to habit events")

    @callback
    def _on_habits_changed(self, payload: EventPayload) -> None:
        """Drop cached statistics of the user whose habits changed."""
        self.invalidate(payload.get("user_id"))

    def invalidate(self, user_id: str | None = None) -> None:
        """Drop cached statistics for one user, or for everyone."""
        if user_id is None:
            self._cache.clear()
            return
        for key in [key for key in self._cache if key[0] == user_id]:
            del self._cache[key]

    async def async_get_statistics(
        self,
        user_id: str,
        weeks: int = const.DEFAULT_STATS_WEEKS,
        months: int = const.DEFAULT_STATS_MONTHS,
        today: str | None = None,
    ) -> StatisticsResult:
        """Return statistics for a user, computing them at most once per day.

        Args:
            user_id: User whose habits are aggregated
            weeks: Number of weekly periods (newest first)
            months: Number of monthly periods (newest first)
            today: Reference date key (defaults to today in the local zone)
        """
        today = today or dt_today_iso()
        stale = [key for key in self._cache if key[1] != today]
        for key in stale:
            del self._cache[key]

        cache_key: _CacheKey = (user_id, today, weeks, months)
        cached = self._cache.get(cache_key)
        if cached is not None:
            const.LOGGER.debug(
                "DEBUG: Serving cached statistics for user '%s' on %s", user_id, today
            )
            return cached

        snapshots = self._habits.build_snapshots(user_id)
        result = self._stats_engine.compute_statistics(
            snapshots, today, weeks=weeks, months=months
        )
        self._cache[cache_key] = result
        const.LOGGER.debug(
            "DEBUG: Computed statistics for user '%s' over %s habits "
            "(%s weeks, %s months)",
            user_id,
            len(snapshots),
            weeks,
            months,
        )
        return result
