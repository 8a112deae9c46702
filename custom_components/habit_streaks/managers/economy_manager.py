"""Economy Manager - Per-user point totals, ledger and level transitions.

This manager handles all point-related operations:
- Awards for newly checked days
- Deductions for un-checked days
- Ledger management (transaction history)
- Event emission for point and level changes

ARCHITECTURE:
- EconomyManager = "The Bank" (STATEFUL point operations)
- EconomyEngine = Pure point, level and ledger logic (STATELESS)

Each user's total has at most one writer at a time: every update runs under
that user's asyncio.Lock and derives its delta from the total read inside the
lock, so concurrent check toggles never lose an update.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.economy_engine import EconomyEngine
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..store import HabitStreaksStore
    from ..type_defs import (
        CheckPointsResult,
        HabitData,
        LedgerEntry,
        LevelInfo,
        PointsApplication,
    )


class EconomyManager(BaseManager):
    """Manager for all point transactions and ledger operations.

    Responsibilities:
    - Execute awards and deductions against the stored total
    - Maintain transaction ledger per user
    - Emit SIGNAL_SUFFIX_POINTS_CHANGED / SIGNAL_SUFFIX_LEVEL_CHANGED events

    NOT responsible for:
    - Deciding whether a toggle is an award (HabitManager compares prior state)
    - Streak computation (ContinuityEngine via HabitManager)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: HabitStreaksStore,
    ) -> None:
        """Initialize the EconomyManager."""
        super().__init__(hass, config_entry, store)
        self._user_locks: dict[str, asyncio.Lock] = {}

    async def async_setup(self) -> None:
        """Set up the EconomyManager."""
        const.LOGGER.debug(
            "DEBUG: EconomyManager ready for %s users", len(self.store.users)
        )

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        """Return the single-writer lock guarding a user's total."""
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    # =========================================================================
    # Queries
    # =========================================================================

    def get_level(self, user_id: str) -> LevelInfo:
        """Return the level derived from a user's stored total."""
        return EconomyEngine.calculate_level(self.store.get_total_points(user_id))

    def get_ledger(self, user_id: str) -> list[LedgerEntry]:
        """Return a user's ledger, newest last."""
        user = self.store.users.get(user_id)
        if user is None:
            return []
        return list(user.get(const.DATA_USER_LEDGER, []))

    # =========================================================================
    # Transactions
    # =========================================================================

    async def async_award_check(
        self,
        user_id: str,
        habit: HabitData,
        *,
        streak: int,
        is_restart: bool,
        is_hall_of_fame_now: bool,
    ) -> tuple[CheckPointsResult, PointsApplication]:
        """Award points for a day that just became checked.

        Args:
            user_id: Owner of the point total
            habit: The habit that was checked
            streak: Gap-tolerant progress after the check
            is_restart: Whether the check is a comeback after a reset
            is_hall_of_fame_now: True only when this check newly reaches the
                hall of fame

        Returns:
            (points breakdown, applied transaction)
        """
        award = EconomyEngine.calculate_check_points(
            streak=streak,
            is_restart=is_restart,
            is_hall_of_fame_now=is_hall_of_fame_now,
        )
        async with self._lock_for(user_id):
            application = await self._async_apply(
                user_id, award["points"], const.POINTS_SOURCE_CHECK, habit
            )
        const.LOGGER.info(
            "INFO: Awarded %s points to user '%s' for habit '%s' (streak %s)",
            award["points"],
            user_id,
            habit[const.DATA_HABIT_TEXT],
            streak,
        )
        return award, application

    async def async_deduct_uncheck(
        self, user_id: str, habit: HabitData
    ) -> tuple[int, PointsApplication]:
        """Subtract points for a checked day that was un-checked.

        At most one point, never below zero; earlier bonuses stay granted.

        Returns:
            (points lost, applied transaction)
        """
        async with self._lock_for(user_id):
            points_lost = EconomyEngine.calculate_uncheck_penalty(
                self.store.get_total_points(user_id)
            )
            application = await self._async_apply(
                user_id, -points_lost, const.POINTS_SOURCE_UNCHECK, habit
            )
        const.LOGGER.info(
            "INFO: Deducted %s points from user '%s' for habit '%s'",
            points_lost,
            user_id,
            habit[const.DATA_HABIT_TEXT],
        )
        return points_lost, application

    async def _async_apply(
        self, user_id: str, delta: int, source: str, habit: HabitData
    ) -> PointsApplication:
        """Apply a delta, append a ledger entry, persist and emit events.

        Must be called with the user's lock held.
        """
        if delta == 0:
            total = self.store.get_total_points(user_id)
            return {
                "old_total": total,
                "new_total": total,
                "delta": 0,
                "transition": EconomyEngine.check_level_up(total, total),
            }

        old_total, new_total = self.store.increment_points(user_id, delta)
        user = self.store.get_user(user_id)
        ledger = user.setdefault(const.DATA_USER_LEDGER, [])
        ledger.append(
            EconomyEngine.create_ledger_entry(
                current_balance=old_total,
                delta=new_total - old_total,
                source=source,
                reference_id=habit[const.DATA_HABIT_INTERNAL_ID],
                item_name=habit[const.DATA_HABIT_TEXT],
            )
        )
        EconomyEngine.prune_ledger(ledger)
        await self.store.async_save()

        transition = EconomyEngine.check_level_up(old_total, new_total)
        self.emit(
            const.SIGNAL_SUFFIX_POINTS_CHANGED,
            user_id=user_id,
            old_total=old_total,
            new_total=new_total,
            delta=new_total - old_total,
            source=source,
        )
        if transition["leveled_up"] or transition["leveled_down"]:
            change: dict[str, Any] = dict(EconomyEngine.to_level_change(transition))
            const.LOGGER.info(
                "INFO: User '%s' moved from level %s to %s",
                user_id,
                change["old_level"],
                change["new_level"],
            )
            self.emit(const.SIGNAL_SUFFIX_LEVEL_CHANGED, user_id=user_id, **change)

        return {
            "old_total": old_total,
            "new_total": new_total,
            "delta": new_total - old_total,
            "transition": transition,
        }
