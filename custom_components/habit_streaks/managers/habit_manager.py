"""Habit Manager - Habit lifecycle and the check toggle workflow.

This manager handles:
- Creating and deleting habits
- Recording per-day check events (upsert by date)
- Hall-of-fame attainment under the gap-tolerant rule
- Handing point awards and deductions to EconomyManager
- Read models for habit lists and habit history

ARCHITECTURE:
- HabitManager = "The Journal" (STATEFUL habit and check records)
- ContinuityEngine = Pure streak and progress logic (STATELESS)

Check toggles are serialized per habit; point updates are serialized per user
inside EconomyManager.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
import uuid

from .. import const
from ..engines.continuity_engine import ContinuityEngine
from ..engines.economy_engine import EconomyEngine
from ..utils.dt_utils import dt_now_iso, dt_today_iso, format_date_key, parse_date_key
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from ..store import HabitStreaksStore
    from ..type_defs import (
        CheckRecord,
        CheckToggleResult,
        HabitData,
        HabitSnapshot,
        PointsBreakdownItem,
    )
    from .economy_manager import EconomyManager


def _checked_dates(habit: HabitData) -> list[str]:
    """Return the date keys of a habit's checked days."""
    return [
        key
        for key, record in habit.get(const.DATA_HABIT_CHECKS, {}).items()
        if record.get(const.DATA_CHECK_CHECKED)
    ]


class HabitManager(BaseManager):
    """Manager for habits and their check records.

    Responsibilities:
    - Habit create/delete
    - Check toggle workflow (record, progress, hall of fame, points)
    - Emit SIGNAL_SUFFIX_CHECK_TOGGLED / HABIT_CREATED / HABIT_DELETED /
      HALL_OF_FAME events

    NOT responsible for:
    - Point arithmetic or the ledger (EconomyManager)
    - Statistics (StatisticsManager)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: HabitStreaksStore,
        economy_manager: EconomyManager,
    ) -> None:
        """Initialize the HabitManager.

        Args:
            hass: Home Assistant instance
            config_entry: Config entry owning this manager
            store: Shared document store
            economy_manager: Point total owner used for awards and deductions
        """
        super().__init__(hass, config_entry, store)
        self._economy = economy_manager
        self._habit_locks: dict[tuple[str, str], asyncio.Lock] = {}

    async def async_setup(self) -> None:
        """Set up the HabitManager."""
        habit_count = sum(
            len(self.store.get_habits(user_id)) for user_id in self.store.users
        )
        const.LOGGER.debug("DEBUG: HabitManager loaded %s habits", habit_count)

    def _get_lock(self, user_id: str, habit_id: str) -> asyncio.Lock:
        """Return the lock serializing check toggles of one habit."""
        key = (user_id, habit_id)
        if key not in self._habit_locks:
            self._habit_locks[key] = asyncio.Lock()
        return self._habit_locks[key]

    # =========================================================================
    # Habit lifecycle
    # =========================================================================

    async def async_create_habit(
        self,
        user_id: str,
        text: str,
        *,
        start_date: str | None = None,
        cadence: str = const.CADENCE_DAILY,
        weekly_target: int = const.DEFAULT_WEEKLY_TARGET,
    ) -> HabitData:
        """Create a habit for a user.

        Args:
            user_id: Owner of the habit
            text: Habit description
            start_date: First trackable day (defaults to today)
            cadence: const.CADENCE_DAILY or const.CADENCE_WEEKLY
            weekly_target: Checks per week for weekly habits (1-7)

        Raises:
            InvalidDateKeyError: If start_date is not a valid date key
            ValueError: If cadence is unknown
        """
        if cadence not in const.CADENCE_OPTIONS:
            raise ValueError(f"Unknown cadence: {cadence}")

        start_key = (
            format_date_key(parse_date_key(start_date))
            if start_date is not None
            else dt_today_iso()
        )
        habit: HabitData = {
            const.DATA_HABIT_INTERNAL_ID: str(uuid.uuid4()),
            const.DATA_HABIT_TEXT: text,
            const.DATA_HABIT_CADENCE: cadence,
            const.DATA_HABIT_WEEKLY_TARGET: max(
                const.MIN_WEEKLY_TARGET,
                min(const.MAX_WEEKLY_TARGET, int(weekly_target)),
            ),
            const.DATA_HABIT_START_DATE: start_key,
            const.DATA_HABIT_END_DATE: None,
            const.DATA_HABIT_HALL_OF_FAME_AT: None,
            const.DATA_HABIT_CREATED_AT: dt_now_iso(),
            const.DATA_HABIT_CHECKS: {},
        }
        self.store.add_habit(user_id, habit)
        await self.store.async_save()

        habit_id = habit[const.DATA_HABIT_INTERNAL_ID]
        const.LOGGER.info(
            "INFO: Created %s habit '%s' (%s) for user '%s'",
            cadence,
            text,
            habit_id,
            user_id,
        )
        self.emit(
            const.SIGNAL_SUFFIX_HABIT_CREATED, user_id=user_id, habit_id=habit_id
        )
        return habit

    async def async_delete_habit(self, user_id: str, habit_id: str) -> None:
        """Delete a habit and all its check records.

        Points already granted for it are kept.

        Raises:
            HabitNotFoundError: If the habit does not exist
        """
        async with self._get_lock(user_id, habit_id):
            habit = self.store.remove_habit(user_id, habit_id)
            await self.store.async_save()
        self._habit_locks.pop((user_id, habit_id), None)

        const.LOGGER.info(
            "INFO: Deleted habit '%s' (%s) for user '%s'",
            habit[const.DATA_HABIT_TEXT],
            habit_id,
            user_id,
        )
        self.emit(
            const.SIGNAL_SUFFIX_HABIT_DELETED, user_id=user_id, habit_id=habit_id
        )

    # =========================================================================
    # Check toggle
    # =========================================================================

    async def async_toggle_check(
        self, user_id: str, habit_id: str, date_key: str, checked: bool
    ) -> CheckToggleResult:
        """Record a habit as checked or unchecked on a day.

        Points change only on a real transition: unchecked -> checked earns
        the check award, checked -> unchecked loses the un-check penalty,
        and a repeated toggle is a no-op for the ledger.

        Args:
            user_id: Owner of the habit
            habit_id: Habit to toggle
            date_key: Day being recorded
            checked: New state for the day

        Returns:
            CheckToggleResult

        Raises:
            InvalidDateKeyError: If date_key is not a valid date key
            HabitNotFoundError: If the habit does not exist
        """
        date_key = format_date_key(parse_date_key(date_key))

        async with self._get_lock(user_id, habit_id):
            habit = self.store.get_habit(user_id, habit_id)
            was_checked = self._record_check(habit, date_key, checked)

            progress = ContinuityEngine.compute_progress_with_gap_rule(
                _checked_dates(habit), date_key
            )
            newly_hall_of_fame = (
                progress["is_hall_of_fame"]
                and habit.get(const.DATA_HABIT_HALL_OF_FAME_AT) is None
            )
            if newly_hall_of_fame:
                habit[const.DATA_HABIT_HALL_OF_FAME_AT] = dt_now_iso()
                habit[const.DATA_HABIT_END_DATE] = date_key
            await self.store.async_save()

        points_earned = 0
        points_lost = 0
        breakdown: list[PointsBreakdownItem] = []
        application = None
        if checked and not was_checked:
            award, application = await self._economy.async_award_check(
                user_id,
                habit,
                streak=progress["progress_to_hall_of_fame"],
                is_restart=progress["is_restart"],
                is_hall_of_fame_now=newly_hall_of_fame,
            )
            points_earned = award["points"]
            breakdown = award["breakdown"]
        elif not checked and was_checked:
            points_lost, application = await self._economy.async_deduct_uncheck(
                user_id, habit
            )

        level_up = None
        level_down = None
        level = None
        if application is not None:
            transition = application["transition"]
            level = transition["new_level"]
            if transition["leveled_up"] or transition["leveled_down"]:
                change = EconomyEngine.to_level_change(transition)
                if transition["leveled_up"]:
                    level_up = change
                else:
                    level_down = change

        const.LOGGER.debug(
            "DEBUG: Toggled habit '%s' on %s to %s (was %s, progress %s)",
            habit_id,
            date_key,
            checked,
            was_checked,
            progress["progress_to_hall_of_fame"],
        )
        self.emit(
            const.SIGNAL_SUFFIX_CHECK_TOGGLED,
            user_id=user_id,
            habit_id=habit_id,
            date=date_key,
            checked=checked,
            was_checked=was_checked,
        )
        if newly_hall_of_fame:
            const.LOGGER.info(
                "INFO: Habit '%s' reached the hall of fame for user '%s'",
                habit[const.DATA_HABIT_TEXT],
                user_id,
            )
            self.emit(
                const.SIGNAL_SUFFIX_HALL_OF_FAME,
                user_id=user_id,
                habit_id=habit_id,
                hall_of_fame_at=habit[const.DATA_HABIT_HALL_OF_FAME_AT],
            )

        return {
            "habit_id": habit_id,
            "date": date_key,
            "checked": checked,
            "streak": progress["progress_to_hall_of_fame"],
            "hall_of_fame_at": habit.get(const.DATA_HABIT_HALL_OF_FAME_AT),
            "is_restart": progress["is_restart"],
            "points_earned": points_earned,
            "points_lost": points_lost,
            "breakdown": breakdown,
            "level_up": level_up,
            "level_down": level_down,
            "level": level,
        }

    @staticmethod
    def _record_check(habit: HabitData, date_key: str, checked: bool) -> bool:
        """Upsert or delete the check record for a day.

        Un-checking a checked day deletes its record; recording an unchecked
        day that was not checked keeps an explicit ``checked=False`` record.
        created_at survives updates.

        Returns:
            Whether the day was checked before this call
        """
        checks: dict[str, CheckRecord] = habit.setdefault(const.DATA_HABIT_CHECKS, {})
        existing = checks.get(date_key)
        was_checked = bool(existing and existing.get(const.DATA_CHECK_CHECKED))

        if not checked and was_checked:
            del checks[date_key]
            return was_checked

        now = dt_now_iso()
        checks[date_key] = {
            const.DATA_CHECK_DATE: date_key,
            const.DATA_CHECK_CHECKED: checked,
            const.DATA_CHECK_CREATED_AT: (
                existing[const.DATA_CHECK_CREATED_AT] if existing else now
            ),
            const.DATA_CHECK_UPDATED_AT: now,
        }
        return was_checked

    # =========================================================================
    # Read models
    # =========================================================================

    def get_habits(
        self, user_id: str, date_key: str | None = None
    ) -> list[dict[str, Any]]:
        """Return a user's habits with today's state and displayed streak.

        Active habits come first (newest start date first), hall-of-fame
        habits last.

        Raises:
            InvalidDateKeyError: If date_key is not a valid date key
        """
        today = (
            format_date_key(parse_date_key(date_key))
            if date_key is not None
            else dt_today_iso()
        )
        active: list[dict[str, Any]] = []
        retired: list[dict[str, Any]] = []

        for habit in self.store.iter_habits(user_id):
            checked_dates = _checked_dates(habit)
            streak = ContinuityEngine.compute_habit_streak(
                habit[const.DATA_HABIT_CADENCE],
                checked_dates,
                habit.get(const.DATA_HABIT_WEEKLY_TARGET, const.DEFAULT_WEEKLY_TARGET),
                today,
            )
            is_hall_of_fame = habit.get(const.DATA_HABIT_HALL_OF_FAME_AT) is not None
            entry = {
                key: value
                for key, value in habit.items()
                if key != const.DATA_HABIT_CHECKS
            }
            entry.update(
                {
                    "checked_today": today in checked_dates,
                    "streak": streak["current_streak"],
                    "longest_streak": streak["longest_streak"],
                    "is_hall_of_fame": is_hall_of_fame,
                }
            )
            (retired if is_hall_of_fame else active).append(entry)

        active.sort(key=lambda item: item[const.DATA_HABIT_START_DATE], reverse=True)
        retired.sort(
            key=lambda item: item[const.DATA_HABIT_HALL_OF_FAME_AT], reverse=True
        )
        return active + retired

    def get_habit_history(
        self, user_id: str, habit_id: str, date_key: str | None = None
    ) -> dict[str, Any]:
        """Return a habit with its newest-first check records and streak stats.

        Raises:
            InvalidDateKeyError: If date_key is not a valid date key
            HabitNotFoundError: If the habit does not exist
        """
        today = (
            format_date_key(parse_date_key(date_key))
            if date_key is not None
            else dt_today_iso()
        )
        habit = self.store.get_habit(user_id, habit_id)
        records = sorted(
            habit.get(const.DATA_HABIT_CHECKS, {}).values(),
            key=lambda record: record[const.DATA_CHECK_DATE],
            reverse=True,
        )[: const.HISTORY_CHECK_LIMIT]
        checked_dates = _checked_dates(habit)
        streak = ContinuityEngine.compute_habit_streak(
            habit[const.DATA_HABIT_CADENCE],
            checked_dates,
            habit.get(const.DATA_HABIT_WEEKLY_TARGET, const.DEFAULT_WEEKLY_TARGET),
            today,
        )

        history = {
            key: value for key, value in habit.items() if key != const.DATA_HABIT_CHECKS
        }
        history["checks"] = [dict(record) for record in records]
        history["stats"] = {"total_days_checked": len(checked_dates), **streak}
        return history

    def build_snapshots(self, user_id: str) -> list[HabitSnapshot]:
        """Return read-only habit views for the statistics engine."""
        return [
            {
                "habit_id": habit[const.DATA_HABIT_INTERNAL_ID],
                "text": habit[const.DATA_HABIT_TEXT],
                "start_date": habit[const.DATA_HABIT_START_DATE],
                "is_hall_of_fame": habit.get(const.DATA_HABIT_HALL_OF_FAME_AT)
                is not None,
                "checked_dates": _checked_dates(habit),
            }
            for habit in self.store.iter_habits(user_id)
        ]
