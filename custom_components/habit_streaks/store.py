# File: store.py
"""Handles persistent data storage for the Habit Streaks integration.

Uses Home Assistant's Storage helper as the document store: one JSON document
holding every user's point total, ledger, habits and per-day check records,
addressed by key. Engines never touch it; managers read snapshots before a
computation and write results back after it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.storage import Store

from . import const

if TYPE_CHECKING:
    from collections.abc import Iterator

    from homeassistant.core import HomeAssistant

    from .type_defs import HabitData, UserData


class HabitNotFoundError(HomeAssistantError):
    """Raised when a referenced habit does not exist in storage.

    Not transient: callers surface it instead of retrying.

    Attributes:
        user_id: Owner the lookup was scoped to
        habit_id: The missing habit id
    """

    def __init__(self, user_id: str, habit_id: str) -> None:
        """Initialize HabitNotFoundError."""
        self.user_id = user_id
        self.habit_id = habit_id
        super().__init__(
            f"Habit '{habit_id}' not found for user '{user_id}'",
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_HABIT_NOT_FOUND,
            translation_placeholders={"habit_id": habit_id, "user_id": user_id},
        )


class HabitStreaksStore:
    """Handles persistent storage operations for Habit Streaks data.

    Thin wrapper around Home Assistant's Store API for loading, saving, and
    accessing data. Uses internal_id as the primary key for habits and the
    date key as the primary key for check records.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = {}  # In-memory data cache for quick access.

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
            },
            const.DATA_USERS: {},
        }

    @staticmethod
    def get_default_user() -> UserData:
        """Return an empty per-user container."""
        return {
            const.DATA_USER_TOTAL_POINTS: 0,
            const.DATA_USER_LEDGER: [],
            const.DATA_USER_HABITS: {},
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with an empty structure.
        """
        const.LOGGER.debug("DEBUG: HabitStreaksStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = HabitStreaksStore.get_default_structure()
        else:
            self._data = existing_data
            self._data.setdefault(const.DATA_USERS, {})
            const.LOGGER.debug(
                "DEBUG: Loaded existing data from storage: %s users",
                len(self._data[const.DATA_USERS]),
            )

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    async def async_save(self) -> None:
        """Save the current data structure to storage asynchronously.

        Errors are logged but do not stop execution.
        """
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Data saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s",
                err,
            )

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        self._data = HabitStreaksStore.get_default_structure()
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s", self._store.path
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @property
    def users(self) -> dict[str, UserData]:
        """Return the users collection."""
        return self._data.setdefault(const.DATA_USERS, {})

    def get_user(self, user_id: str) -> UserData:
        """Return a user's container, creating an empty one on first use."""
        user = self.users.get(user_id)
        if user is None:
            const.LOGGER.debug("DEBUG: Creating storage for user '%s'", user_id)
            user = HabitStreaksStore.get_default_user()
            self.users[user_id] = user
        return user

    def get_total_points(self, user_id: str) -> int:
        """Return a user's point total (0 for unknown users)."""
        user = self.users.get(user_id)
        if user is None:
            return 0
        return int(user.get(const.DATA_USER_TOTAL_POINTS, 0))

    def increment_points(self, user_id: str, delta: int) -> tuple[int, int]:
        """Apply a point delta to a user's total, floored at zero.

        The read and the write happen without yielding to the event loop, so
        the increment cannot interleave with another one.

        Returns:
            (old_total, new_total)
        """
        user = self.get_user(user_id)
        old_total = int(user.get(const.DATA_USER_TOTAL_POINTS, 0))
        new_total = max(0, old_total + delta)
        user[const.DATA_USER_TOTAL_POINTS] = new_total
        return old_total, new_total

    # ------------------------------------------------------------------
    # Habits
    # ------------------------------------------------------------------

    def get_habits(self, user_id: str) -> dict[str, HabitData]:
        """Return the habits of a user keyed by internal_id."""
        user = self.users.get(user_id)
        if user is None:
            return {}
        return user.setdefault(const.DATA_USER_HABITS, {})

    def iter_habits(self, user_id: str) -> Iterator[HabitData]:
        """Iterate over a user's habits."""
        yield from self.get_habits(user_id).values()

    def get_habit(self, user_id: str, habit_id: str) -> HabitData:
        """Return a habit.

        Raises:
            HabitNotFoundError: If the habit is not stored for the user
        """
        habit = self.get_habits(user_id).get(habit_id)
        if habit is None:
            raise HabitNotFoundError(user_id, habit_id)
        return habit

    def add_habit(self, user_id: str, habit: HabitData) -> None:
        """Store a new habit under its internal_id."""
        user = self.get_user(user_id)
        user[const.DATA_USER_HABITS][habit[const.DATA_HABIT_INTERNAL_ID]] = habit

    def remove_habit(self, user_id: str, habit_id: str) -> HabitData:
        """Remove and return a habit.

        Raises:
            HabitNotFoundError: If the habit is not stored for the user
        """
        habits = self.get_habits(user_id)
        if habit_id not in habits:
            raise HabitNotFoundError(user_id, habit_id)
        return habits.pop(habit_id)
