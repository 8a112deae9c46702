"""Direct unit tests for HabitStreaksStore.

Tests the document store wrapper: default structure, user and habit access,
point increments and persistence through Home Assistant's Storage helper.
"""

# pylint: disable=protected-access  # Accessing _store for testing
# pylint: disable=redefined-outer-name  # Pytest fixtures redefine names
# pylint: disable=unused-argument  # Test fixtures may be unused in simple tests

from typing import Any
from unittest.mock import patch

import pytest
from homeassistant.core import HomeAssistant

from custom_components.habit_streaks import const
from custom_components.habit_streaks.store import HabitNotFoundError, HabitStreaksStore


@pytest.fixture
def store(hass: HomeAssistant) -> HabitStreaksStore:
    """Return a store instance with an empty structure."""
    instance = HabitStreaksStore(hass)
    instance._data = HabitStreaksStore.get_default_structure()
    return instance


def _habit(habit_id: str = "habit_1") -> dict[str, Any]:
    return {
        const.DATA_HABIT_INTERNAL_ID: habit_id,
        const.DATA_HABIT_TEXT: "Stretch",
        const.DATA_HABIT_CADENCE: const.CADENCE_DAILY,
        const.DATA_HABIT_WEEKLY_TARGET: const.DEFAULT_WEEKLY_TARGET,
        const.DATA_HABIT_START_DATE: "2024-06-01",
        const.DATA_HABIT_END_DATE: None,
        const.DATA_HABIT_HALL_OF_FAME_AT: None,
        const.DATA_HABIT_CREATED_AT: "2024-06-01T08:00:00+00:00",
        const.DATA_HABIT_CHECKS: {},
    }


async def test_async_initialize_creates_default_structure(hass: HomeAssistant) -> None:
    """A fresh install starts with the empty document."""
    store = HabitStreaksStore(hass)
    with patch.object(store._store, "async_load", return_value=None):
        await store.async_initialize()

    assert store.data == {
        const.DATA_META: {const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION},
        const.DATA_USERS: {},
    }


async def test_async_initialize_loads_existing_data(hass: HomeAssistant) -> None:
    """Existing documents are used as-is."""
    existing = {
        const.DATA_USERS: {
            "alice": {
                const.DATA_USER_TOTAL_POINTS: 7,
                const.DATA_USER_LEDGER: [],
                const.DATA_USER_HABITS: {"habit_1": _habit()},
            }
        }
    }
    store = HabitStreaksStore(hass)
    with patch.object(store._store, "async_load", return_value=existing):
        await store.async_initialize()

    assert store.get_total_points("alice") == 7
    assert store.get_habit("alice", "habit_1")[const.DATA_HABIT_TEXT] == "Stretch"


async def test_get_user_creates_empty_container(store: HabitStreaksStore) -> None:
    """Users are created lazily on first write access."""
    assert "bob" not in store.users
    user = store.get_user("bob")

    assert user == HabitStreaksStore.get_default_user()
    assert store.users["bob"] is user


async def test_reads_do_not_create_users(store: HabitStreaksStore) -> None:
    """Read accessors return empty defaults without creating users."""
    assert store.get_total_points("ghost") == 0
    assert store.get_habits("ghost") == {}
    assert list(store.iter_habits("ghost")) == []
    assert "ghost" not in store.users


async def test_increment_points_floors_at_zero(store: HabitStreaksStore) -> None:
    """Totals never go negative."""
    assert store.increment_points("alice", 5) == (0, 5)
    assert store.increment_points("alice", -2) == (5, 3)
    assert store.increment_points("alice", -10) == (3, 0)
    assert store.get_total_points("alice") == 0


async def test_habit_add_get_remove(store: HabitStreaksStore) -> None:
    """Habits are keyed by internal_id and scoped per user."""
    store.add_habit("alice", _habit())

    habit = store.get_habit("alice", "habit_1")
    assert habit[const.DATA_HABIT_START_DATE] == "2024-06-01"
    with pytest.raises(HabitNotFoundError):
        store.get_habit("bob", "habit_1")

    removed = store.remove_habit("alice", "habit_1")
    assert removed[const.DATA_HABIT_INTERNAL_ID] == "habit_1"
    with pytest.raises(HabitNotFoundError) as err:
        store.remove_habit("alice", "habit_1")

    assert err.value.habit_id == "habit_1"
    assert err.value.translation_key == const.TRANS_KEY_ERROR_HABIT_NOT_FOUND


async def test_async_save_writes_document(
    hass: HomeAssistant, hass_storage: dict[str, Any], store: HabitStreaksStore
) -> None:
    """Saving persists the whole document under the storage key."""
    store.add_habit("alice", _habit())
    store.increment_points("alice", 3)

    await store.async_save()

    saved = hass_storage[const.STORAGE_KEY]
    assert saved["version"] == const.STORAGE_VERSION
    assert saved["data"][const.DATA_USERS]["alice"][const.DATA_USER_TOTAL_POINTS] == 3


async def test_async_save_logs_os_errors(store: HabitStreaksStore) -> None:
    """File system errors are logged instead of raised."""
    with (
        patch.object(store._store, "async_save", side_effect=OSError("disk full")),
        patch.object(const.LOGGER, "error") as mock_error,
    ):
        await store.async_save()

    mock_error.assert_called_once()


async def test_async_delete_storage(
    hass: HomeAssistant, hass_storage: dict[str, Any], store: HabitStreaksStore
) -> None:
    """Deleting storage removes the file and resets memory."""
    store.add_habit("alice", _habit())
    await store.async_save()
    assert const.STORAGE_KEY in hass_storage

    await store.async_delete_storage()

    assert const.STORAGE_KEY not in hass_storage
    assert store.users == {}
