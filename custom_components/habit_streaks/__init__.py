# File: __init__.py
"""Initialization file for the Habit Streaks integration.

Handles setting up the integration: loading the config entry, initializing
the document store, wiring the managers together and registering services.

Key Features:
- Config entry setup, unload and removal support.
- Local timezone taken from the Home Assistant configuration.
- Storage management for persistent habit and point data.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from . import const
from .managers import EconomyManager, HabitManager, StatisticsManager
from .services import async_setup_services, async_unload_services
from .store import HabitStreaksStore
from .utils.dt_utils import set_default_timezone


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Setting up Habit Streaks entry: %s", entry.entry_id)

    time_zone = dt_util.get_time_zone(hass.config.time_zone)
    if time_zone is not None:
        set_default_timezone(time_zone)

    store = HabitStreaksStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    economy_manager = EconomyManager(hass, entry, store)
    habit_manager = HabitManager(hass, entry, store, economy_manager)
    statistics_manager = StatisticsManager(hass, entry, store, habit_manager)
    for manager in (economy_manager, habit_manager, statistics_manager):
        await manager.async_setup()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.STORE: store,
        const.ECONOMY_MANAGER: economy_manager,
        const.HABIT_MANAGER: habit_manager,
        const.STATISTICS_MANAGER: statistics_manager,
    }

    async_setup_services(hass)

    const.LOGGER.info("INFO: Habit Streaks setup complete: %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Habit Streaks entry: %s", entry.entry_id)

    hass.data[const.DOMAIN].pop(entry.entry_id, None)
    if not hass.data[const.DOMAIN]:
        await async_unload_services(hass)

    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by deleting its storage file."""
    const.LOGGER.info("INFO: Removing Habit Streaks entry: %s", entry.entry_id)

    await HabitStreaksStore(hass, const.STORAGE_KEY).async_delete_storage()

    const.LOGGER.info("INFO: Habit Streaks entry data cleared: %s", entry.entry_id)
