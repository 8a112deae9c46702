"""Diagnostics support for Habit Streaks integration.

The diagnostics JSON returns the raw storage document so a user's habits,
check records, point totals and ledgers can be inspected or restored.
"""

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .store import HabitStreaksStore


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry.

    Returns the raw storage data directly, identical to the
    habit_streaks_data file.
    """
    store: HabitStreaksStore = hass.data[const.DOMAIN][entry.entry_id][const.STORE]
    return store.data
