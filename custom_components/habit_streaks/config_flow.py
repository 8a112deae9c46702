# File: config_flow.py
"""Config flow for the Habit Streaks integration.

Habit Streaks keeps all of its data in storage, so the flow only creates the
single config entry that owns that storage.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries

from . import const


class HabitStreaksConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Single-instance config flow for Habit Streaks."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Confirm setup; abort if an entry already exists."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        if user_input is not None:
            const.LOGGER.info("INFO: Creating Habit Streaks config entry")
            return self.async_create_entry(title=const.HABIT_STREAKS_TITLE, data={})

        return self.async_show_form(step_id="user", data_schema=vol.Schema({}))
