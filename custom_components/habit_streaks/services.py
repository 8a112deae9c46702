# File: services.py
"""Defines custom services for the Habit Streaks integration.

These services are the outer surface of the integration: scripts,
automations and dashboards create habits, toggle checks and request streak,
level and statistics data through them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv

from . import const
from .utils.dt_utils import (
    InvalidDateKeyError,
    dt_today_iso,
    format_date_key,
    parse_date_key,
)

if TYPE_CHECKING:
    from .managers import EconomyManager, HabitManager, StatisticsManager


def _date_key(value: Any) -> str:
    """Validate a YYYY-MM-DD date key."""
    try:
        return format_date_key(parse_date_key(value))
    except InvalidDateKeyError as err:
        raise vol.Invalid(f"Invalid date key: {value!r}") from err


# --- Service Schemas ---
_USER_FIELD = {vol.Optional(const.FIELD_USER_ID): cv.string}

CREATE_HABIT_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Required(const.FIELD_TEXT): vol.All(cv.string, vol.Length(min=1)),
        vol.Optional(const.FIELD_CADENCE, default=const.CADENCE_DAILY): vol.In(
            const.CADENCE_OPTIONS
        ),
        vol.Optional(
            const.FIELD_WEEKLY_TARGET, default=const.DEFAULT_WEEKLY_TARGET
        ): vol.All(
            vol.Coerce(int),
            vol.Range(min=const.MIN_WEEKLY_TARGET, max=const.MAX_WEEKLY_TARGET),
        ),
        vol.Optional(const.FIELD_START_DATE): _date_key,
    }
)

DELETE_HABIT_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Required(const.FIELD_HABIT_ID): cv.string,
    }
)

TOGGLE_CHECK_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Required(const.FIELD_HABIT_ID): cv.string,
        vol.Optional(const.FIELD_DATE): _date_key,
        vol.Required(const.FIELD_CHECKED): cv.boolean,
    }
)

GET_HABITS_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Optional(const.FIELD_DATE): _date_key,
    }
)

GET_HABIT_HISTORY_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Required(const.FIELD_HABIT_ID): cv.string,
        vol.Optional(const.FIELD_DATE): _date_key,
    }
)

GET_STATISTICS_SCHEMA = vol.Schema(
    {
        **_USER_FIELD,
        vol.Optional(const.FIELD_WEEKS, default=const.DEFAULT_STATS_WEEKS): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=const.MAX_STATS_PERIODS)
        ),
        vol.Optional(const.FIELD_MONTHS, default=const.DEFAULT_STATS_MONTHS): vol.All(
            vol.Coerce(int), vol.Range(min=0, max=const.MAX_STATS_PERIODS)
        ),
    }
)

GET_LEVEL_SCHEMA = vol.Schema(_USER_FIELD)

_SERVICES = (
    const.SERVICE_CREATE_HABIT,
    const.SERVICE_DELETE_HABIT,
    const.SERVICE_TOGGLE_CHECK,
    const.SERVICE_GET_HABITS,
    const.SERVICE_GET_HABIT_HISTORY,
    const.SERVICE_GET_STATISTICS,
    const.SERVICE_GET_LEVEL,
)


def _get_runtime(hass: HomeAssistant) -> dict[str, Any]:
    """Return the runtime objects of the loaded config entry.

    Raises:
        HomeAssistantError: If no entry is loaded
    """
    entries: dict[str, dict[str, Any]] = hass.data.get(const.DOMAIN, {})
    for runtime in entries.values():
        return runtime
    const.LOGGER.warning("WARNING: No Habit Streaks entry loaded")
    raise HomeAssistantError(
        "No Habit Streaks entry is loaded",
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_ERROR_NO_ENTRY,
    )


def _resolve_user_id(call: ServiceCall) -> str:
    """Return the explicit user, else the calling user, else the default one."""
    return (
        call.data.get(const.FIELD_USER_ID)
        or call.context.user_id
        or const.DEFAULT_USER_ID
    )


def _invalid_date(err: InvalidDateKeyError) -> ServiceValidationError:
    """Translate a calendar error into a service validation error."""
    return ServiceValidationError(
        str(err),
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_ERROR_INVALID_DATE,
        translation_placeholders={"value": str(err.value)},
    )


def _strip_checks(habit: dict[str, Any]) -> dict[str, Any]:
    """Return habit fields without the per-day check records."""
    return {
        key: value for key, value in habit.items() if key != const.DATA_HABIT_CHECKS
    }


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Habit Streaks services."""

    async def handle_create_habit(call: ServiceCall) -> ServiceResponse:
        """Handle creating a habit."""
        habit_manager: HabitManager = _get_runtime(hass)[const.HABIT_MANAGER]
        user_id = _resolve_user_id(call)
        try:
            habit = await habit_manager.async_create_habit(
                user_id,
                call.data[const.FIELD_TEXT],
                start_date=call.data.get(const.FIELD_START_DATE),
                cadence=call.data[const.FIELD_CADENCE],
                weekly_target=call.data[const.FIELD_WEEKLY_TARGET],
            )
        except InvalidDateKeyError as err:
            raise _invalid_date(err) from err

        if call.return_response:
            return {"habit": _strip_checks(dict(habit))}
        return None

    async def handle_delete_habit(call: ServiceCall) -> None:
        """Handle deleting a habit."""
        habit_manager: HabitManager = _get_runtime(hass)[const.HABIT_MANAGER]
        await habit_manager.async_delete_habit(
            _resolve_user_id(call), call.data[const.FIELD_HABIT_ID]
        )

    async def handle_toggle_check(call: ServiceCall) -> ServiceResponse:
        """Handle checking or un-checking a habit on a day."""
        habit_manager: HabitManager = _get_runtime(hass)[const.HABIT_MANAGER]
        user_id = _resolve_user_id(call)
        try:
            result = await habit_manager.async_toggle_check(
                user_id,
                call.data[const.FIELD_HABIT_ID],
                call.data.get(const.FIELD_DATE) or dt_today_iso(),
                call.data[const.FIELD_CHECKED],
            )
        except InvalidDateKeyError as err:
            raise _invalid_date(err) from err

        if call.return_response:
            return dict(result)
        return None

    async def handle_get_habits(call: ServiceCall) -> ServiceResponse:
        """Return a user's habits with today's state."""
        habit_manager: HabitManager = _get_runtime(hass)[const.HABIT_MANAGER]
        try:
            habits = habit_manager.get_habits(
                _resolve_user_id(call), call.data.get(const.FIELD_DATE)
            )
        except InvalidDateKeyError as err:
            raise _invalid_date(err) from err
        return {"habits": habits}

    async def handle_get_habit_history(call: ServiceCall) -> ServiceResponse:
        """Return a habit's check history and streak stats."""
        habit_manager: HabitManager = _get_runtime(hass)[const.HABIT_MANAGER]
        try:
            return habit_manager.get_habit_history(
                _resolve_user_id(call),
                call.data[const.FIELD_HABIT_ID],
                call.data.get(const.FIELD_DATE),
            )
        except InvalidDateKeyError as err:
            raise _invalid_date(err) from err

    async def handle_get_statistics(call: ServiceCall) -> ServiceResponse:
        """Return weekly, monthly and overall statistics."""
        stats_manager: StatisticsManager = _get_runtime(hass)[
            const.STATISTICS_MANAGER
        ]
        result = await stats_manager.async_get_statistics(
            _resolve_user_id(call),
            weeks=call.data[const.FIELD_WEEKS],
            months=call.data[const.FIELD_MONTHS],
        )
        return dict(result)

    async def handle_get_level(call: ServiceCall) -> ServiceResponse:
        """Return the level and recent ledger of a user."""
        economy_manager: EconomyManager = _get_runtime(hass)[const.ECONOMY_MANAGER]
        user_id = _resolve_user_id(call)
        ledger = economy_manager.get_ledger(user_id)
        return {
            **economy_manager.get_level(user_id),
            "recent_ledger": [
                dict(entry)
                for entry in reversed(ledger[-const.RECENT_LEDGER_ENTRIES :])
            ],
        }

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CREATE_HABIT,
        handle_create_habit,
        schema=CREATE_HABIT_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_DELETE_HABIT,
        handle_delete_habit,
        schema=DELETE_HABIT_SCHEMA,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_TOGGLE_CHECK,
        handle_toggle_check,
        schema=TOGGLE_CHECK_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_HABITS,
        handle_get_habits,
        schema=GET_HABITS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_HABIT_HISTORY,
        handle_get_habit_history,
        schema=GET_HABIT_HISTORY_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_STATISTICS,
        handle_get_statistics,
        schema=GET_STATISTICS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_GET_LEVEL,
        handle_get_level,
        schema=GET_LEVEL_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    const.LOGGER.info("INFO: Habit Streaks services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Habit Streaks services when unloading the integration."""
    for service in _SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Habit Streaks services have been unregistered")
