# File: utils/dt_utils.py
"""Calendar utilities for Habit Streaks.

Pure Python date functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

⚠️ UTILS PURITY: NO `homeassistant.*` imports allowed.
   Uses standard library: datetime, zoneinfo, plus dateutil.

Every habit date is a ``YYYY-MM-DD`` key on a fixed, UTC-anchored calendar.
Arithmetic is done on ``datetime.date`` values so no DST offset ever leaks in.
Only "today" depends on the configured local timezone.

Functions:
    - dt_today_local / dt_today_iso: Today's date in the local timezone
    - dt_now_utc / dt_now_iso: Current timestamp (UTC)
    - parse_date_key / format_date_key: Strict key <-> date conversion
    - add_days / days_between: Whole-day arithmetic
    - week_start: Monday on or before a date (weeks run Mon-Sun)
    - add_months / month_start / month_end: Calendar month arithmetic
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
import re
from zoneinfo import ZoneInfo

# Third-party date utilities (no HA dependency)
from dateutil.relativedelta import relativedelta

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# Default timezone - replaced with the Home Assistant zone during setup
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

DATE_KEY_FORMAT = "%Y-%m-%d"
_DATE_KEY_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class InvalidDateKeyError(ValueError):
    """Raised when a value is not a well-formed ``YYYY-MM-DD`` calendar date.

    Attributes:
        value: The rejected input
    """

    def __init__(self, value: object) -> None:
        """Initialize InvalidDateKeyError.

        Args:
            value: The rejected input
        """
        self.value = value
        super().__init__(f"Invalid date key: {value!r} (expected YYYY-MM-DD)")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the timezone used to resolve "today".

    Call this during integration setup with the Home Assistant timezone.

    Args:
        tz: ZoneInfo object representing the local timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in the local timezone.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Today's date in the specified timezone.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's date key (YYYY-MM-DD) in the local timezone.

    Example:
        "2025-04-07"
    """
    return format_date_key(dt_today_local(tz))


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


def dt_now_iso() -> str:
    """Return the current UTC timestamp as an ISO 8601 string."""
    return dt_now_utc().isoformat()


# ==============================================================================
# Date Key Conversion
# ==============================================================================


def parse_date_key(key: str) -> date:
    """Parse a ``YYYY-MM-DD`` key into a date.

    Anything else (wrong type, other layouts, impossible dates such as
    2024-02-30) is rejected rather than coerced.

    Args:
        key: Date key string

    Returns:
        The corresponding date

    Raises:
        InvalidDateKeyError: If the key is malformed or not a real date
    """
    if not isinstance(key, str) or not _DATE_KEY_PATTERN.match(key):
        _LOGGER.debug("DEBUG: Rejected malformed date key: %r", key)
        raise InvalidDateKeyError(key)
    try:
        return datetime.strptime(key, DATE_KEY_FORMAT).date()
    except ValueError as err:
        _LOGGER.debug("DEBUG: Rejected impossible date key: %r", key)
        raise InvalidDateKeyError(key) from err


def format_date_key(value: date) -> str:
    """Format a date (or the date part of a datetime) as ``YYYY-MM-DD``.

    Raises:
        InvalidDateKeyError: If value is not a date
    """
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        raise InvalidDateKeyError(value)
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


# ==============================================================================
# Day Arithmetic
# ==============================================================================


def add_days(key: str, days: int) -> str:
    """Return the key ``days`` days after ``key`` (negative goes back).

    Examples:
        add_days("2024-02-28", 1) → "2024-02-29"
        add_days("2024-03-01", -1) → "2024-02-29"

    Raises:
        InvalidDateKeyError: If the result falls outside 0001-01-01..9999-12-31
    """
    start = parse_date_key(key)
    try:
        return format_date_key(start + timedelta(days=days))
    except OverflowError as err:
        _LOGGER.debug("DEBUG: Date arithmetic out of range: %s %+d days", key, days)
        raise InvalidDateKeyError(key) from err


def days_between(start_key: str, end_key: str) -> int:
    """Return ``end - start`` in whole days (may be negative).

    Examples:
        days_between("2024-06-01", "2024-06-03") → 2
        days_between("2024-06-03", "2024-06-01") → -2
    """
    return (parse_date_key(end_key) - parse_date_key(start_key)).days


def week_start(key: str) -> str:
    """Return the Monday on or before ``key``.

    Weeks run Monday to Sunday, so a Sunday maps to the Monday six days
    earlier.

    Examples:
        week_start("2024-06-05") → "2024-06-03"  # Wednesday
        week_start("2024-06-09") → "2024-06-03"  # Sunday
    """
    day = parse_date_key(key)
    return format_date_key(day - timedelta(days=day.weekday()))


# ==============================================================================
# Month Arithmetic
# ==============================================================================


def add_months(key: str, months: int) -> str:
    """Shift ``key`` by whole calendar months, clamping the day of month.

    Examples:
        add_months("2024-03-31", -1) → "2024-02-29"

    Raises:
        InvalidDateKeyError: If the result falls outside the supported years
    """
    start = parse_date_key(key)
    try:
        return format_date_key(start + relativedelta(months=months))
    except (OverflowError, ValueError) as err:
        _LOGGER.debug(
            "DEBUG: Date arithmetic out of range: %s %+d months", key, months
        )
        raise InvalidDateKeyError(key) from err


def month_start(key: str) -> str:
    """Return the first day of the month containing ``key``."""
    return format_date_key(parse_date_key(key).replace(day=1))


def month_end(key: str) -> str:
    """Return the last day of the month containing ``key``."""
    return format_date_key(parse_date_key(key) + relativedelta(day=31))
