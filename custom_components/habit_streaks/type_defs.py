"""Type definitions for Habit Streaks data structures.

TypedDict is used for structures whose keys are fixed at design time
(stored habits, check records, engine results). Containers keyed by
runtime ids (users, habits, checks by date) are plain ``dict[str, ...]``.

IMPORTANT: This file must NOT import from managers or services to avoid
circular dependencies. TypedDict is static analysis only; runtime code keeps
its ``.get()`` defaults.
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

UserId = str
HabitId = str  # UUID string
ISODatetime = str  # "2026-01-18T12:30:00+00:00"
DateKey = str  # "2026-01-18"


# =============================================================================
# Stored Data
# =============================================================================


class CheckRecord(TypedDict):
    """One per-day check record of a habit (upserted by date)."""

    date: DateKey
    checked: bool
    created_at: ISODatetime
    updated_at: ISODatetime


class HabitData(TypedDict):
    """A tracked habit.

    hall_of_fame_at only ever moves from None to a timestamp.
    """

    internal_id: HabitId
    text: str
    cadence: str  # "daily" | "weekly"
    weekly_target: int
    start_date: DateKey
    end_date: DateKey | None
    hall_of_fame_at: ISODatetime | None
    created_at: ISODatetime
    checks: dict[DateKey, CheckRecord]


class LedgerEntry(TypedDict):
    """A single transaction in a user's point ledger.

    Created by: EconomyEngine.create_ledger_entry()
    Stored in: UserData["ledger"] (newest last)
    """

    timestamp: ISODatetime
    amount: int
    balance_after: int
    source: str  # "check" | "uncheck"
    reference_id: str | None
    item_name: NotRequired[str]


class UserData(TypedDict):
    """Per-user container: point total, ledger and habits."""

    total_points: int
    ledger: list[LedgerEntry]
    habits: dict[HabitId, HabitData]


# =============================================================================
# Continuity Engine Results
# =============================================================================


class StreakResult(TypedDict):
    """Displayed streak of a habit (days; weekly habits report weeks x 7)."""

    current_streak: int
    longest_streak: int
    current_week_checks: NotRequired[int]
    weekly_target: NotRequired[int]


class GapRuleProgress(TypedDict):
    """Hall-of-fame progress under the gap-tolerant rule."""

    progress_to_hall_of_fame: int
    current_run: int
    restart_count: int
    is_restart: bool
    is_hall_of_fame: bool


class GapTolerantStreak(TypedDict):
    """Gap-tolerant streak figures used by the statistics aggregator."""

    current_streak: int
    longest_streak: int
    restart_count: int


# =============================================================================
# Economy Engine Results
# =============================================================================


class PointsBreakdownItem(TypedDict):
    """A single line of a check award."""

    type: str
    points: int


class CheckPointsResult(TypedDict):
    """Points earned for a single unchecked -> checked transition."""

    points: int
    breakdown: list[PointsBreakdownItem]


class LevelInfo(TypedDict):
    """Level resolved from a point total."""

    total_points: int
    level: int
    title: str
    phase: str
    is_milestone: bool
    current_level_points: int
    next_level_points: int
    progress: int


class LevelTransition(TypedDict):
    """Level comparison between two point totals."""

    leveled_up: bool
    leveled_down: bool
    old_level: LevelInfo
    new_level: LevelInfo


class LevelChange(TypedDict):
    """Compact level change reported to callers."""

    old_level: int
    new_level: int
    new_title: str
    phase: str
    is_milestone: bool


class PointsApplication(TypedDict):
    """Outcome of applying a delta to a user's point total."""

    old_total: int
    new_total: int
    delta: int
    transition: LevelTransition


class CheckToggleResult(TypedDict):
    """Outcome of a check toggle workflow."""

    habit_id: HabitId
    date: DateKey
    checked: bool
    streak: int
    hall_of_fame_at: ISODatetime | None
    is_restart: bool
    points_earned: int
    points_lost: int
    breakdown: list[PointsBreakdownItem]
    level_up: LevelChange | None
    level_down: LevelChange | None
    level: LevelInfo | None


# =============================================================================
# Statistics Engine Inputs / Results
# =============================================================================


class HabitSnapshot(TypedDict):
    """Read-only view of one habit handed to the statistics engine."""

    habit_id: HabitId
    text: str
    start_date: DateKey
    is_hall_of_fame: bool
    checked_dates: list[DateKey]


class HabitBreakdown(TypedDict):
    """Per-habit figures inside a period."""

    habit_id: HabitId
    text: str
    checks: int
    possible_days: int
    rate: int


class PeriodData(TypedDict):
    """Completion figures for one week or month."""

    period_start: DateKey
    period_end: DateKey
    total_checks: int
    possible_checks: int
    completion_rate: int
    habit_breakdown: list[HabitBreakdown]
    week_start: NotRequired[DateKey]
    week_end: NotRequired[DateKey]
    month: NotRequired[str]


class BestHabit(TypedDict):
    """Best habit ranking entry."""

    habit_id: HabitId
    text: str
    current_streak: int
    total_checks: int
    completion_rate: int
    is_hall_of_fame: bool


class OverallStats(TypedDict):
    """Lifetime statistics across all habits."""

    total_checks: int
    average_streak_days: int
    longest_streak_ever: int
    total_restarts: int
    active_habits_count: int
    hall_of_fame_count: int
    total_days_tracked: int
    overall_completion_rate: int


class StatisticsResult(TypedDict):
    """Full statistics response."""

    weekly: list[PeriodData]
    monthly: list[PeriodData]
    best_habit_this_week: BestHabit | None
    best_habit_overall: BestHabit | None
    overall: OverallStats


# Event payloads are plain dicts (dispatcher passes a single dict argument)
EventPayload = dict[str, Any]


__all__ = [
    "BestHabit",
    "CheckPointsResult",
    "CheckRecord",
    "CheckToggleResult",
    "DateKey",
    "EventPayload",
    "GapRuleProgress",
    "GapTolerantStreak",
    "HabitBreakdown",
    "HabitData",
    "HabitId",
    "HabitSnapshot",
    "ISODatetime",
    "LedgerEntry",
    "LevelChange",
    "LevelInfo",
    "LevelTransition",
    "OverallStats",
    "PeriodData",
    "PointsApplication",
    "PointsBreakdownItem",
    "StatisticsResult",
    "StreakResult",
    "UserData",
    "UserId",
]
