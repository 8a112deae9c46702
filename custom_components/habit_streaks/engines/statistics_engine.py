"""Statistics Engine - Period-based completion statistics across all habits.

This engine aggregates every habit of a user at once:
- Weekly breakdowns (Monday-Sunday weeks, current week truncated at today)
- Monthly breakdowns (calendar months, current month truncated at today)
- Best habit this week and best habit overall
- Lifetime statistics (checks, streaks, restarts, completion rate)

Design Principles:
    - Stateless: No manager reference, operates on passed HabitSnapshot lists
    - Total: Empty input and zero denominators have defined zero fallbacks
    - Deterministic: Same input, same output (safe to cache per day)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    add_days,
    add_months,
    days_between,
    format_date_key,
    month_end,
    month_start,
    parse_date_key,
    week_start,
)
from ..utils.math_utils import calculate_rate, clamp, round_half_up
from .continuity_engine import ContinuityEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..type_defs import (
        BestHabit,
        HabitBreakdown,
        HabitSnapshot,
        OverallStats,
        PeriodData,
        StatisticsResult,
    )


def _checked_keys(habit: HabitSnapshot) -> list[str]:
    """Return a habit's checked dates as sorted, unique, canonical keys."""
    return sorted(
        {format_date_key(parse_date_key(key)) for key in habit["checked_dates"]}
    )


def _count_between(keys: Sequence[str], start: str, end: str) -> int:
    """Count canonical date keys within [start, end] (keys sort as dates)."""
    return sum(1 for key in keys if start <= key <= end)


class StatisticsEngine:
    """Unified engine for period and lifetime statistics.

    All methods are stateless - they operate on data passed as arguments.
    The engine does NOT read or persist data; StatisticsManager builds the
    HabitSnapshot list from storage and owns caching.

    Example:
        stats = StatisticsEngine()
        result = stats.compute_statistics(snapshots, "2026-01-19")
        result["weekly"][0]["completion_rate"]  # current week
    """

    # ────────────────────────────────────────────────────────────────
    # Period Windows
    # ────────────────────────────────────────────────────────────────

    def get_period_windows(
        self, today: str, period_count: int, period: str
    ) -> list[tuple[str, str]]:
        """Return ``(start, end)`` date keys for the last N periods.

        Newest period first. The current period ends at today.

        Args:
            today: Reference date key
            period_count: Number of periods (0 gives an empty list)
            period: const.PERIOD_WEEK or const.PERIOD_MONTH

        Raises:
            ValueError: If period is not a known period type
        """
        windows: list[tuple[str, str]] = []
        if period == const.PERIOD_WEEK:
            current_monday = week_start(today)
            for offset in range(period_count):
                start = add_days(current_monday, -const.DAYS_PER_WEEK * offset)
                end = today if offset == 0 else add_days(start, const.DAYS_PER_WEEK - 1)
                windows.append((start, end))
        elif period == const.PERIOD_MONTH:
            for offset in range(period_count):
                anchor = add_months(today, -offset)
                end = today if offset == 0 else month_end(anchor)
                windows.append((month_start(anchor), end))
        else:
            raise ValueError(f"Unknown period type: {period}")
        return windows

    # ────────────────────────────────────────────────────────────────
    # Weekly / Monthly Breakdown
    # ────────────────────────────────────────────────────────────────

    def summarize_period(
        self, habits: Sequence[HabitSnapshot], start: str, end: str
    ) -> PeriodData:
        """Compute completion figures for one window.

        A habit is trackable from max(start_date, start) through end. Habits
        with no trackable day in the window (started after it ended) are left
        out of the breakdown and of the totals.

        Args:
            habits: Habit snapshots
            start: First day of the window
            end: Last day of the window (inclusive)

        Returns:
            PeriodData without period-specific labels
        """
        breakdown: list[HabitBreakdown] = []
        total_checks = 0
        possible_checks = 0

        for habit in habits:
            effective_start = max(
                format_date_key(parse_date_key(habit["start_date"])), start
            )
            possible_days = days_between(effective_start, end) + 1
            if possible_days <= 0:
                continue

            checks = _count_between(_checked_keys(habit), start, end)
            breakdown.append(
                {
                    "habit_id": habit["habit_id"],
                    "text": habit["text"],
                    "checks": checks,
                    "possible_days": possible_days,
                    "rate": calculate_rate(checks, possible_days),
                }
            )
            total_checks += checks
            possible_checks += possible_days

        return {
            "period_start": start,
            "period_end": end,
            "total_checks": total_checks,
            "possible_checks": possible_checks,
            "completion_rate": calculate_rate(total_checks, possible_checks),
            "habit_breakdown": breakdown,
        }

    def compute_period_data(
        self,
        habits: Sequence[HabitSnapshot],
        today: str,
        period_count: int,
        period: str = const.PERIOD_WEEK,
    ) -> list[PeriodData]:
        """Compute the last N weekly or monthly breakdowns, newest first.

        Weekly entries carry week_start/week_end; monthly entries carry month
        (``YYYY-MM``).
        """
        results: list[PeriodData] = []
        for start, end in self.get_period_windows(today, period_count, period):
            data = self.summarize_period(habits, start, end)
            if period == const.PERIOD_WEEK:
                data["week_start"] = start
                data["week_end"] = end
            else:
                data["month"] = start[:7]
            results.append(data)
        return results

    # ────────────────────────────────────────────────────────────────
    # Best Habit Rankings
    # ────────────────────────────────────────────────────────────────

    def compute_best_habit_this_week(
        self, habits: Sequence[HabitSnapshot], today: str
    ) -> BestHabit | None:
        """Pick the habit with the best trailing-7-day score.

        Score is ``checks in [today-6, today] + current_streak / 10`` using the
        gap-tolerant current streak. Only habits with at least one check in
        the window qualify; ties keep the first habit in input order.

        Returns:
            BestHabit, or None if no habit was checked in the window
        """
        window_start = add_days(today, -(const.DAYS_PER_WEEK - 1))
        best: BestHabit | None = None
        best_score = -1.0

        for habit in habits:
            keys = _checked_keys(habit)
            checks_this_week = _count_between(keys, window_start, today)
            if checks_this_week == 0:
                continue

            current_streak = ContinuityEngine.compute_gap_tolerant_streak(
                keys, today
            )["current_streak"]
            score = checks_this_week + current_streak / const.BEST_HABIT_STREAK_DIVISOR
            if score > best_score:
                best_score = score
                best = {
                    "habit_id": habit["habit_id"],
                    "text": habit["text"],
                    "current_streak": current_streak,
                    "total_checks": len(keys),
                    "completion_rate": round_half_up(
                        min(100, checks_this_week * 100 / const.DAYS_PER_WEEK)
                    ),
                    "is_hall_of_fame": habit["is_hall_of_fame"],
                }

        return best

    def compute_best_habit_overall(
        self, habits: Sequence[HabitSnapshot], today: str
    ) -> BestHabit | None:
        """Pick the habit with the most lifetime checks (first wins on ties).

        Completion rate is lifetime checks over days since start (at least
        one day), clamped to [0, 100].
        """
        best: BestHabit | None = None
        best_total = -1

        for habit in habits:
            keys = _checked_keys(habit)
            if len(keys) <= best_total:
                continue

            best_total = len(keys)
            days_from_start = max(1, days_between(habit["start_date"], today) + 1)
            best = {
                "habit_id": habit["habit_id"],
                "text": habit["text"],
                "current_streak": ContinuityEngine.compute_gap_tolerant_streak(
                    keys, today
                )["current_streak"],
                "total_checks": best_total,
                "completion_rate": int(
                    clamp(calculate_rate(best_total, days_from_start), 0, 100)
                ),
                "is_hall_of_fame": habit["is_hall_of_fame"],
            }

        return best

    # ────────────────────────────────────────────────────────────────
    # Lifetime Statistics
    # ────────────────────────────────────────────────────────────────

    def compute_overall_stats(
        self, habits: Sequence[HabitSnapshot], today: str
    ) -> OverallStats:
        """Compute lifetime statistics across all habits.

        average_streak_days is the rounded mean of gap-tolerant current
        streaks; total_days_tracked sums each habit's inclusive days since
        start (habits starting in the future contribute 0).
        """
        total_checks = 0
        total_streak_days = 0
        longest_streak_ever = 0
        total_restarts = 0
        total_days_tracked = 0
        hall_of_fame_count = 0

        for habit in habits:
            keys = _checked_keys(habit)
            total_checks += len(keys)

            streak = ContinuityEngine.compute_gap_tolerant_streak(keys, today)
            total_streak_days += streak["current_streak"]
            longest_streak_ever = max(longest_streak_ever, streak["longest_streak"])
            total_restarts += streak["restart_count"]

            total_days_tracked += max(0, days_between(habit["start_date"], today) + 1)
            if habit["is_hall_of_fame"]:
                hall_of_fame_count += 1

        return {
            "total_checks": total_checks,
            "average_streak_days": (
                round_half_up(total_streak_days / len(habits)) if habits else 0
            ),
            "longest_streak_ever": longest_streak_ever,
            "total_restarts": total_restarts,
            "active_habits_count": len(habits) - hall_of_fame_count,
            "hall_of_fame_count": hall_of_fame_count,
            "total_days_tracked": total_days_tracked,
            "overall_completion_rate": calculate_rate(total_checks, total_days_tracked),
        }

    def compute_statistics(
        self,
        habits: Sequence[HabitSnapshot],
        today: str,
        weeks: int = const.DEFAULT_STATS_WEEKS,
        months: int = const.DEFAULT_STATS_MONTHS,
    ) -> StatisticsResult:
        """Compute the full statistics response for one user."""
        return {
            "weekly": self.compute_period_data(habits, today, weeks, const.PERIOD_WEEK),
            "monthly": self.compute_period_data(
                habits, today, months, const.PERIOD_MONTH
            ),
            "best_habit_this_week": self.compute_best_habit_this_week(habits, today),
            "best_habit_overall": self.compute_best_habit_overall(habits, today),
            "overall": self.compute_overall_stats(habits, today),
        }
