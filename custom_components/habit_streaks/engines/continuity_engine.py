"""Continuity Engine - Pure logic for streaks, restarts and hall-of-fame progress.

This engine provides stateless, pure Python functions for:
- Displayed daily streaks (strict: every calendar day must be checked)
- Displayed weekly streaks (weeks meeting a per-week target, reported x7)
- Hall-of-fame progress under the gap-tolerant continuity rule
- Gap-tolerant streak figures for the statistics aggregator

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
State management belongs in HabitManager.

Two continuity rules coexist on purpose:
- STRICT: the streak shown next to a habit breaks on any missed day.
- GAP-TOLERANT: a habit keeps "continuing" while consecutive checks are at
  most MAX_GAP_DAYS apart; a larger gap resets the run and counts a restart.
  Hall-of-fame eligibility and restart bonuses use this rule.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import parse_date_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import GapRuleProgress, GapTolerantStreak, StreakResult


_ONE_DAY = timedelta(days=1)
_ONE_WEEK = timedelta(days=const.DAYS_PER_WEEK)


def _sorted_unique_dates(date_keys: Iterable[str]) -> list[date]:
    """Parse date keys, drop duplicates and sort ascending."""
    return sorted({parse_date_key(key) for key in date_keys})


def _monday_of(day: date) -> date:
    """Return the Monday on or before day."""
    return day - timedelta(days=day.weekday())


def _step_back(day: date, step: timedelta) -> date | None:
    """Return day minus step, or None before the first representable date."""
    if day - date.min < step:
        return None
    return day - step


class ContinuityEngine:
    """Pure logic engine for continuity evaluation.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.

    Inputs are date keys (``YYYY-MM-DD``); malformed keys raise
    InvalidDateKeyError from the calendar utilities.
    """

    # =========================================================================
    # STRICT DAILY STREAK
    # =========================================================================

    @staticmethod
    def compute_daily_streak(checked_dates: Iterable[str], today: str) -> StreakResult:
        """Compute the displayed streak of a daily habit.

        Current streak walks back from today one day at a time while each
        day is checked, so an unchecked today means a current streak of 0.
        Longest streak is the longest run of consecutive calendar days.

        Args:
            checked_dates: Date keys of checked days
            today: Reference date key

        Returns:
            StreakResult with current_streak and longest_streak (days)
        """
        days = _sorted_unique_dates(checked_dates)
        cursor: date | None = parse_date_key(today)
        if not days:
            return {"current_streak": 0, "longest_streak": 0}

        present = set(days)
        current_streak = 0
        while cursor is not None and cursor in present:
            current_streak += 1
            cursor = _step_back(cursor, _ONE_DAY)

        longest_streak = 1
        run = 1
        for prev, curr in zip(days, days[1:]):
            if prev + _ONE_DAY == curr:
                run += 1
                longest_streak = max(longest_streak, run)
            else:
                run = 1

        return {"current_streak": current_streak, "longest_streak": longest_streak}

    # =========================================================================
    # GAP-TOLERANT HALL-OF-FAME PROGRESS
    # =========================================================================

    @staticmethod
    def compute_progress_with_gap_rule(
        check_dates: Iterable[str],
        today: str,
        *,
        max_gap_days: int = const.MAX_GAP_DAYS,
        hall_of_fame_days: int = const.HALL_OF_FAME_DAYS,
    ) -> GapRuleProgress:
        """Compute hall-of-fame progress and restarts for a habit.

        Checks are scanned in ascending order. A gap of at most max_gap_days
        between neighbours extends the run; a wider gap resets the run to 1
        and counts a restart. If the last check is more than max_gap_days
        before today the run decays to 0 and one more restart is counted.

        is_restart flags a comeback: there has been a reset and the current
        run is still shorter than RESTART_PROGRESS_WINDOW, so the bonus only
        fires right after returning, not on every later check.

        Args:
            check_dates: Date keys of checked days
            today: Reference date key (the toggled day for check workflows)
            max_gap_days: Widest tolerated gap
            hall_of_fame_days: Run length that reaches the hall of fame

        Returns:
            GapRuleProgress dict
        """
        days = _sorted_unique_dates(check_dates)
        reference = parse_date_key(today)
        if not days:
            return {
                "progress_to_hall_of_fame": 0,
                "current_run": 0,
                "restart_count": 0,
                "is_restart": False,
                "is_hall_of_fame": False,
            }

        run = 1
        restart_count = 0
        for prev, curr in zip(days, days[1:]):
            if (curr - prev).days <= max_gap_days:
                run += 1
            else:
                run = 1
                restart_count += 1

        # Inactive habits decay even without a new check
        if (reference - days[-1]).days > max_gap_days:
            run = 0
            restart_count += 1

        progress = min(hall_of_fame_days, run)
        return {
            "progress_to_hall_of_fame": progress,
            "current_run": run,
            "restart_count": restart_count,
            "is_restart": (
                restart_count > 0 and progress < const.RESTART_PROGRESS_WINDOW
            ),
            "is_hall_of_fame": run >= hall_of_fame_days,
        }

    # =========================================================================
    # WEEKLY STREAK
    # =========================================================================

    @staticmethod
    def compute_weekly_streak(
        checked_dates: Iterable[str],
        weekly_target: int,
        today: str,
    ) -> StreakResult:
        """Compute the displayed streak of a weekly habit.

        Checked days are bucketed by Monday-aligned week; a week succeeds
        when its bucket holds at least weekly_target checks.

        The current streak counts back from the current week when it already
        succeeds. Otherwise the week in progress is given grace and counting
        starts from the week before, if that one succeeded.

        The longest streak scans bucket weeks in order and only chains weeks
        that are exactly seven days apart.

        Both streak values are reported in days (weeks x 7).

        Args:
            checked_dates: Date keys of checked days
            weekly_target: Checks needed for a week to count (>= 1)
            today: Reference date key

        Returns:
            StreakResult including current_week_checks and weekly_target
        """
        target = max(const.MIN_WEEKLY_TARGET, int(weekly_target))
        days = _sorted_unique_dates(checked_dates)
        current_week = _monday_of(parse_date_key(today))

        weekly_checks: Counter[date] = Counter(_monday_of(day) for day in days)
        current_week_checks = weekly_checks.get(current_week, 0)

        def succeeded(week: date) -> bool:
            return weekly_checks.get(week, 0) >= target

        previous_week = _step_back(current_week, _ONE_WEEK)
        if succeeded(current_week):
            cursor: date | None = current_week
        elif previous_week is not None and succeeded(previous_week):
            cursor = previous_week
        else:
            cursor = None

        current_weeks = 0
        while cursor is not None and succeeded(cursor):
            current_weeks += 1
            cursor = _step_back(cursor, _ONE_WEEK)

        longest_weeks = 0
        run = 0
        sorted_weeks = sorted(weekly_checks)
        for index, week in enumerate(sorted_weeks):
            if not succeeded(week):
                run = 0
                continue
            run += 1
            longest_weeks = max(longest_weeks, run)
            next_index = index + 1
            if next_index < len(sorted_weeks) and (
                week + _ONE_WEEK != sorted_weeks[next_index]
            ):
                run = 0

        return {
            "current_streak": current_weeks * const.DAYS_PER_WEEK,
            "longest_streak": longest_weeks * const.DAYS_PER_WEEK,
            "current_week_checks": current_week_checks,
            "weekly_target": target,
        }

    @staticmethod
    def compute_habit_streak(
        cadence: str,
        checked_dates: Iterable[str],
        weekly_target: int,
        today: str,
    ) -> StreakResult:
        """Dispatch to the displayed streak variant matching a habit's cadence."""
        if cadence == const.CADENCE_WEEKLY:
            return ContinuityEngine.compute_weekly_streak(
                checked_dates, weekly_target, today
            )
        return ContinuityEngine.compute_daily_streak(checked_dates, today)

    # =========================================================================
    # GAP-TOLERANT STREAK (STATISTICS)
    # =========================================================================

    @staticmethod
    def compute_gap_tolerant_streak(
        checked_dates: Iterable[str],
        today: str,
        *,
        max_gap_days: int = const.MAX_GAP_DAYS,
    ) -> GapTolerantStreak:
        """Compute gap-tolerant current/longest streaks and restarts.

        Current streak walks back from today: each check within max_gap_days
        of the previous anchor is counted and becomes the new anchor.

        Longest streak and restarts come from an ascending pairwise scan.
        Unlike compute_progress_with_gap_rule there is no trailing decay, so
        an inactive habit is not charged an extra restart here.

        Args:
            checked_dates: Date keys of checked days
            today: Reference date key
            max_gap_days: Widest tolerated gap

        Returns:
            GapTolerantStreak dict
        """
        days = _sorted_unique_dates(checked_dates)
        anchor = parse_date_key(today)
        if not days:
            return {"current_streak": 0, "longest_streak": 0, "restart_count": 0}

        current_streak = 0
        for day in reversed(days):
            if (anchor - day).days > max_gap_days:
                break
            current_streak += 1
            anchor = day

        longest_streak = 1
        run = 1
        restart_count = 0
        for prev, curr in zip(days, days[1:]):
            if (curr - prev).days <= max_gap_days:
                run += 1
                longest_streak = max(longest_streak, run)
            else:
                run = 1
                restart_count += 1

        return {
            "current_streak": current_streak,
            "longest_streak": longest_streak,
            "restart_count": restart_count,
        }
