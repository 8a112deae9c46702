"""Tests for StatisticsEngine.

Tests cover:
- Period windows (Monday-aligned weeks, calendar months, truncation at today)
- Period summaries (per-habit breakdown, exclusion of not-yet-started habits)
- Best habit this week and overall
- Lifetime statistics
"""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest

from custom_components.habit_streaks import const
from custom_components.habit_streaks.engines.continuity_engine import (
    ContinuityEngine,
)
from custom_components.habit_streaks.engines.statistics_engine import StatisticsEngine
from custom_components.habit_streaks.type_defs import HabitSnapshot
from custom_components.habit_streaks.utils.dt_utils import add_days

TODAY = "2024-06-19"  # Wednesday


@pytest.fixture
def stats() -> StatisticsEngine:
    """Return a StatisticsEngine instance."""
    return StatisticsEngine()


def _habit(
    habit_id: str,
    start_date: str,
    checked_dates: list[str],
    *,
    is_hall_of_fame: bool = False,
) -> HabitSnapshot:
    """Build a habit snapshot."""
    return {
        "habit_id": habit_id,
        "text": f"Habit {habit_id}",
        "start_date": start_date,
        "is_hall_of_fame": is_hall_of_fame,
        "checked_dates": checked_dates,
    }


# =============================================================================
# Period windows
# =============================================================================


class TestPeriodWindows:
    """Tests for get_period_windows."""

    def test_weeks_are_monday_aligned(self, stats: StatisticsEngine) -> None:
        """The current week runs Monday to today, older weeks Monday to Sunday."""
        windows = stats.get_period_windows(TODAY, 3, const.PERIOD_WEEK)
        assert windows == [
            ("2024-06-17", "2024-06-19"),
            ("2024-06-10", "2024-06-16"),
            ("2024-06-03", "2024-06-09"),
        ]

    def test_months_are_calendar_months(self, stats: StatisticsEngine) -> None:
        """The current month is truncated at today."""
        windows = stats.get_period_windows(TODAY, 3, const.PERIOD_MONTH)
        assert windows == [
            ("2024-06-01", "2024-06-19"),
            ("2024-05-01", "2024-05-31"),
            ("2024-04-01", "2024-04-30"),
        ]

    def test_month_end_clamps(self, stats: StatisticsEngine) -> None:
        """Stepping back from the 31st lands in the shorter month."""
        windows = stats.get_period_windows("2024-03-31", 2, const.PERIOD_MONTH)
        assert windows[1] == ("2024-02-01", "2024-02-29")

    def test_zero_periods(self, stats: StatisticsEngine) -> None:
        """Zero periods gives no windows."""
        assert stats.get_period_windows(TODAY, 0, const.PERIOD_WEEK) == []

    def test_unknown_period(self, stats: StatisticsEngine) -> None:
        """Unknown period types are rejected."""
        with pytest.raises(ValueError):
            stats.get_period_windows(TODAY, 1, "fortnight")


# =============================================================================
# Period summaries
# =============================================================================


class TestSummarizePeriod:
    """Tests for summarize_period and compute_period_data."""

    def test_per_habit_breakdown(self, stats: StatisticsEngine) -> None:
        """Possible days start at the later of habit start and window start."""
        habits = [
            _habit("a", "2024-06-01", ["2024-06-17", "2024-06-18", "2024-06-10"]),
            _habit("b", "2024-06-18", ["2024-06-18"]),
        ]
        data = stats.summarize_period(habits, "2024-06-17", TODAY)

        assert [item["habit_id"] for item in data["habit_breakdown"]] == ["a", "b"]
        first, second = data["habit_breakdown"]
        assert (first["checks"], first["possible_days"], first["rate"]) == (2, 3, 67)
        assert (second["checks"], second["possible_days"], second["rate"]) == (
            1,
            2,
            50,
        )
        assert data["total_checks"] == 3
        assert data["possible_checks"] == 5
        assert data["completion_rate"] == 60

    def test_habit_started_after_window_is_excluded(
        self, stats: StatisticsEngine
    ) -> None:
        """A habit with no trackable day adds nothing and divides by nothing."""
        habits = [_habit("late", "2024-06-20", [])]
        data = stats.summarize_period(habits, "2024-06-17", TODAY)

        assert data["habit_breakdown"] == []
        assert data["total_checks"] == 0
        assert data["possible_checks"] == 0
        assert data["completion_rate"] == 0

    def test_empty_input(self, stats: StatisticsEngine) -> None:
        """No habits is a valid, empty period."""
        data = stats.summarize_period([], "2024-06-17", TODAY)
        assert data["completion_rate"] == 0
        assert data["habit_breakdown"] == []

    def test_weekly_labels(self, stats: StatisticsEngine) -> None:
        """Weekly entries carry week_start / week_end."""
        periods = stats.compute_period_data([], TODAY, 2, const.PERIOD_WEEK)
        assert periods[0]["week_start"] == "2024-06-17"
        assert periods[0]["week_end"] == TODAY
        assert periods[1]["week_start"] == "2024-06-10"
        assert periods[1]["week_end"] == "2024-06-16"

    def test_monthly_labels(self, stats: StatisticsEngine) -> None:
        """Monthly entries carry a YYYY-MM label."""
        periods = stats.compute_period_data([], TODAY, 2, const.PERIOD_MONTH)
        assert [period["month"] for period in periods] == ["2024-06", "2024-05"]
        assert periods[1]["period_end"] == "2024-05-31"

    def test_monthly_counts(self, stats: StatisticsEngine) -> None:
        """Checks are attributed to the month they fall in."""
        habits = [_habit("a", "2024-05-01", ["2024-05-31", "2024-06-01", "2024-06-19"])]
        june, may = stats.compute_period_data(habits, TODAY, 2, const.PERIOD_MONTH)
        assert (june["total_checks"], june["possible_checks"]) == (2, 19)
        assert (may["total_checks"], may["possible_checks"]) == (1, 31)
        assert may["completion_rate"] == 3


# =============================================================================
# Best habits
# =============================================================================


class TestBestHabitThisWeek:
    """Tests for compute_best_habit_this_week."""

    def test_streak_weight_can_outrank_volume(self, stats: StatisticsEngine) -> None:
        """A: 3 checks, streak 10 (score 4) loses to B: 2 checks, streak 50 (7)."""
        habits = [
            _habit("a", "2024-01-01", ["2024-06-14", "2024-06-16", "2024-06-18"]),
            _habit("b", "2024-01-01", ["2024-06-17", "2024-06-19"]),
        ]
        streaks = {"2024-06-14": 10, "2024-06-17": 50}

        def fake_streak(keys: list[str], today: str) -> dict[str, Any]:
            return {
                "current_streak": streaks[keys[0]],
                "longest_streak": streaks[keys[0]],
                "restart_count": 0,
            }

        with patch.object(
            ContinuityEngine, "compute_gap_tolerant_streak", side_effect=fake_streak
        ):
            best = stats.compute_best_habit_this_week(habits, TODAY)

        assert best is not None
        assert best["habit_id"] == "b"
        assert best["current_streak"] == 50
        assert best["completion_rate"] == 29  # 2 of 7 days

    def test_real_streaks(self, stats: StatisticsEngine) -> None:
        """Equal weekly volume is decided by the gap-tolerant streak."""
        long_run = [add_days("2024-05-31", 2 * i) for i in range(10)]
        habits = [
            _habit("scattered", "2024-01-01", ["2024-06-13", "2024-06-16", TODAY]),
            _habit("steady", "2024-01-01", long_run),
        ]
        best = stats.compute_best_habit_this_week(habits, TODAY)

        assert best is not None
        assert best["habit_id"] == "steady"
        assert best["current_streak"] == 10
        assert best["total_checks"] == 10

    def test_ties_keep_first(self, stats: StatisticsEngine) -> None:
        """Equal scores keep the first habit in input order."""
        habits = [
            _habit("first", "2024-01-01", [TODAY]),
            _habit("second", "2024-01-01", [TODAY]),
        ]
        best = stats.compute_best_habit_this_week(habits, TODAY)
        assert best is not None
        assert best["habit_id"] == "first"

    def test_requires_a_check_this_week(self, stats: StatisticsEngine) -> None:
        """Habits without a check in the trailing week do not qualify."""
        habits = [_habit("old", "2024-01-01", ["2024-06-12"])]
        assert stats.compute_best_habit_this_week(habits, TODAY) is None
        assert stats.compute_best_habit_this_week([], TODAY) is None


class TestBestHabitOverall:
    """Tests for compute_best_habit_overall."""

    def test_most_lifetime_checks(self, stats: StatisticsEngine) -> None:
        """The habit with most checks wins; rate is over days since start."""
        habits = [
            _habit("few", "2024-06-01", ["2024-06-01", "2024-06-02", "2024-06-03"]),
            _habit("many", "2024-06-10", [add_days("2024-06-10", i) for i in range(5)]),
        ]
        best = stats.compute_best_habit_overall(habits, TODAY)

        assert best is not None
        assert best["habit_id"] == "many"
        assert best["total_checks"] == 5
        assert best["completion_rate"] == 50

    def test_ties_keep_first(self, stats: StatisticsEngine) -> None:
        """Equal totals keep the first habit."""
        habits = [
            _habit("first", "2024-06-01", [TODAY]),
            _habit("second", "2024-06-01", ["2024-06-18"]),
        ]
        best = stats.compute_best_habit_overall(habits, TODAY)
        assert best is not None
        assert best["habit_id"] == "first"

    def test_rate_is_clamped(self, stats: StatisticsEngine) -> None:
        """Checks outside the tracked span cannot push the rate above 100."""
        habits = [_habit("future", "2024-06-25", ["2024-06-25", "2024-06-26"])]
        best = stats.compute_best_habit_overall(habits, TODAY)
        assert best is not None
        assert best["completion_rate"] == 100

    def test_no_habits(self, stats: StatisticsEngine) -> None:
        """No habits means no best habit."""
        assert stats.compute_best_habit_overall([], TODAY) is None


# =============================================================================
# Lifetime statistics
# =============================================================================


class TestOverallStats:
    """Tests for compute_overall_stats."""

    def test_aggregates(self, stats: StatisticsEngine) -> None:
        """Totals, averages and the active / hall-of-fame partition."""
        habits = [
            _habit("a", "2024-06-10", ["2024-06-17", "2024-06-18", "2024-06-19"]),
            _habit(
                "b",
                "2024-06-01",
                ["2024-06-01", "2024-06-02", "2024-06-10"],
                is_hall_of_fame=True,
            ),
        ]
        overall = stats.compute_overall_stats(habits, TODAY)

        assert overall == {
            "total_checks": 6,
            "average_streak_days": 2,  # (3 + 0) / 2 rounds half up
            "longest_streak_ever": 3,
            "total_restarts": 1,
            "active_habits_count": 1,
            "hall_of_fame_count": 1,
            "total_days_tracked": 29,
            "overall_completion_rate": 21,
        }

    def test_future_habit_tracks_no_days(self, stats: StatisticsEngine) -> None:
        """A habit starting after today contributes no tracked days."""
        overall = stats.compute_overall_stats([_habit("c", "2024-06-25", [])], TODAY)
        assert overall["total_days_tracked"] == 0
        assert overall["overall_completion_rate"] == 0

    def test_empty_input(self, stats: StatisticsEngine) -> None:
        """No habits gives all zeros."""
        overall = stats.compute_overall_stats([], TODAY)
        assert set(overall.values()) == {0}


class TestComputeStatistics:
    """Tests for compute_statistics."""

    def test_full_result_shape(self, stats: StatisticsEngine) -> None:
        """Default request returns 4 weeks and 3 months, newest first."""
        habits = [_habit("a", "2024-06-01", [TODAY])]
        result = stats.compute_statistics(habits, TODAY)

        assert len(result["weekly"]) == const.DEFAULT_STATS_WEEKS
        assert len(result["monthly"]) == const.DEFAULT_STATS_MONTHS
        assert result["weekly"][0]["total_checks"] == 1
        assert result["best_habit_this_week"] is not None
        assert result["best_habit_overall"] is not None
        assert result["overall"]["total_checks"] == 1

    def test_deterministic(self, stats: StatisticsEngine) -> None:
        """Same input, same output."""
        habits = [_habit("a", "2024-06-01", ["2024-06-03", TODAY])]
        assert stats.compute_statistics(habits, TODAY) == stats.compute_statistics(
            habits, TODAY
        )
