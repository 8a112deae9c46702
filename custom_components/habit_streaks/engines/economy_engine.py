"""Economy Engine - Pure logic for check points, levels and the point ledger.

This engine provides stateless, pure Python functions for:
- Points earned by a single unchecked -> checked transition
- Points lost when a checked day is un-checked
- Level resolution against the fixed level table
- Level-up / level-down detection between two point totals
- Ledger entry creation and pruning

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
State management (the per-user point total) belongs in EconomyManager.

The caller decides whether a toggle is an award, a deduction or a no-op by
comparing the stored prior state; this engine never re-derives it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import clamp, round_half_up

if TYPE_CHECKING:
    from ..type_defs import (
        CheckPointsResult,
        LedgerEntry,
        LevelChange,
        LevelInfo,
        LevelTransition,
        PointsBreakdownItem,
    )


def _now_iso() -> str:
    """Return current UTC time as ISO string (engine-internal helper)."""
    return datetime.now(UTC).isoformat()


class EconomyEngine:
    """Pure logic engine for point calculations and level resolution.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.

    Point schedule (const.POINTS_*):
        - Base: +1 for every newly checked day
        - Streak milestone (largest only): 30-day multiple +5,
          else 14-day multiple +3, else 7-day multiple +2
        - Restart: +2 when the check is a comeback after a reset
        - Hall of fame: +20 on the check that first reaches it
        - Un-check: -1, never below zero, bonuses are not reversed
    """

    @staticmethod
    def calculate_check_points(
        streak: int,
        is_restart: bool,
        is_hall_of_fame_now: bool,
    ) -> CheckPointsResult:
        """Calculate points for a day that just became checked.

        Args:
            streak: Gap-tolerant progress after the check
            is_restart: Whether the check is a comeback after a reset
            is_hall_of_fame_now: True only on the check that newly reaches
                the hall of fame

        Returns:
            CheckPointsResult with total points and itemized breakdown

        Examples:
            streak=7 → 1 + 2 = 3
            streak=28 → 1 + 3 = 4 (14-day multiple beats 7-day)
            streak=30 → 1 + 5 = 6
        """
        breakdown: list[PointsBreakdownItem] = [
            {"type": const.BREAKDOWN_BASE, "points": const.POINTS_BASE_CHECK}
        ]

        if streak > 0:
            if streak % 30 == 0:
                breakdown.append(
                    {
                        "type": const.BREAKDOWN_STREAK_30,
                        "points": const.POINTS_STREAK_BONUS_30,
                    }
                )
            elif streak % 14 == 0:
                breakdown.append(
                    {
                        "type": const.BREAKDOWN_STREAK_14,
                        "points": const.POINTS_STREAK_BONUS_14,
                    }
                )
            elif streak % 7 == 0:
                breakdown.append(
                    {
                        "type": const.BREAKDOWN_STREAK_7,
                        "points": const.POINTS_STREAK_BONUS_7,
                    }
                )

        if is_restart:
            breakdown.append(
                {"type": const.BREAKDOWN_RESTART, "points": const.POINTS_RESTART_BONUS}
            )

        if is_hall_of_fame_now:
            breakdown.append(
                {
                    "type": const.BREAKDOWN_HALL_OF_FAME,
                    "points": const.POINTS_HALL_OF_FAME,
                }
            )

        return {
            "points": sum(item["points"] for item in breakdown),
            "breakdown": breakdown,
        }

    @staticmethod
    def calculate_uncheck_penalty(current_total: int) -> int:
        """Return points to subtract when a checked day is un-checked.

        Never more than the current total, so the balance cannot go negative.
        """
        return max(0, min(const.POINTS_UNCHECK_PENALTY, current_total))

    # =========================================================================
    # LEVELS
    # =========================================================================

    @staticmethod
    def calculate_level(total_points: int) -> LevelInfo:
        """Resolve the level for a point total.

        Picks the highest tier whose min_points is <= total_points. Progress
        toward the next tier is a whole percentage capped at 100; at the top
        tier next_level_points is 0 and progress is 100.

        Args:
            total_points: Accumulated points (negative values resolve to tier 1)

        Returns:
            LevelInfo dict
        """
        table = const.LEVEL_TABLE
        index = 0
        for candidate in range(len(table) - 1, -1, -1):
            if total_points >= table[candidate][const.LEVEL_KEY_MIN_POINTS]:
                index = candidate
                break

        tier = table[index]
        next_tier = table[index + 1] if index + 1 < len(table) else None
        tier_min = tier[const.LEVEL_KEY_MIN_POINTS]

        current_level_points = total_points - tier_min
        if next_tier is None:
            next_level_points = 0
            progress = 100
        else:
            next_level_points = next_tier[const.LEVEL_KEY_MIN_POINTS] - tier_min
            progress = int(
                clamp(
                    round_half_up(current_level_points * 100 / next_level_points),
                    0,
                    100,
                )
            )

        return {
            "total_points": total_points,
            "level": tier[const.LEVEL_KEY_LEVEL],
            "title": tier[const.LEVEL_KEY_TITLE],
            "phase": tier[const.LEVEL_KEY_PHASE],
            "is_milestone": tier[const.LEVEL_KEY_IS_MILESTONE],
            "current_level_points": current_level_points,
            "next_level_points": next_level_points,
            "progress": progress,
        }

    @staticmethod
    def check_level_up(old_points: int, new_points: int) -> LevelTransition:
        """Compare levels at two point totals.

        Used for both directions: checks can level a user up, un-checks can
        level them down.
        """
        old_level = EconomyEngine.calculate_level(old_points)
        new_level = EconomyEngine.calculate_level(new_points)
        return {
            "leveled_up": new_level["level"] > old_level["level"],
            "leveled_down": new_level["level"] < old_level["level"],
            "old_level": old_level,
            "new_level": new_level,
        }

    @staticmethod
    def to_level_change(transition: LevelTransition) -> LevelChange:
        """Summarize a transition for callers that only need the headline."""
        new_level = transition["new_level"]
        return {
            "old_level": transition["old_level"]["level"],
            "new_level": new_level["level"],
            "new_title": new_level["title"],
            "phase": new_level["phase"],
            "is_milestone": new_level["is_milestone"],
        }

    # =========================================================================
    # LEDGER
    # =========================================================================

    @staticmethod
    def calculate_new_balance(current_balance: int, delta: int) -> int:
        """Calculate new balance after applying delta, floored at zero."""
        return max(0, current_balance + delta)

    @staticmethod
    def create_ledger_entry(
        current_balance: int,
        delta: int,
        source: str,
        reference_id: str | None = None,
        item_name: str | None = None,
    ) -> LedgerEntry:
        """Create an immutable ledger entry for a transaction.

        Args:
            current_balance: Balance BEFORE the transaction
            delta: Amount added (positive) or subtracted (negative)
            source: const.POINTS_SOURCE_CHECK or const.POINTS_SOURCE_UNCHECK
            reference_id: Habit id the transaction belongs to
            item_name: Optional habit text

        Returns:
            LedgerEntry TypedDict with transaction details
        """
        entry: LedgerEntry = {
            const.DATA_LEDGER_TIMESTAMP: _now_iso(),
            const.DATA_LEDGER_AMOUNT: delta,
            const.DATA_LEDGER_BALANCE_AFTER: EconomyEngine.calculate_new_balance(
                current_balance, delta
            ),
            const.DATA_LEDGER_SOURCE: source,
            const.DATA_LEDGER_REFERENCE_ID: reference_id,
        }
        if item_name:
            entry[const.DATA_LEDGER_ITEM_NAME] = item_name
        return entry

    @staticmethod
    def prune_ledger(
        ledger: list[LedgerEntry],
        max_entries: int = const.DEFAULT_MAX_LEDGER_ENTRIES,
    ) -> list[LedgerEntry]:
        """Trim ledger to maximum entries, keeping most recent.

        Modifies the list in place and returns it for convenience.
        Newest entries are at the END of the list (append order).

        Returns:
            The pruned ledger list (same object, modified in place)
        """
        if len(ledger) > max_entries:
            del ledger[: len(ledger) - max_entries]
        return ledger
