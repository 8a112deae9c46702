"""Integration tests for EconomyManager.

Tests the EconomyManager's interaction with the store and event system.
These tests use the full integration test setup with mocked Home Assistant.
"""

# pylint: disable=redefined-outer-name  # Pytest fixtures shadow names

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest

from custom_components.habit_streaks import const

if TYPE_CHECKING:
    from custom_components.habit_streaks.managers import EconomyManager
    from custom_components.habit_streaks.store import HabitStreaksStore

USER = "user-1"
HABIT = {
    const.DATA_HABIT_INTERNAL_ID: "habit_1",
    const.DATA_HABIT_TEXT: "Meditate",
}


@pytest.fixture
def mock_dispatcher_send():
    """Mock the dispatcher send function to capture emitted events."""
    with patch(
        "custom_components.habit_streaks.managers.base_manager.async_dispatcher_send"
    ) as mock:
        yield mock


@pytest.fixture
def manager(runtime: dict[str, Any]) -> EconomyManager:
    """Return the loaded EconomyManager."""
    return runtime[const.ECONOMY_MANAGER]


@pytest.fixture
def store(runtime: dict[str, Any]) -> HabitStreaksStore:
    """Return the loaded store."""
    return runtime[const.STORE]


def _emitted(mock_dispatcher_send, suffix: str) -> list[dict[str, Any]]:
    """Return payloads sent for a signal suffix."""
    return [
        call.args[2]
        for call in mock_dispatcher_send.call_args_list
        if call.args[1].endswith(f"_{suffix}")
    ]


class TestAwardCheck:
    """Tests for EconomyManager.async_award_check()."""

    async def test_award_updates_total_and_ledger(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """Awards land on the total and in the ledger with a running balance."""
        award, application = await manager.async_award_check(
            USER, HABIT, streak=14, is_restart=False, is_hall_of_fame_now=False
        )

        assert award["points"] == 4
        assert application["old_total"] == 0
        assert application["new_total"] == 4
        assert store.get_total_points(USER) == 4

        ledger = manager.get_ledger(USER)
        assert len(ledger) == 1
        entry = ledger[0]
        assert entry[const.DATA_LEDGER_AMOUNT] == 4
        assert entry[const.DATA_LEDGER_BALANCE_AFTER] == 4
        assert entry[const.DATA_LEDGER_SOURCE] == const.POINTS_SOURCE_CHECK
        assert entry[const.DATA_LEDGER_ITEM_NAME] == "Meditate"

    async def test_award_emits_points_changed(
        self, manager: EconomyManager, mock_dispatcher_send
    ) -> None:
        """Every applied award emits points_changed."""
        await manager.async_award_check(
            USER, HABIT, streak=1, is_restart=False, is_hall_of_fame_now=False
        )

        events = _emitted(mock_dispatcher_send, const.SIGNAL_SUFFIX_POINTS_CHANGED)
        assert events == [
            {
                "user_id": USER,
                "old_total": 0,
                "new_total": 1,
                "delta": 1,
                "source": const.POINTS_SOURCE_CHECK,
            }
        ]
        assert not _emitted(mock_dispatcher_send, const.SIGNAL_SUFFIX_LEVEL_CHANGED)

    async def test_award_reaching_threshold_emits_level_changed(
        self,
        manager: EconomyManager,
        store: HabitStreaksStore,
        mock_dispatcher_send,
    ) -> None:
        """Crossing a tier boundary emits level_changed with the new title."""
        store.get_user(USER)[const.DATA_USER_TOTAL_POINTS] = 10

        _, application = await manager.async_award_check(
            USER, HABIT, streak=1, is_restart=True, is_hall_of_fame_now=False
        )

        assert application["transition"]["leveled_up"] is True
        events = _emitted(mock_dispatcher_send, const.SIGNAL_SUFFIX_LEVEL_CHANGED)
        assert events == [
            {
                "user_id": USER,
                "old_level": 1,
                "new_level": 2,
                "new_title": "Unknown Villager",
                "phase": const.PHASE_AWAKENING,
                "is_milestone": False,
            }
        ]

    async def test_concurrent_awards_are_serialized(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """Parallel awards for one user never lose an update."""
        await asyncio.gather(
            *(
                manager.async_award_check(
                    USER, HABIT, streak=1, is_restart=False, is_hall_of_fame_now=False
                )
                for _ in range(10)
            )
        )

        assert store.get_total_points(USER) == 10
        balances = [
            entry[const.DATA_LEDGER_BALANCE_AFTER] for entry in manager.get_ledger(USER)
        ]
        assert balances == list(range(1, 11))


class TestDeductUncheck:
    """Tests for EconomyManager.async_deduct_uncheck()."""

    async def test_deduct_one_point(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """An un-check costs one point."""
        store.get_user(USER)[const.DATA_USER_TOTAL_POINTS] = 5

        points_lost, application = await manager.async_deduct_uncheck(USER, HABIT)

        assert points_lost == 1
        assert application["new_total"] == 4
        entry = manager.get_ledger(USER)[-1]
        assert entry[const.DATA_LEDGER_AMOUNT] == -1
        assert entry[const.DATA_LEDGER_SOURCE] == const.POINTS_SOURCE_UNCHECK

    async def test_deduct_at_zero_is_noop(
        self,
        manager: EconomyManager,
        store: HabitStreaksStore,
        mock_dispatcher_send,
    ) -> None:
        """With nothing to lose no ledger entry or event is written."""
        points_lost, application = await manager.async_deduct_uncheck(USER, HABIT)

        assert points_lost == 0
        assert application["delta"] == 0
        assert store.get_total_points(USER) == 0
        assert manager.get_ledger(USER) == []
        assert not _emitted(mock_dispatcher_send, const.SIGNAL_SUFFIX_POINTS_CHANGED)

    async def test_deduct_below_threshold_levels_down(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """Dropping under a tier minimum reports a level down."""
        store.get_user(USER)[const.DATA_USER_TOTAL_POINTS] = 12

        _, application = await manager.async_deduct_uncheck(USER, HABIT)

        transition = application["transition"]
        assert transition["leveled_down"] is True
        assert transition["new_level"]["level"] == 1


class TestQueries:
    """Tests for level and ledger queries."""

    async def test_get_level_unknown_user(self, manager: EconomyManager) -> None:
        """Unknown users sit at level 1 with no points."""
        level = manager.get_level("nobody")
        assert level["level"] == 1
        assert level["total_points"] == 0
        assert level["next_level_points"] == 12
        assert manager.get_ledger("nobody") == []

    async def test_get_level_reflects_total(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """Level info is derived from the stored total."""
        store.get_user(USER)[const.DATA_USER_TOTAL_POINTS] = 130

        level = manager.get_level(USER)
        assert level["level"] == 10
        assert level["title"] == "Full-fledged Adventurer"
        assert level["is_milestone"] is True

    async def test_ledger_is_pruned(
        self, manager: EconomyManager, store: HabitStreaksStore
    ) -> None:
        """The ledger keeps at most the configured number of entries."""
        for _ in range(const.DEFAULT_MAX_LEDGER_ENTRIES + 5):
            await manager.async_award_check(
                USER, HABIT, streak=1, is_restart=False, is_hall_of_fame_now=False
            )

        ledger = manager.get_ledger(USER)
        assert len(ledger) == const.DEFAULT_MAX_LEDGER_ENTRIES
        assert ledger[-1][const.DATA_LEDGER_BALANCE_AFTER] == (
            const.DEFAULT_MAX_LEDGER_ENTRIES + 5
        )
