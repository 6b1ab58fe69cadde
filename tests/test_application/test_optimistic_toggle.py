"""
Tests for optimistic toggles: local update, rollback, convergence
"""
import asyncio
from unittest.mock import AsyncMock

import pytest

from fakes import ANCHOR, TEST_DELAY, settle
from lifedash.application.errors import NetworkError
from lifedash.domain.day_key import InvalidDateError
from lifedash.domain.toggle_value import Flip, SetTo


class TestOptimisticUpdate:
    def test_update_is_visible_before_write_completes(self, habit_tracker, fake_api):
        fake_api.hold_writes = True

        async def scenario():
            task = habit_tracker.toggle("h1", ANCHOR)
            # synchronous part already ran
            assert habit_tracker.day(ANCHOR).is_done("h1")
            assert habit_tracker.day(ANCHOR).percentage == 50
            assert habit_tracker.pending.is_in_flight("2024-03-04", "h1")

            await settle()
            fake_api.held_writes[0].set_result(None)
            assert await task is True

        asyncio.run(scenario())

    def test_new_day_inserted_in_order(self, habit_tracker, fake_api):
        fake_api.server = {"2024-03-04": {"h1": True}, "2024-03-06": {"h2": True}}

        async def scenario():
            await habit_tracker.reload()
            await habit_tracker.toggle("h1", "2024-03-05")

        asyncio.run(scenario())

        assert [d.date for d in habit_tracker.days] == ["2024-03-04", "2024-03-05", "2024-03-06"]

    def test_accepts_timestamps(self, habit_tracker):
        async def scenario():
            await habit_tracker.toggle("h1", "2024-03-04T22:15:00")

        asyncio.run(scenario())

        assert habit_tracker.day("2024-03-04").is_done("h1")

    def test_invalid_date_changes_nothing(self, habit_tracker, fake_api):
        with pytest.raises(InvalidDateError):
            habit_tracker.toggle("h1", "not-a-date")

        assert habit_tracker.days == ()
        assert len(habit_tracker.pending) == 0
        assert fake_api.calls == []

    def test_unsupported_value(self, habit_tracker):
        with pytest.raises(TypeError):
            habit_tracker.toggle("h1", ANCHOR, True)
        assert len(habit_tracker.pending) == 0


class TestDispatch:
    def test_flip_uses_toggle_endpoint(self, habit_tracker, fake_api):
        async def scenario():
            await habit_tracker.toggle("h1", ANCHOR, Flip())

        asyncio.run(scenario())

        assert fake_api.calls_to("toggle_entry") == [("toggle_entry", "h1", "2024-03-04")]
        assert fake_api.calls_to("set_entry") == []

    def test_set_to_uses_explicit_value(self, habit_tracker, fake_api):
        async def scenario():
            await habit_tracker.toggle("h1", ANCHOR, SetTo(False))

        asyncio.run(scenario())

        assert fake_api.calls_to("set_entry") == [("set_entry", "h1", "2024-03-04", False)]
        assert not habit_tracker.day(ANCHOR).is_done("h1")


class TestSuccess:
    def test_write_settles_then_refresh_converges(self, habit_tracker, fake_api):
        async def scenario():
            assert await habit_tracker.toggle("h1", ANCHOR) is True
            assert not habit_tracker.pending.has_in_flight
            assert len(habit_tracker.pending) == 1
            await habit_tracker.drain()

        asyncio.run(scenario())

        assert habit_tracker.day(ANCHOR).statuses == {"h1": True}
        assert len(habit_tracker.pending) == 0
        assert habit_tracker.error is None

    def test_burst_of_toggles_triggers_one_refresh(self, habit_tracker, fake_api):
        async def scenario():
            habit_tracker.toggle("h1", ANCHOR)
            habit_tracker.toggle("h2", ANCHOR)
            habit_tracker.toggle("h1", "2024-03-05")
            await habit_tracker.drain()

        asyncio.run(scenario())

        assert len(fake_api.calls_to("get_daily_stats")) == 1
        assert len(fake_api.calls_to("get_streak_stats")) == 1
        assert habit_tracker.scheduler.attempts == 1

    def test_double_toggle_is_idempotent(self, habit_tracker, fake_api):
        async def scenario():
            habit_tracker.toggle("h1", ANCHOR)
            habit_tracker.toggle("h1", ANCHOR)
            assert not habit_tracker.day(ANCHOR).is_done("h1")
            await habit_tracker.drain()

        asyncio.run(scenario())

        assert fake_api.server["2024-03-04"] == {"h1": False}
        assert not habit_tracker.day(ANCHOR).is_done("h1")
        assert len(habit_tracker.pending) == 0

    def test_distinct_pairs_converge_to_server(self, habit_tracker, fake_api):
        fake_api.server = {"2024-03-04": {"h1": True}}

        async def scenario():
            await habit_tracker.reload()
            habit_tracker.toggle("h1", "2024-03-04")
            habit_tracker.toggle("h2", "2024-03-04")
            habit_tracker.toggle("h2", "2024-03-07", SetTo(True))
            await habit_tracker.drain()

        asyncio.run(scenario())

        for day, statuses in fake_api.server.items():
            local = habit_tracker.day(day)
            assert {k: local.is_done(k) for k in statuses} == statuses


class TestRollback:
    def test_offline_toggle_rolls_back(self, habit_tracker, fake_api):
        fake_api.server = {"2024-03-04": {"h2": True}}

        async def scenario():
            await habit_tracker.reload()
            before = habit_tracker.days
            fake_api.fail_writes = True

            task = habit_tracker.toggle("h1", "2024-03-04")
            assert habit_tracker.day("2024-03-04").is_done("h1")

            assert await task is False
            return before

        before = asyncio.run(scenario())

        assert habit_tracker.days == before
        assert not habit_tracker.day("2024-03-04").is_done("h1")
        assert habit_tracker.error == "Failed to toggle habit. Please try again."
        assert len(habit_tracker.pending) == 0
        # no refresh after a failed write
        assert not habit_tracker.scheduler.is_armed

    def test_late_failure_also_reverts_later_toggle(self, habit_tracker, fake_api):
        """
        A second toggle snapshots the first one's optimistic state. When the
        first write fails afterwards, both local changes are rolled back and
        the refresh after the second write brings back server truth.
        """
        fake_api.hold_writes = True

        async def scenario():
            first = habit_tracker.toggle("h1", ANCHOR)
            second = habit_tracker.toggle("h2", ANCHOR)
            await settle()

            fake_api.held_writes[0].set_exception(NetworkError("offline"))
            assert await first is False
            # snapshot of the first toggle had no day at all
            assert habit_tracker.day(ANCHOR) is None

            fake_api.held_writes[1].set_result(None)
            assert await second is True
            await habit_tracker.drain()

        asyncio.run(scenario())

        assert habit_tracker.day(ANCHOR).statuses == {"h2": True}
        assert len(habit_tracker.pending) == 0

    def test_unexpected_error_rolls_back(self, habit_tracker, fake_api):
        fake_api.toggle_entry = AsyncMock(side_effect=TimeoutError("timed out"))

        async def scenario():
            return await habit_tracker.toggle("h1", ANCHOR)

        assert asyncio.run(scenario()) is False
        assert habit_tracker.day(ANCHOR) is None
        assert not habit_tracker.pending.has_in_flight
        assert len(habit_tracker.pending) == 0
        assert habit_tracker.error == "Failed to toggle habit. Please try again."

    def test_later_refresh_not_blocked_after_unexpected_error(self, habit_tracker, fake_api):
        fake_api.server = {"2024-03-05": {"h2": True}}
        real_toggle = fake_api.toggle_entry
        fake_api.toggle_entry = AsyncMock(side_effect=ConnectionError("reset"))

        async def scenario():
            await habit_tracker.toggle("h1", ANCHOR)
            fake_api.toggle_entry = real_toggle
            await habit_tracker.toggle("h2", ANCHOR)
            await habit_tracker.drain()

        asyncio.run(scenario())

        assert habit_tracker.scheduler.runs == 1
        assert habit_tracker.day("2024-03-05").is_done("h2")

    def test_cancelled_write_rolls_back(self, habit_tracker, fake_api):
        fake_api.hold_writes = True

        async def scenario():
            task = habit_tracker.toggle("h1", ANCHOR)
            await settle()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert habit_tracker.day(ANCHOR) is None
        assert len(habit_tracker.pending) == 0


class TestTeardown:
    def test_write_finishing_after_close_schedules_nothing(self, habit_tracker, fake_api):
        fake_api.hold_writes = True

        async def scenario():
            task = habit_tracker.toggle("h1", ANCHOR)
            await settle()
            habit_tracker.close()
            fake_api.held_writes[0].set_result(None)
            assert await task is True
            await asyncio.sleep(TEST_DELAY * 5)

        asyncio.run(scenario())

        assert not habit_tracker.scheduler.is_armed
        assert habit_tracker.scheduler.runs == 0
        assert fake_api.calls_to("get_daily_stats") == []
