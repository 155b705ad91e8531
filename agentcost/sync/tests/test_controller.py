"""Tests for DataSyncController: initial load, stale-but-available data,
dependency reloads and teardown."""

from __future__ import annotations

import asyncio
import logging

import pytest

from agentcost.sync.controller import DataSyncController, dependencies_changed
from agentcost.sync.preferences import RefreshPreferences
from agentcost.sync.tests.conftest import FrozenClock, GatedFetch, ManualTimer, settle


class TestDependencyComparison:
    def test_equal_values_unchanged(self) -> None:
        assert not dependencies_changed(("7d", 1), ("7d", 1))

    def test_same_object_unchanged(self) -> None:
        nan = float("nan")
        assert not dependencies_changed((nan,), (nan,))

    def test_value_change(self) -> None:
        assert dependencies_changed(("7d",), ("30d",))

    def test_length_change(self) -> None:
        assert dependencies_changed(("7d",), ("7d", "agent-a"))
        assert dependencies_changed((), ("7d",))


class TestInitialLoad:
    @pytest.mark.asyncio
    async def test_loading_true_then_false_with_data(
        self, timer: ManualTimer, clock: FrozenClock, gated_fetch: GatedFetch
    ) -> None:
        controller = DataSyncController(gated_fetch, timer=timer, clock=clock)
        assert controller.loading is True
        assert controller.data is None

        await controller.wait_loaded()
        assert controller.loading is False
        assert controller.data == {"value": 1}
        assert controller.error is None
        assert gated_fetch.calls == 1

    @pytest.mark.asyncio
    async def test_initial_failure_sets_error_and_clears_loading(
        self, timer: ManualTimer
    ) -> None:
        fetch = GatedFetch()
        fetch.error = ConnectionError("unreachable")
        controller = DataSyncController(fetch, timer=timer)
        await controller.wait_loaded()
        assert controller.loading is False
        assert controller.data is None
        assert isinstance(controller.error, ConnectionError)

    @pytest.mark.asyncio
    async def test_initial_load_does_not_mark_refreshing(
        self, timer: ManualTimer, gated_fetch: GatedFetch
    ) -> None:
        gated_fetch.hold()
        controller = DataSyncController(gated_fetch, timer=timer)
        await settle()
        assert controller.loading is True
        assert controller.is_refreshing is False
        gated_fetch.release()
        await controller.wait_loaded()
        assert controller.last_refresh is None


class TestStaleButAvailable:
    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_data_then_success_clears_error(
        self, timer: ManualTimer
    ) -> None:
        fetch = GatedFetch(result={"total_cost": 12.5})
        controller = DataSyncController(fetch, timer=timer)
        await controller.wait_loaded()

        fetch.error = RuntimeError("502 Bad Gateway")
        assert await controller.refresh() is True
        assert controller.data == {"total_cost": 12.5}
        assert isinstance(controller.error, RuntimeError)
        assert controller.loading is False

        fetch.error = None
        fetch.result = {"total_cost": 13.0}
        await controller.refresh()
        assert controller.data == {"total_cost": 13.0}
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_refresh_failure_reaches_scheduler(
        self, timer: ManualTimer, caplog: pytest.LogCaptureFixture
    ) -> None:
        fetch = GatedFetch(result={"total_cost": 12.5})
        controller = DataSyncController(fetch, timer=timer)
        await controller.wait_loaded()

        failure = RuntimeError("502 Bad Gateway")
        fetch.error = failure
        with caplog.at_level(logging.WARNING, logger="agentcost.sync.scheduler"):
            await controller.refresh()

        assert controller.error is failure
        assert controller.scheduler.last_error is failure
        assert "Refresh failed" in caplog.text

        fetch.error = None
        await controller.refresh()
        assert controller.scheduler.last_error is None

    @pytest.mark.asyncio
    async def test_falsy_result_replaces_data(self, timer: ManualTimer) -> None:
        fetch = GatedFetch(result=[{"agent_name": "planner"}])
        controller = DataSyncController(fetch, timer=timer)
        await controller.wait_loaded()
        fetch.result = []
        await controller.refresh()
        assert controller.data == []


class TestAutoRefresh:
    @pytest.mark.asyncio
    async def test_one_tick_one_extra_fetch(
        self, timer: ManualTimer, clock: FrozenClock, gated_fetch: GatedFetch
    ) -> None:
        controller = DataSyncController(
            gated_fetch,
            auto_refresh_enabled=True,
            refresh_interval=1,
            timer=timer,
            clock=clock,
        )
        await controller.wait_loaded()
        assert controller.data == {"value": 1}
        assert gated_fetch.calls == 1

        timer.advance(1)
        assert controller.is_refreshing is True
        await controller.scheduler.wait_idle()

        assert gated_fetch.calls == 2
        assert controller.is_refreshing is False
        assert controller.last_refresh == clock()
        assert controller.loading is False

    @pytest.mark.asyncio
    async def test_preferences_reach_scheduler(self, timer: ManualTimer) -> None:
        controller = DataSyncController(
            GatedFetch(),
            auto_refresh_enabled=False,
            refresh_interval=30,
            preferences=RefreshPreferences(auto_refresh=True, refresh_interval=120),
            timer=timer,
        )
        assert controller.scheduler.auto_refresh_enabled is True
        assert controller.scheduler.refresh_interval == 120
        assert [h.due for h in timer.pending] == [120]
        controller.dispose()

    @pytest.mark.asyncio
    async def test_back_to_back_refresh_single_fetch(
        self, timer: ManualTimer, gated_fetch: GatedFetch
    ) -> None:
        controller = DataSyncController(gated_fetch, timer=timer)
        await controller.wait_loaded()

        gated_fetch.hold()
        first = asyncio.create_task(controller.refresh())
        await settle()
        second = await controller.refresh()
        gated_fetch.release()

        assert await first is True
        assert second is False
        assert gated_fetch.calls == 2  # initial load + one refresh

    @pytest.mark.asyncio
    async def test_invalid_interval_fails_fast(self, timer: ManualTimer) -> None:
        with pytest.raises(ValueError):
            DataSyncController(GatedFetch(), refresh_interval=-30, timer=timer)


class TestDependencies:
    @pytest.mark.asyncio
    async def test_change_triggers_full_reload(self, timer: ManualTimer) -> None:
        results = {"7d": {"range": "7d"}, "30d": {"range": "30d"}}
        current = {"range": "7d"}

        async def fetch() -> dict:
            return results[current["range"]]

        controller = DataSyncController(fetch, dependencies=("7d",), timer=timer)
        await controller.wait_loaded()
        assert controller.data == {"range": "7d"}

        current["range"] = "30d"
        assert controller.set_dependencies(("30d",)) is True
        assert controller.loading is True
        await controller.wait_loaded()
        assert controller.loading is False
        assert controller.data == {"range": "30d"}

    @pytest.mark.asyncio
    async def test_unchanged_dependencies_do_not_reload(
        self, timer: ManualTimer, gated_fetch: GatedFetch
    ) -> None:
        controller = DataSyncController(gated_fetch, dependencies=("7d",), timer=timer)
        await controller.wait_loaded()
        assert controller.set_dependencies(["7d"]) is False
        assert controller.loading is False
        assert gated_fetch.calls == 1

    @pytest.mark.asyncio
    async def test_superseded_load_is_discarded(self, timer: ManualTimer) -> None:
        slow_gate = asyncio.Event()
        calls: list[str] = []
        current = {"range": "7d"}

        async def fetch() -> dict:
            requested = current["range"]
            calls.append(requested)
            if requested == "7d":
                await slow_gate.wait()
            return {"range": requested}

        controller = DataSyncController(fetch, dependencies=("7d",), timer=timer)
        await settle()

        current["range"] = "30d"
        controller.set_dependencies(("30d",))
        await settle()
        # Newer load finished first; the older one must not overwrite it
        assert controller.data == {"range": "30d"}
        assert controller.loading is False

        slow_gate.set()
        await settle()
        assert controller.data == {"range": "30d"}
        assert calls == ["7d", "30d"]

    @pytest.mark.asyncio
    async def test_refresh_started_before_change_is_discarded(
        self, timer: ManualTimer
    ) -> None:
        tick_gate = asyncio.Event()
        current = {"range": "7d"}
        fetches: list[str] = []

        async def fetch() -> dict:
            requested = current["range"]
            fetches.append(requested)
            if len(fetches) == 2:
                await tick_gate.wait()
            return {"range": requested}

        controller = DataSyncController(
            fetch,
            dependencies=("7d",),
            auto_refresh_enabled=True,
            refresh_interval=1,
            timer=timer,
        )
        await controller.wait_loaded()

        timer.advance(1)
        await settle()
        assert controller.is_refreshing
        assert fetches == ["7d", "7d"]

        current["range"] = "30d"
        controller.set_dependencies(("30d",))
        await controller.wait_loaded()
        assert controller.data == {"range": "30d"}

        tick_gate.set()
        await controller.scheduler.wait_idle()
        assert controller.data == {"range": "30d"}
        assert controller.dependencies == ("30d",)
        controller.dispose()

    @pytest.mark.asyncio
    async def test_failed_refresh_started_before_change_leaves_error_clear(
        self, timer: ManualTimer
    ) -> None:
        tick_gate = asyncio.Event()
        current = {"range": "7d"}
        fetches: list[str] = []

        async def fetch() -> dict:
            requested = current["range"]
            fetches.append(requested)
            if len(fetches) == 2:
                await tick_gate.wait()
                raise ConnectionError("7d request dropped")
            return {"range": requested}

        controller = DataSyncController(fetch, dependencies=("7d",), timer=timer)
        await controller.wait_loaded()

        refresh = asyncio.create_task(controller.refresh())
        await settle()
        current["range"] = "30d"
        controller.set_dependencies(("30d",))
        await controller.wait_loaded()

        tick_gate.set()
        assert await refresh is True
        assert controller.data == {"range": "30d"}
        assert controller.error is None


class TestDispose:
    @pytest.mark.asyncio
    async def test_dispose_in_flight_stops_future_ticks(
        self, timer: ManualTimer, gated_fetch: GatedFetch
    ) -> None:
        controller = DataSyncController(
            gated_fetch, auto_refresh_enabled=True, refresh_interval=1, timer=timer
        )
        await controller.wait_loaded()

        gated_fetch.hold()
        timer.advance(1)
        await settle()
        assert controller.is_refreshing

        controller.dispose()
        gated_fetch.release()
        await controller.scheduler.wait_idle()

        timer.advance(10)
        await settle()
        assert gated_fetch.calls == 2
        assert controller.is_disposed

    @pytest.mark.asyncio
    async def test_late_result_not_applied_after_dispose(self, timer: ManualTimer) -> None:
        fetch = GatedFetch(result={"value": 1})
        fetch.hold()
        controller = DataSyncController(fetch, timer=timer)
        await settle()

        controller.dispose()
        fetch.release()
        await controller.wait_loaded()
        assert controller.data is None
        assert controller.set_dependencies(("other",)) is False

    @pytest.mark.asyncio
    async def test_snapshot_surface(self, timer: ManualTimer, gated_fetch: GatedFetch) -> None:
        controller = DataSyncController(gated_fetch, timer=timer)
        await controller.wait_loaded()
        assert controller.snapshot() == {
            "data": {"value": 1},
            "loading": False,
            "error": None,
            "is_refreshing": False,
            "last_refresh": None,
        }
        controller.dispose()
