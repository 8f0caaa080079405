"""Tests for refresh coordination between overlapping dashboard refreshes."""

import asyncio

import pytest

from queue_insights.telemetry.refresh import RefreshCoordinator


class TestGenerations:
    """Synchronous begin/commit bookkeeping."""

    def test_commit_current(self):
        coordinator = RefreshCoordinator()
        token = coordinator.begin()
        assert coordinator.commit(token, "result") is True
        assert coordinator.current == "result"

    def test_stale_commit_dropped(self):
        coordinator = RefreshCoordinator()
        old = coordinator.begin()
        new = coordinator.begin()
        assert coordinator.commit(new, "new") is True
        assert coordinator.commit(old, "old") is False
        assert coordinator.current == "new"
        assert coordinator.generation == 2


class TestRefresh:
    """Async refreshes racing each other."""

    def test_slow_refresh_cannot_overwrite_newer(self):
        coordinator = RefreshCoordinator()

        async def scenario():
            gate = asyncio.Event()

            async def slow():
                await gate.wait()
                return "old"

            async def fast():
                return "new"

            slow_task = asyncio.create_task(coordinator.refresh(slow))
            await asyncio.sleep(0)
            assert await coordinator.refresh(fast) is True
            gate.set()
            return await slow_task

        assert asyncio.run(scenario()) is False
        assert coordinator.current == "new"

    def test_current_error_recorded_and_raised(self):
        coordinator = RefreshCoordinator()

        async def failing():
            raise RuntimeError("upstream down")

        with pytest.raises(RuntimeError):
            asyncio.run(coordinator.refresh(failing))
        assert isinstance(coordinator.last_error, RuntimeError)

    def test_stale_error_dropped(self):
        coordinator = RefreshCoordinator()

        async def scenario():
            gate = asyncio.Event()

            async def slow_failure():
                await gate.wait()
                raise RuntimeError("late")

            async def fast():
                return "fresh"

            slow_task = asyncio.create_task(coordinator.refresh(slow_failure))
            await asyncio.sleep(0)
            await coordinator.refresh(fast)
            gate.set()
            return await slow_task

        assert asyncio.run(scenario()) is False
        assert coordinator.last_error is None
        assert coordinator.current == "fresh"

    def test_success_clears_error(self):
        coordinator = RefreshCoordinator()

        async def failing():
            raise RuntimeError("boom")

        async def ok():
            return 1

        with pytest.raises(RuntimeError):
            asyncio.run(coordinator.refresh(failing))
        asyncio.run(coordinator.refresh(ok))
        assert coordinator.last_error is None
        assert coordinator.current == 1


class TestPeriodic:
    """The polling loop."""

    def test_stops_when_event_set(self):
        coordinator = RefreshCoordinator()
        calls = []

        async def scenario():
            stop = asyncio.Event()

            async def fetch():
                calls.append(1)
                stop.set()
                return len(calls)

            await coordinator.run_periodic(fetch, stop, interval=60)

        asyncio.run(scenario())
        assert calls == [1]
        assert coordinator.current == 1

    def test_keeps_polling_after_failure(self):
        coordinator = RefreshCoordinator()
        calls = []

        async def scenario():
            stop = asyncio.Event()

            async def fetch():
                calls.append(1)
                if len(calls) == 1:
                    raise RuntimeError("transient")
                stop.set()
                return "recovered"

            await coordinator.run_periodic(fetch, stop, interval=0.01)

        asyncio.run(scenario())
        assert len(calls) == 2
        assert coordinator.current == "recovered"
        assert coordinator.last_error is None

    def test_on_update_called_with_committed_results(self):
        coordinator = RefreshCoordinator()
        seen = []

        async def scenario():
            stop = asyncio.Event()
            results = iter(["first", "second"])

            async def fetch():
                return next(results)

            def on_update(result):
                seen.append(result)
                if len(seen) == 2:
                    stop.set()

            await coordinator.run_periodic(fetch, stop, interval=0.01, on_update=on_update)

        asyncio.run(scenario())
        assert seen == ["first", "second"]
