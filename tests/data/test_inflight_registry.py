from __future__ import annotations

import asyncio

import pytest

from lodge.data import InFlightRegistry


def run_async(coro):
    return asyncio.run(coro)


def test_concurrent_callers_share_one_call():
    async def scenario() -> None:
        registry = InFlightRegistry()
        calls = 0
        gate = asyncio.Event()

        async def factory() -> str:
            nonlocal calls
            calls += 1
            await gate.wait()
            return "rooms"

        waiters = [asyncio.create_task(registry.run("/api/rooms", factory)) for _ in range(5)]
        await asyncio.sleep(0)
        assert "/api/rooms" in registry
        gate.set()
        results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results == ["rooms"] * 5
        assert len(registry) == 0

    run_async(scenario())


def test_failure_reaches_every_caller_and_clears_marker():
    async def scenario() -> None:
        registry = InFlightRegistry()
        seen_marker_during_failure: list[bool] = []

        async def failing() -> str:
            await asyncio.sleep(0)
            raise RuntimeError("backend down")

        first = registry.begin_or_join("k", failing)
        second = registry.begin_or_join("k", failing)
        assert first is second

        def _observe(task: asyncio.Task) -> None:
            _ = task
            seen_marker_during_failure.append("k" in registry)

        first.add_done_callback(_observe)
        outcomes = await asyncio.gather(
            registry.run("k", failing),
            registry.run("k", failing),
            return_exceptions=True,
        )

        assert all(isinstance(item, RuntimeError) for item in outcomes)
        assert seen_marker_during_failure == [False]

        async def ok() -> str:
            return "retry"

        assert await registry.run("k", ok) == "retry"

    run_async(scenario())


def test_cancelled_waiter_does_not_cancel_shared_fetch():
    async def scenario() -> None:
        registry = InFlightRegistry()
        gate = asyncio.Event()

        async def factory() -> int:
            await gate.wait()
            return 7

        waiter = asyncio.create_task(registry.run("k", factory))
        other = asyncio.create_task(registry.run("k", factory))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.set()
        assert await other == 7

    run_async(scenario())


def test_forgotten_task_does_not_remove_newer_marker():
    async def scenario() -> None:
        registry = InFlightRegistry()
        old_gate = asyncio.Event()
        new_gate = asyncio.Event()

        async def old() -> str:
            await old_gate.wait()
            return "old"

        async def new() -> str:
            await new_gate.wait()
            return "new"

        old_task = registry.begin_or_join("k", old)
        registry.forget("k")
        new_task = registry.begin_or_join("k", new)
        assert old_task is not new_task

        old_gate.set()
        assert await old_task == "old"
        assert registry.get("k") is new_task

        new_gate.set()
        assert await new_task == "new"
        assert registry.get("k") is None

    run_async(scenario())
