from __future__ import annotations

import asyncio
from typing import Any

import pytest

from lodge.data import DataCacheService, DataCacheSettings, InMemoryNotifier


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport:
    """Scripted transport; `gate` holds every GET until it is set."""

    def __init__(self) -> None:
        self.payloads: dict[str, Any] = {}
        self.failures: dict[str, Exception] = {}
        self.write_results: dict[tuple[str, str], Any] = {}
        self.write_failures: dict[tuple[str, str], Exception] = {}
        self.gets: list[str] = []
        self.writes: list[tuple[str, str, Any]] = []
        self.gate: asyncio.Event | None = None

    def hold(self) -> asyncio.Event:
        self.gate = asyncio.Event()
        return self.gate

    async def get(self, key: str) -> Any:
        self.gets.append(key)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        failure = self.failures.get(key)
        if failure is not None:
            raise failure
        return self.payloads.get(key)

    async def send(self, method: str, key: str, payload: Any = None) -> Any:
        self.writes.append((method, key, payload))
        await asyncio.sleep(0)
        failure = self.write_failures.get((method, key))
        if failure is not None:
            raise failure
        return self.write_results.get((method, key), {"ok": True})

    def get_count(self, key: str) -> int:
        return self.gets.count(key)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_000.0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def service(transport: FakeTransport, notifier: InMemoryNotifier, clock: FakeClock) -> DataCacheService:
    return DataCacheService(
        transport,
        settings=DataCacheSettings(stale_time_s=60.0, cache_time_s=300.0),
        notifier=notifier,
        clock=clock,
    )
