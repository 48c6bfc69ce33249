from __future__ import annotations

import asyncio

from lodge.data import ApiStatusError, CacheEntry, FreshnessPolicy, QueryState

ROOMS = "/api/rooms"


def run_async(coro):
    return asyncio.run(coro)


async def _drain() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


def test_simultaneous_mounts_issue_one_fetch(service, transport):
    async def scenario() -> None:
        transport.payloads[ROOMS] = [{"number": "101"}]
        gate = transport.hold()
        handles = [service.query(ROOMS) for _ in range(4)]
        assert all(handle.loading for handle in handles)

        mounts = [asyncio.create_task(handle.mount()) for handle in handles]
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(*mounts)

        assert transport.get_count(ROOMS) == 1
        assert [handle.data for handle in handles] == [[{"number": "101"}]] * 4
        assert not any(handle.loading for handle in handles)
        assert all(handle.error is None for handle in handles)

    run_async(scenario())


def test_fresh_hit_serves_cache_without_fetch(service, transport, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["a"]
        first = service.query(ROOMS)
        await first.mount()

        clock.advance(30)
        second = service.query(ROOMS)
        assert second.loading is False
        assert second.data == ["a"]
        await second.mount()

        assert transport.get_count(ROOMS) == 1
        assert second.is_stale is False

    run_async(scenario())


def test_stale_hit_serves_cache_then_refreshes_in_background(service, transport, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        await service.query(ROOMS).mount()

        clock.advance(61)
        transport.payloads[ROOMS] = ["v2"]
        handle = service.query(ROOMS)
        assert handle.is_stale is True
        await handle.mount()

        assert handle.loading is False
        assert handle.data == ["v1"]
        await handle.settle()

        assert transport.get_count(ROOMS) == 2
        assert handle.data == ["v2"]
        assert handle.loading is False
        assert service.store.get(ROOMS).data == ["v2"]
        assert handle.is_stale is False

    run_async(scenario())


def test_expired_entry_is_treated_as_absent(service, transport, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        await service.query(ROOMS).mount()

        clock.advance(301)
        transport.payloads[ROOMS] = ["v2"]
        handle = service.query(ROOMS)
        assert handle.loading is True
        assert handle.data is None

        gate = transport.hold()
        mounting = asyncio.create_task(handle.mount())
        await asyncio.sleep(0)
        assert handle.loading is True
        gate.set()
        await mounting

        assert transport.get_count(ROOMS) == 2
        assert handle.data == ["v2"]
        assert handle.loading is False

    run_async(scenario())


def test_failed_background_refresh_keeps_previous_data(service, transport, notifier, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["good"]
        await service.query(ROOMS).mount()

        clock.advance(90)
        transport.failures[ROOMS] = ApiStatusError("Failed to fetch: 503", status=503)
        handle = service.query(ROOMS)
        await handle.mount()
        await handle.settle()

        assert handle.data == ["good"]
        assert handle.error == "Failed to fetch: 503"
        assert handle.loading is False
        entry = service.store.get(ROOMS)
        assert entry.data == ["good"]
        assert entry.error == "Failed to fetch: 503"
        assert [row.message for row in notifier.errors()] == ["Failed to fetch: 503"]

    run_async(scenario())


def test_first_fetch_failure_has_no_data_and_caches_error(service, transport, notifier):
    async def scenario() -> None:
        transport.failures[ROOMS] = ApiStatusError("Room service offline", status=500)
        handle = service.query(ROOMS, error_title="Unable to load rooms")
        await handle.mount()

        assert handle.data is None
        assert handle.loading is False
        assert handle.error == "Room service offline"
        assert notifier.errors()[0].title == "Unable to load rooms"

        again = service.query(ROOMS)
        assert again.loading is False
        assert again.error == "Room service offline"

    run_async(scenario())


def test_error_notification_can_be_disabled(service, transport, notifier):
    async def scenario() -> None:
        transport.failures[ROOMS] = RuntimeError("boom")
        handle = service.query(ROOMS, notify_errors=False)
        await handle.mount()

        assert handle.error == "boom"
        assert notifier.notifications() == []

    run_async(scenario())


def test_refetch_forces_foreground_fetch(service, transport):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        handle = service.query(ROOMS)
        await handle.mount()

        states: list[QueryState] = []
        handle.on_change(states.append)
        transport.payloads[ROOMS] = ["v2"]
        await handle.refetch()

        assert transport.get_count(ROOMS) == 2
        assert states[0].loading is True
        assert states[-1] == QueryState(data=["v2"], loading=False, error=None, is_stale=False)

    run_async(scenario())


def test_refetch_failure_keeps_data_and_sets_error(service, transport):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        handle = service.query(ROOMS)
        await handle.mount()

        transport.failures[ROOMS] = RuntimeError("offline")
        await handle.refetch()

        assert handle.data == ["v1"]
        assert handle.error == "offline"
        assert handle.loading is False

        del transport.failures[ROOMS]
        await handle.refetch()
        assert handle.error is None

    run_async(scenario())


def test_unmounted_handle_stops_updating_but_fetch_completes(service, transport):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["late"]
        gate = transport.hold()
        handle = service.query(ROOMS)
        mounting = asyncio.create_task(handle.mount())
        await asyncio.sleep(0)

        handle.unmount()
        gate.set()
        await mounting

        assert handle.data is None
        assert handle.loading is True
        assert service.store.get(ROOMS).data == ["late"]

    run_async(scenario())


def test_completed_fetch_updates_every_mounted_handle(service, transport, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        watcher = service.query(ROOMS)
        await watcher.mount()

        other = service.query(ROOMS)
        await other.mount()
        transport.payloads[ROOMS] = ["v2"]
        await other.refetch()

        assert watcher.data == ["v2"]

        watcher.unmount()
        transport.payloads[ROOMS] = ["v3"]
        await other.refetch()
        assert watcher.data == ["v2"]
        assert other.data == ["v3"]

    run_async(scenario())


def test_refetch_on_mount_disabled_skips_fetch(service, transport):
    async def scenario() -> None:
        handle = service.query(ROOMS, refetch_on_mount=False)
        await handle.mount()
        assert transport.gets == []
        assert handle.loading is True

    run_async(scenario())


def test_focus_signal_revalidates_subscribed_handles(service, transport, clock):
    async def scenario() -> None:
        transport.payloads[ROOMS] = ["v1"]
        focused = service.query(ROOMS, refetch_on_window_focus=True)
        await focused.mount()
        plain = service.query("/api/users", refetch_on_window_focus=False)
        transport.payloads["/api/users"] = []
        await plain.mount()

        await service.notify_focus()
        assert transport.get_count(ROOMS) == 1

        clock.advance(120)
        transport.payloads[ROOMS] = ["v2"]
        await service.notify_focus()
        await focused.settle()

        assert transport.get_count(ROOMS) == 2
        assert transport.get_count("/api/users") == 1
        assert focused.data == ["v2"]

        focused.unmount()
        clock.advance(120)
        await service.notify_focus()
        assert transport.get_count(ROOMS) == 2

    run_async(scenario())


def test_parse_failure_surfaces_as_error(service, transport):
    def parse(payload):
        if not isinstance(payload, list):
            raise ValueError("expected a list")
        return tuple(payload)

    async def scenario() -> None:
        transport.payloads[ROOMS] = {"unexpected": True}
        handle = service.query(ROOMS, parse=parse)
        await handle.mount()
        assert handle.data is None
        assert handle.error == "Invalid response payload: expected a list"

        transport.payloads[ROOMS] = [1, 2]
        await handle.refetch()
        assert handle.data == (1, 2)
        assert handle.error is None

    run_async(scenario())


def test_rooms_timeline(service, transport, clock):
    """Mount A, B, C and D at 0 s, 0.1 s, 61 s and 301 s of one session."""

    async def scenario() -> None:
        policy = FreshnessPolicy(stale_time_s=60.0, cache_time_s=300.0)
        start = clock.now
        transport.payloads[ROOMS] = [{"number": "101"}]

        a = service.query(ROOMS, policy)
        gate = transport.hold()
        mounting = asyncio.create_task(a.mount())
        await asyncio.sleep(0)
        assert a.loading is True
        clock.now = start + 0.05
        gate.set()
        await mounting
        transport.gate = None
        assert a.data == [{"number": "101"}]
        assert transport.get_count(ROOMS) == 1

        clock.now = start + 0.1
        b = service.query(ROOMS, policy)
        await b.mount()
        assert b.loading is False
        assert b.data == [{"number": "101"}]
        assert transport.get_count(ROOMS) == 1

        clock.now = start + 61
        gate = transport.hold()
        c = service.query(ROOMS, policy)
        await c.mount()
        assert c.loading is False
        assert c.data == [{"number": "101"}]
        await _drain()
        assert transport.get_count(ROOMS) == 2

        # C's refresh is still in flight when D arrives.
        clock.now = start + 301
        d = service.query(ROOMS, policy)
        assert d.loading is True
        mounting = asyncio.create_task(d.mount())
        await _drain()
        assert d.loading is True

        transport.payloads[ROOMS] = [{"number": "101"}, {"number": "102"}]
        gate.set()
        await mounting
        await c.settle()

        assert transport.get_count(ROOMS) == 2
        assert d.loading is False
        assert d.data == [{"number": "101"}, {"number": "102"}]
        assert c.data == d.data

    run_async(scenario())


def test_seeding_ignores_expired_entries(service, clock):
    service.store.set(ROOMS, CacheEntry(data=["old"], timestamp=clock.now - 500))
    handle = service.query(ROOMS)
    assert handle.data is None
    assert handle.loading is True
