import asyncio

import pytest

from routeplanner.exceptions import RequestCancelled
from routeplanner.services.coordinator import (
    CANCELLED,
    SUPERSEDED,
    TIMED_OUT,
    CancellationHandle,
    RequestCoordinator,
)


def test_begin_registers_handle():
    coordinator = RequestCoordinator()
    handle = coordinator.begin("r1")
    assert "r1" in coordinator
    assert coordinator.active("r1") is handle
    assert not handle.cancelled


def test_begin_twice_supersedes_previous():
    coordinator = RequestCoordinator()
    first = coordinator.begin("r1")
    second = coordinator.begin("r1")

    assert first.cancelled
    assert first.reason == SUPERSEDED
    assert not second.cancelled
    assert coordinator.active("r1") is second
    assert len(coordinator) == 1
    # already cancelled, a second signal is a no-op
    assert first.cancel() is False
    assert first.reason == SUPERSEDED


def test_cancel_unknown_id_is_noop():
    coordinator = RequestCoordinator()
    coordinator.cancel("missing")
    assert len(coordinator) == 0


def test_cancel_removes_and_signals():
    coordinator = RequestCoordinator()
    handle = coordinator.begin("r1")
    coordinator.cancel("r1")
    assert handle.reason == CANCELLED
    assert "r1" not in coordinator


def test_finish_keeps_newer_attempt():
    coordinator = RequestCoordinator()
    first = coordinator.begin("r1")
    second = coordinator.begin("r1")

    coordinator.finish(first)
    assert coordinator.active("r1") is second

    coordinator.finish(second)
    assert "r1" not in coordinator


def test_run_returns_result():
    async def scenario():
        handle = CancellationHandle("r1")
        return await handle.run(asyncio.sleep(0, result="done"), timeout=1)

    assert asyncio.run(scenario()) == "done"


def test_run_is_cancelled_by_handle():
    async def scenario():
        handle = CancellationHandle("r1")
        task = asyncio.ensure_future(handle.run(asyncio.sleep(10)))
        await asyncio.sleep(0)
        assert handle.cancel() is True
        with pytest.raises(RequestCancelled):
            await task
        return handle

    handle = asyncio.run(scenario())
    assert handle.reason == CANCELLED


def test_run_times_out():
    async def scenario():
        handle = CancellationHandle("r1")
        with pytest.raises(RequestCancelled):
            await handle.run(asyncio.sleep(10), timeout=0.01)
        return handle

    handle = asyncio.run(scenario())
    assert handle.reason == TIMED_OUT


def test_run_after_cancel_never_starts():
    started = []

    async def work():
        started.append(True)

    async def scenario():
        handle = CancellationHandle("r1")
        handle.cancel()
        with pytest.raises(RequestCancelled):
            await handle.run(work())

    asyncio.run(scenario())
    assert started == []


def test_error_from_work_propagates():
    async def boom():
        raise ValueError("boom")

    async def scenario():
        await CancellationHandle("r1").run(boom())

    with pytest.raises(ValueError):
        asyncio.run(scenario())
