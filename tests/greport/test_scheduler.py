"""Unit tests for EngineLoop, Scheduler and the batch-sync scheduler factory."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from greport.engines.sync.models import BatchSyncResult
from greport.scheduler import EngineLoop, Scheduler, create_scheduler


@pytest.fixture
def make_loop():
    """Factory for creating EngineLoop instances with a controllable run_fn."""

    def _make(
        *,
        name: str = "test",
        return_value: int = 0,
        interval: float = 100,
        side_effect: Exception | None = None,
    ) -> tuple[EngineLoop, list[int]]:
        calls: list[int] = []

        async def run_fn() -> int:
            calls.append(1)
            if side_effect is not None:
                raise side_effect
            return return_value

        return EngineLoop(name, run_fn, interval), calls

    return _make


@pytest.mark.asyncio
async def test_run_once_returns_processed(make_loop):
    loop, calls = make_loop(return_value=3)
    assert await loop.run_once() == 3
    assert calls == [1]


@pytest.mark.asyncio
async def test_run_once_swallows_cycle_error(make_loop):
    loop, _ = make_loop(side_effect=RuntimeError("boom"))
    assert await loop.run_once() == 0


@pytest.mark.asyncio
async def test_loop_runs_on_timeout(make_loop):
    """Loop fires after interval timeout when no trigger is set."""
    loop, calls = make_loop(interval=0.05)

    task = asyncio.create_task(loop.loop())
    try:
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


@pytest.mark.asyncio
async def test_loop_runs_on_trigger(make_loop):
    """Setting trigger wakes the loop immediately."""
    loop, calls = make_loop(interval=100)

    task = asyncio.create_task(loop.loop())
    try:
        await asyncio.sleep(0.01)
        loop.trigger.set()
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


@pytest.mark.asyncio
async def test_exception_does_not_crash(make_loop):
    """A failing cycle does not stop the loop."""
    loop, calls = make_loop(interval=0.05, side_effect=RuntimeError("boom"))

    task = asyncio.create_task(loop.loop())
    try:
        await asyncio.wait_for(_wait_until(lambda: len(calls) >= 2), timeout=2.0)
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


@pytest.mark.asyncio
async def test_scheduler_start_stop(make_loop):
    loop, calls = make_loop(interval=100)
    scheduler = Scheduler([loop])

    await scheduler.start()
    assert scheduler.running
    await asyncio.wait_for(_wait_until(lambda: len(calls) >= 1), timeout=1.0)

    await scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_scheduler_start_without_immediate_run(make_loop):
    loop, calls = make_loop(interval=100)
    scheduler = Scheduler([loop])

    await scheduler.start(run_now=False)
    try:
        await asyncio.sleep(0.05)
        assert calls == []
    finally:
        await scheduler.stop()


@pytest.mark.asyncio
async def test_create_scheduler_runs_batch_sync():
    runner = MagicMock()
    runner.sync_batch = AsyncMock(return_value=BatchSyncResult(total_repos=2, successful=2))
    factory, registry = MagicMock(), MagicMock()

    scheduler = create_scheduler(
        factory, runner=runner, registry=registry, interval=60, extra_repos=("a/b",)
    )
    await scheduler.start()
    try:
        await asyncio.wait_for(_wait_until(lambda: runner.sync_batch.await_count >= 1), timeout=1.0)
    finally:
        await scheduler.stop()

    runner.sync_batch.assert_awaited_with(factory, registry, ["a/b"])


async def _wait_until(predicate, poll: float = 0.01):
    """Poll until predicate returns True."""
    while not predicate():
        await asyncio.sleep(poll)
