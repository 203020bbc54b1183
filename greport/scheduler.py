"""Scheduler — periodic batch sync while the API is running."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from greport.engines.source.registry import ClientRegistry
from greport.engines.sync.runner import SyncRunner

logger = structlog.get_logger(__name__)


class EngineLoop:
    """Single scheduling loop, woken by its trigger or by the interval elapsing."""

    def __init__(
        self,
        name: str,
        run_fn: Callable[[], Awaitable[int]],
        interval: float,
    ) -> None:
        self.name = name
        self.run_fn = run_fn
        self.interval = interval
        self.trigger = asyncio.Event()

    async def run_once(self) -> int:
        """One cycle; a failing cycle is logged and reported as 0 processed."""
        try:
            processed = await self.run_fn()
        except Exception:
            logger.exception("engine.error", engine=self.name)
            return 0
        logger.info("engine.cycle", engine=self.name, processed=processed)
        return processed

    async def loop(self) -> None:
        while True:
            try:
                await asyncio.wait_for(self.trigger.wait(), timeout=self.interval)
                self.trigger.clear()
            except asyncio.TimeoutError:
                pass
            await self.run_once()


class Scheduler:
    """Manages the lifecycle of EngineLoop tasks."""

    def __init__(self, loops: list[EngineLoop]) -> None:
        self._loops = loops
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self, *, run_now: bool = True) -> None:
        self._tasks = [
            asyncio.create_task(loop.loop(), name=f"engine-{loop.name}") for loop in self._loops
        ]
        if run_now:
            for loop in self._loops:
                loop.trigger.set()
        logger.info("scheduler.started", engines=[loop.name for loop in self._loops])

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        logger.info("scheduler.stopped")


def create_scheduler(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    runner: SyncRunner,
    registry: ClientRegistry,
    interval: float,
    extra_repos: Iterable[str] = (),
) -> Scheduler:
    """Build a Scheduler whose single loop runs a batch sync every *interval* seconds."""
    extra = list(extra_repos)

    async def _sync_all() -> int:
        batch = await runner.sync_batch(session_factory, registry, extra)
        return batch.successful

    return Scheduler([EngineLoop("sync_batch", _sync_all, interval)])
