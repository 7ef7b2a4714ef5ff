# bracket_trader/scheduler.py
from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable

log = logging.getLogger(__name__)


class Scheduler:
    """
    Fixed-period driver with a single-slot guard: a tick that finds the
    previous cycle still running is dropped, so cycles never overlap and the
    position check + order placement of one cycle cannot interleave with
    another.
    """

    def __init__(self, cycle: Callable[[], Awaitable[Any]], period: float = 5.0, name: str = "cycle"):
        if period <= 0: raise ValueError("period must be > 0")
        self.cycle = cycle
        self.period = period
        self.name = name
        self.ticks = 0
        self.started = 0
        self.skipped = 0
        self._task: asyncio.Task | None = None
        self._stop = asyncio.Event()

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def stop(self) -> None:
        self._stop.set()

    def tick(self) -> bool:
        """Launch a cycle unless one is in flight. Returns whether it launched."""
        self.ticks += 1
        if self.busy:
            self.skipped += 1
            log.warning(f"Tick {self.ticks} skipped: previous {self.name} still running")
            return False
        self.started += 1
        self._task = asyncio.create_task(self._guarded())
        return True

    async def _guarded(self) -> None:
        try:
            await self.cycle()
        except Exception:
            # cycles log their own failures; this only catches what escapes
            log.exception(f"Unhandled error in {self.name}; scheduler keeps running")

    async def run(self, max_ticks: int | None = None) -> None:
        log.info(f"Scheduler started: every {self.period:g}s")
        self._stop.clear()
        try:
            while not self._stop.is_set():
                self.tick()
                if max_ticks is not None and self.ticks >= max_ticks:
                    break
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.period)
                except asyncio.TimeoutError:
                    pass
        finally:
            if self.busy:
                # let an in-flight cycle finish its order legs
                await self._task
            log.info(f"Scheduler stopped after {self.ticks} ticks ({self.started} started, {self.skipped} skipped)")
