"""Periodic polling with stale-result suppression."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Any, Awaitable, Callable

from loguru import logger

from recadmin.utils.metrics import INFLIGHT_TICKS, POLL_TICKS, STALE_RESULTS

_COMPONENT = "scheduler"


class PollingScheduler:
    """Invokes an async callback immediately and then once per interval.

    Ticks run as independent tasks, so a slow tick does not delay the next
    one. Each tick gets a sequence number and ``on_result`` only sees results
    newer than the last one it was given. ``stop()`` bumps the generation
    before cancelling anything, so a result still in flight when it is
    called is never applied.
    """

    def __init__(self, *, name: str = "poller") -> None:
        self.name = name
        self._timer_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._generation = 0
        self._dispatched = 0
        self._last_applied = 0

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def start(
        self,
        interval_ms: int,
        callback: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None] | None = None,
    ) -> None:
        """Begin polling. Restarts with the new arguments if already running."""
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if self._timer_task is not None or self._inflight:
            self._cancel_all()

        self._generation += 1
        generation = self._generation
        interval = interval_ms / 1000

        self._dispatch(generation, callback, on_result)
        self._timer_task = asyncio.create_task(
            self._run(generation, interval, callback, on_result), name=f"{self.name}-timer"
        )
        logger.info(f"Polling '{self.name}' started (interval: {interval_ms} ms)")

    async def stop(self) -> None:
        """Cancel the timer and every in-flight tick. Safe to call repeatedly."""
        tasks = self._cancel_all()
        current = asyncio.current_task()
        for task in tasks:
            if task is current:
                continue
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if tasks:
            logger.info(f"Polling '{self.name}' stopped")

    def _cancel_all(self) -> list[asyncio.Task[None]]:
        # Invalidate first so results already on their way in are dropped
        self._generation += 1
        tasks = list(self._inflight)
        if self._timer_task is not None:
            tasks.append(self._timer_task)
        for task in tasks:
            task.cancel()
        self._timer_task = None
        self._inflight.clear()
        INFLIGHT_TICKS.labels(component=_COMPONENT, operation=self.name).set(0)
        return tasks

    async def _run(
        self,
        generation: int,
        interval: float,
        callback: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None] | None,
    ) -> None:
        while generation == self._generation:
            await asyncio.sleep(interval)
            if generation != self._generation:
                break
            self._dispatch(generation, callback, on_result)

    def _dispatch(
        self,
        generation: int,
        callback: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None] | None,
    ) -> None:
        self._dispatched += 1
        sequence = self._dispatched
        task = asyncio.create_task(
            self._tick(generation, sequence, callback, on_result), name=f"{self.name}-tick-{sequence}"
        )
        self._inflight.add(task)
        task.add_done_callback(self._on_tick_done)
        POLL_TICKS.labels(component=_COMPONENT, operation=self.name).inc()
        INFLIGHT_TICKS.labels(component=_COMPONENT, operation=self.name).set(len(self._inflight))

    def _on_tick_done(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        INFLIGHT_TICKS.labels(component=_COMPONENT, operation=self.name).set(len(self._inflight))

    async def _tick(
        self,
        generation: int,
        sequence: int,
        callback: Callable[[], Awaitable[Any]],
        on_result: Callable[[Any], None] | None,
    ) -> None:
        try:
            result = await callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Polling '{self.name}' tick #{sequence} failed: {e}")
            return

        if generation != self._generation:
            logger.debug(f"Polling '{self.name}': dropping tick #{sequence} result after stop")
            return
        if sequence <= self._last_applied:
            logger.debug(f"Polling '{self.name}': dropping stale tick #{sequence} (applied #{self._last_applied})")
            STALE_RESULTS.labels(component=_COMPONENT, operation=self.name).inc()
            return

        self._last_applied = sequence
        if on_result is not None:
            on_result(result)
