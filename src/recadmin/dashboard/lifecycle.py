"""Lifecycle management for the model-management view."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable

from loguru import logger

from recadmin import settings

from .coordinator import FetchCoordinator
from .models import OperationError, ViewSnapshot
from .scheduler import PollingScheduler


class ModelManagementView:
    """Keeps a ``ViewSnapshot`` current while the view is active.

    ``start()`` issues the initial concurrent refresh and starts polling the
    training tasks; ``stop()`` tears both down. Every snapshot change is
    published to a bounded queue (oldest entry dropped when full) for
    whatever renders it.
    """

    def __init__(
        self,
        *,
        coordinator: FetchCoordinator,
        scheduler: PollingScheduler | None = None,
        poll_interval_ms: int | None = None,
        queue_size: int | None = None,
        include_overview: bool = True,
    ) -> None:
        self._coordinator = coordinator
        self._scheduler = scheduler or PollingScheduler(name="training-tasks")
        self._poll_interval_ms = poll_interval_ms or settings.POLL_INTERVAL_MS
        self._queue_size = queue_size or settings.SNAPSHOT_QUEUE_SIZE
        self._include_overview = include_overview
        self._snapshot_queue: asyncio.Queue[ViewSnapshot] | None = None
        self._initial_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def snapshot(self) -> ViewSnapshot:
        return self._coordinator.snapshot

    @property
    def snapshot_queue(self) -> asyncio.Queue[ViewSnapshot] | None:
        return self._snapshot_queue

    async def start(self, *, wait: bool = True) -> None:
        """Start the view.

        Args:
            wait: Await the initial refresh before returning. Polling starts
                either way.
        """
        if self._started:
            return

        self._snapshot_queue = asyncio.Queue(maxsize=self._queue_size)
        self._unsubscribe = self._coordinator.store.subscribe(self._publish_snapshot)
        self._publish_snapshot(self._coordinator.snapshot)

        self._initial_task = asyncio.create_task(self._initial_refresh(), name="model-management-initial-refresh")
        self._scheduler.start(self._poll_interval_ms, self._coordinator.fetch_training_tasks)
        self._started = True
        logger.info("Model management view started - initial refresh and task polling created")

        if wait:
            # wait() does not raise if stop() cancels the refresh meanwhile
            await asyncio.wait({self._initial_task})

    async def stop(self) -> None:
        """Stop the view. No snapshot changes from in-flight operations are applied afterwards.

        Operator actions still awaiting a response return their outcome to
        the caller, but it is not merged.
        """
        if not self._started:
            return

        self._coordinator.invalidate()
        await self._scheduler.stop()
        if self._initial_task is not None:
            self._initial_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._initial_task
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._initial_task = None
        self._unsubscribe = None
        self._snapshot_queue = None
        self._started = False
        logger.info("Model management view stopped")

    async def __aenter__(self) -> "ModelManagementView":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.stop()
        return False

    # --- Operator actions --------------------------------------------------

    async def refresh(self) -> ViewSnapshot:
        return await self._coordinator.refresh_all()

    async def apply_model(self, name: str) -> None | OperationError:
        return await self._coordinator.apply_model(name)

    async def delete_model(self, name: str) -> None | OperationError:
        return await self._coordinator.delete_model(name)

    async def delete_task(self, task_id: str) -> None | OperationError:
        return await self._coordinator.delete_task(task_id)

    async def start_training(self) -> None | OperationError:
        return await self._coordinator.start_training()

    def dismiss_notification(self) -> ViewSnapshot:
        return self._coordinator.clear_notification()

    # --- Internal helpers --------------------------------------------------

    async def _initial_refresh(self) -> None:
        if self._include_overview:
            await asyncio.gather(self._coordinator.refresh_all(), self._coordinator.refresh_overview())
        else:
            await self._coordinator.refresh_all()
        logger.debug("Initial refresh finished")

    def _publish_snapshot(self, snapshot: ViewSnapshot) -> None:
        """Publish a snapshot to the queue, dropping the oldest one when full."""
        if self._snapshot_queue is None:
            return
        try:
            self._snapshot_queue.put_nowait(snapshot)
        except asyncio.QueueFull:
            try:
                self._snapshot_queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self._snapshot_queue.put_nowait(snapshot)
        logger.debug(f"Published snapshot to queue (queue size: {self._snapshot_queue.qsize()})")
