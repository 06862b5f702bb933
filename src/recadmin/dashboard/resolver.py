"""
Derived state for the model-management view.

The resolve helpers are pure functions over fetched records. ``SnapshotStore``
owns the single ``ViewSnapshot``; each fetch merges into its own slice and
every change produces a fresh frozen snapshot, so consumers never observe a
half-applied update.
"""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from typing import Callable, Iterable

from loguru import logger

from recadmin.models.api_models import ModelCatalog, ModelStat, TaskStatus, TrainingTask

from .models import Notification, NotificationKind, ViewSnapshot

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def _end_time_key(task: TrainingTask) -> datetime:
    end_time = task.end_time
    if end_time is None:
        return _OLDEST
    if end_time.tzinfo is None:
        return end_time.replace(tzinfo=timezone.utc)
    return end_time


def resolve_latest_completed(tasks: Iterable[TrainingTask]) -> TrainingTask | None:
    """Return the completed task that finished last.

    A missing ``end_time`` sorts as the oldest possible time and naive
    timestamps are read as UTC. Ties go to the first task encountered.
    """
    completed = [task for task in tasks if task.status == TaskStatus.COMPLETED]
    if not completed:
        return None
    # max() keeps the first of equal keys
    return max(completed, key=_end_time_key)


def resolve_click_rate(stat: ModelStat) -> float:
    """Click-through rate as a percentage; 0.0 when nothing was recommended."""
    if stat.total_recommendations <= 0:
        return 0.0
    return stat.total_clicks / stat.total_recommendations * 100


def resolve_task_progress(task: TrainingTask) -> float:
    """Processed share of a task's interactions as a percentage in [0, 100]."""
    if task.status == TaskStatus.COMPLETED:
        return 100.0
    total = task.total_interactions or 0
    processed = task.processed_interactions or 0
    if total <= 0:
        return 0.0
    return max(0.0, min(100.0, processed / total * 100))


SnapshotListener = Callable[[ViewSnapshot], None]


class SnapshotStore:
    """Holds the current ``ViewSnapshot`` and applies per-slice merges."""

    def __init__(self, snapshot: ViewSnapshot | None = None) -> None:
        self._snapshot = snapshot or ViewSnapshot()
        self._listeners: list[SnapshotListener] = []

    @property
    def snapshot(self) -> ViewSnapshot:
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with every new snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # --- Slice merges ------------------------------------------------------

    def merge_stats(self, stats: Iterable[ModelStat]) -> ViewSnapshot:
        return self._replace(stats=tuple(stats))

    def merge_catalog(self, catalog: ModelCatalog) -> ViewSnapshot:
        return self._replace(catalog=catalog)

    def merge_tasks(self, tasks: Iterable[TrainingTask]) -> ViewSnapshot:
        tasks = tuple(tasks)
        return self._replace(tasks=tasks, latest_completed=resolve_latest_completed(tasks))

    def merge_user_count(self, user_count: int) -> ViewSnapshot:
        return self._replace(user_count=user_count)

    def merge_log_count(self, log_count: int) -> ViewSnapshot:
        return self._replace(log_count=log_count)

    # --- Notifications -----------------------------------------------------

    def set_notification(self, kind: NotificationKind, message: str) -> ViewSnapshot:
        """Make ``message`` the live notification, replacing any previous one."""
        return self._replace(notification=Notification(kind=NotificationKind(kind), message=message))

    def clear_notification(self) -> ViewSnapshot:
        if self._snapshot.notification is None:
            return self._snapshot
        return self._replace(notification=None)

    # --- Internal helpers --------------------------------------------------

    def _replace(self, **changes) -> ViewSnapshot:
        changes["generated_at"] = datetime.now(tz=timezone.utc)
        self._snapshot = dataclasses.replace(self._snapshot, **changes)
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception as e:
                logger.exception(f"Snapshot listener failed: {e}")
        return self._snapshot
