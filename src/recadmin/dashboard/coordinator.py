"""Fetch and mutation operations behind the model-management view."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from recadmin.api_client import ModelAPIClient, RecommendationAPIClient
from recadmin.exceptions import APIException
from recadmin.models.api_models import ModelCatalog, ModelStat, TrainingTask
from recadmin.utils.metrics import OPERATION_FAILURES, STALE_RESULTS
from recadmin.utils.timer_logger import OPERATION_NAMES, TimerLogger

from .models import NotificationKind, OperationError, ViewSnapshot
from .resolver import SnapshotStore

T = TypeVar("T")

STATS_UNAVAILABLE = "stats_unavailable"
CATALOG_UNAVAILABLE = "catalog_unavailable"
TASKS_UNAVAILABLE = "tasks_unavailable"
USERS_UNAVAILABLE = "users_unavailable"
LOGS_UNAVAILABLE = "logs_unavailable"
APPLY_FAILED = "apply_failed"
DELETE_FAILED = "delete_failed"
TRAIN_FAILED = "train_failed"

_COMPONENT = "coordinator"


class FetchCoordinator:
    """Runs dashboard operations and folds their outcomes into a ``SnapshotStore``.

    Read operations each own one slice of the snapshot. Every read takes a
    ticket; a response older than the newest one already applied to its slice
    is dropped, so a slow request cannot overwrite fresher data.
    ``invalidate()`` drops everything still in flight at once.

    No operation raises for upstream failures. Each returns either its value
    or an ``OperationError`` and, on failure, sets an error notification.
    """

    def __init__(
        self,
        *,
        recommendation_client: RecommendationAPIClient,
        model_client: ModelAPIClient,
        store: SnapshotStore | None = None,
    ) -> None:
        self._recommendation_client = recommendation_client
        self._model_client = model_client
        self.store = store or SnapshotStore()
        self._issued: defaultdict[str, int] = defaultdict(int)
        self._applied: defaultdict[str, int] = defaultdict(int)
        self._epoch = 0

    @property
    def snapshot(self) -> ViewSnapshot:
        return self.store.snapshot

    def invalidate(self) -> None:
        """Stop every operation already in flight from touching the snapshot.

        Their callers still get the outcome; it just is not merged and no
        notification or follow-up refresh happens for it.
        """
        self._epoch += 1
        logger.debug(f"Coordinator invalidated (epoch #{self._epoch})")

    # --- Reads -------------------------------------------------------------

    async def fetch_model_stats(self) -> list[ModelStat] | OperationError:
        return await self._fetch_slice(
            "stats",
            "fetch_model_stats",
            self._recommendation_client.get_model_statistics,
            self.store.merge_stats,
            OperationError(STATS_UNAVAILABLE, "Failed to load model statistics."),
        )

    async def fetch_model_catalog(self) -> ModelCatalog | OperationError:
        return await self._fetch_slice(
            "catalog",
            "fetch_model_catalog",
            self._model_client.list_models,
            self.store.merge_catalog,
            OperationError(CATALOG_UNAVAILABLE, "Failed to load the model list."),
        )

    async def fetch_training_tasks(self) -> list[TrainingTask] | OperationError:
        return await self._fetch_slice(
            "tasks",
            "fetch_training_tasks",
            self._model_client.list_training_tasks,
            self.store.merge_tasks,
            OperationError(TASKS_UNAVAILABLE, "Failed to load training tasks."),
        )

    async def fetch_user_count(self) -> int | OperationError:
        return await self._fetch_slice(
            "user_count",
            "fetch_user_count",
            self._recommendation_client.count_users,
            self.store.merge_user_count,
            OperationError(USERS_UNAVAILABLE, "Failed to load the user count."),
        )

    async def fetch_log_count(self) -> int | OperationError:
        return await self._fetch_slice(
            "log_count",
            "fetch_log_count",
            self._recommendation_client.count_user_logs,
            self.store.merge_log_count,
            OperationError(LOGS_UNAVAILABLE, "Failed to load the log count."),
        )

    async def refresh_all(self) -> ViewSnapshot:
        """Fetch stats, catalog and tasks concurrently; each merges as soon as it arrives."""
        await asyncio.gather(
            self.fetch_model_stats(),
            self.fetch_model_catalog(),
            self.fetch_training_tasks(),
        )
        return self.store.snapshot

    async def refresh_overview(self) -> ViewSnapshot:
        """Fetch the user and log counts shown on the landing page."""
        await asyncio.gather(self.fetch_user_count(), self.fetch_log_count())
        return self.store.snapshot

    # --- Mutations ---------------------------------------------------------

    async def apply_model(self, name: str) -> None | OperationError:
        """Make ``name`` the serving model, then refresh the catalog once."""
        current = self.store.snapshot.catalog.current_model
        if not name:
            return self._reject(OperationError(APPLY_FAILED, "Select a model to apply."))
        if name == current:
            return self._reject(OperationError(APPLY_FAILED, f"Model '{name}' is already active."))

        epoch = self._epoch
        result = await self._run(
            "apply_model",
            lambda: self._model_client.change_model(name),
            OperationError(APPLY_FAILED, f"Failed to apply model '{name}'."),
        )
        if self._invalidated(epoch, "apply_model"):
            return result if isinstance(result, OperationError) else None
        if isinstance(result, OperationError):
            return self._fail(result)
        self.store.set_notification(NotificationKind.SUCCESS, f"Model '{name}' is now active.")
        await self.fetch_model_catalog()
        return None

    async def delete_model(self, name: str) -> None | OperationError:
        """Delete a trained model, then refresh the catalog once. The active model cannot be deleted."""
        current = self.store.snapshot.catalog.current_model
        if not name:
            return self._reject(OperationError(DELETE_FAILED, "Select a model to delete."))
        if name == current:
            return self._reject(OperationError(DELETE_FAILED, f"Model '{name}' is active and cannot be deleted."))

        epoch = self._epoch
        result = await self._run(
            "delete_model",
            lambda: self._model_client.delete_model(name),
            OperationError(DELETE_FAILED, f"Failed to delete model '{name}'."),
        )
        if self._invalidated(epoch, "delete_model"):
            return result if isinstance(result, OperationError) else None
        if isinstance(result, OperationError):
            return self._fail(result)
        self.store.set_notification(NotificationKind.SUCCESS, f"Model '{name}' deleted.")
        await self.fetch_model_catalog()
        return None

    async def delete_task(self, task_id: str) -> None | OperationError:
        if not task_id:
            return self._reject(OperationError(DELETE_FAILED, "Select a training task to delete."))

        epoch = self._epoch
        result = await self._run(
            "delete_task",
            lambda: self._model_client.delete_training_task(task_id),
            OperationError(DELETE_FAILED, f"Failed to delete training task '{task_id}'."),
        )
        if self._invalidated(epoch, "delete_task"):
            return result if isinstance(result, OperationError) else None
        if isinstance(result, OperationError):
            return self._fail(result)
        self.store.set_notification(NotificationKind.SUCCESS, f"Training task '{task_id}' deleted.")
        await self.fetch_training_tasks()
        return None

    async def start_training(self) -> None | OperationError:
        epoch = self._epoch
        result = await self._run(
            "start_training",
            self._model_client.start_training,
            OperationError(TRAIN_FAILED, "Failed to start training."),
        )
        if self._invalidated(epoch, "start_training"):
            return result if isinstance(result, OperationError) else None
        if isinstance(result, OperationError):
            return self._fail(result)
        self.store.set_notification(NotificationKind.SUCCESS, "Training started.")
        return None

    def clear_notification(self) -> ViewSnapshot:
        return self.store.clear_notification()

    # --- Internal helpers --------------------------------------------------

    async def _fetch_slice(
        self,
        slice_name: str,
        operation: OPERATION_NAMES,
        call: Callable[[], Awaitable[T]],
        merge: Callable[[T], object],
        error: OperationError,
    ) -> T | OperationError:
        self._issued[slice_name] += 1
        ticket = self._issued[slice_name]
        epoch = self._epoch

        result = await self._run(operation, call, error)

        if self._invalidated(epoch, operation):
            return result
        if ticket <= self._applied[slice_name]:
            logger.debug(
                f"Discarding stale {slice_name} response (ticket #{ticket}, applied #{self._applied[slice_name]})"
            )
            STALE_RESULTS.labels(component=_COMPONENT, operation=operation).inc()
            return result
        self._applied[slice_name] = ticket

        if isinstance(result, OperationError):
            self._fail(result)
        else:
            merge(result)
        return result

    async def _run(
        self,
        operation: OPERATION_NAMES,
        call: Callable[[], Awaitable[T]],
        error: OperationError,
    ) -> T | OperationError:
        try:
            async with TimerLogger(operation):
                return await call()
        except APIException as e:
            logger.error(f"{operation} failed: {e}")
            detail = str(e)
        except Exception as e:
            logger.exception(f"Unexpected error during {operation}: {e}")
            detail = f"{type(e).__name__}: {e}"
        OPERATION_FAILURES.labels(component=_COMPONENT, operation=operation).inc()
        return OperationError(error.code, error.message, detail)

    def _invalidated(self, epoch: int, operation: OPERATION_NAMES) -> bool:
        if epoch == self._epoch:
            return False
        logger.debug(f"Discarding {operation} outcome issued before invalidation")
        STALE_RESULTS.labels(component=_COMPONENT, operation=operation).inc()
        return True

    def _reject(self, error: OperationError) -> OperationError:
        logger.warning(f"Rejected operation ({error.code}): {error.message}")
        return self._fail(error)

    def _fail(self, error: OperationError) -> OperationError:
        self.store.set_notification(NotificationKind.ERROR, error.message)
        return error
