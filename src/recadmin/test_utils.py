"""Shared test utilities for the dashboard test suite."""

import asyncio
import time
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from recadmin.api_client import ModelAPIClient, RecommendationAPIClient
from recadmin.models.api_models import ModelCatalog, ModelStat, TaskStatus, TrainingTask


# Test constants
MODEL_V1 = "v1"
MODEL_V2 = "v2"
MODEL_V3 = "v3"
TASK_A_ID = "task-a"
TASK_B_ID = "task-b"
TASK_C_ID = "task-c"
START_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def create_test_task(
    task_id: str,
    status: TaskStatus | str = TaskStatus.COMPLETED,
    end_time: datetime | str | None = None,
    start_time: datetime | str = START_TIME,
    total_interactions: int | None = None,
    processed_interactions: int | None = None,
    total_loss: float | None = None,
    save_path: str | None = None,
    error: str | None = None,
) -> TrainingTask:
    return TrainingTask.model_validate(
        {
            "task_id": task_id,
            "status": status,
            "start_time": start_time,
            "end_time": end_time,
            "total_interactions": total_interactions,
            "processed_interactions": processed_interactions,
            "total_loss": total_loss,
            "save_path": save_path,
            "error": error,
        }
    )


def create_test_stat(model_version: str, total_recommendations: int = 0, total_clicks: int = 0) -> ModelStat:
    return ModelStat(
        model_version=model_version,
        total_recommendations=total_recommendations,
        total_clicks=total_clicks,
    )


def create_test_catalog(*models: str, current_model: str = "") -> ModelCatalog:
    return ModelCatalog(models=models, current_model=current_model)


def create_fake_clients(
    *,
    stats: list[ModelStat] | None = None,
    catalog: ModelCatalog | None = None,
    tasks: list[TrainingTask] | None = None,
    user_count: int = 0,
    log_count: int = 0,
) -> tuple[AsyncMock, AsyncMock]:
    """Build ``(recommendation_client, model_client)`` mocks that answer successfully."""
    recommendation_client = AsyncMock(spec=RecommendationAPIClient)
    recommendation_client.get_model_statistics.return_value = stats or []
    recommendation_client.count_users.return_value = user_count
    recommendation_client.count_user_logs.return_value = log_count

    model_client = AsyncMock(spec=ModelAPIClient)
    model_client.list_models.return_value = catalog or ModelCatalog()
    model_client.list_training_tasks.return_value = tasks or []
    model_client.change_model.return_value = None
    model_client.delete_model.return_value = None
    model_client.delete_training_task.return_value = None
    model_client.start_training.return_value = None
    return recommendation_client, model_client


async def wait_until(predicate, timeout: float = 2.0, step: float = 0.005) -> None:
    """Yield to the event loop until ``predicate()`` holds or the timeout passes."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(step)
