from loguru import logger
from pydantic import TypeAdapter

from recadmin import settings
from recadmin.models.api_models import ModelCatalog, TrainingTask

from .common_api_client import CommonAPIClient, quote_segment

_TRAINING_TASKS = TypeAdapter(list[TrainingTask])


class ModelAPIClient(CommonAPIClient):
    """Client for the model-serving API."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        train_url: str | None = None,
        timeout: float | None = None,
    ):
        super().__init__(base_url or settings.MODEL_API_URL, timeout=timeout)
        self.train_url = train_url or settings.TRAIN_URL

    async def list_models(self) -> ModelCatalog:
        path = "/model/list"
        response = await self.request("GET", path)
        catalog = self.parse(path, ModelCatalog.model_validate, response)
        logger.debug(f"Fetched {len(catalog.models)} models, current: {catalog.current_model or '—'}")
        return catalog

    async def change_model(self, model_name: str) -> None:
        await self.request("POST", "/model/change", params={"model_name": model_name}, expect_json=False)
        logger.info(f"Active model changed to {model_name}")

    async def delete_model(self, model_name: str) -> None:
        await self.request("DELETE", f"/model/{quote_segment(model_name)}", expect_json=False)
        logger.info(f"Deleted model {model_name}")

    async def list_training_tasks(self) -> list[TrainingTask]:
        path = "/online-learning/tasks"
        response = await self.request("GET", path)
        return self.parse(path, _TRAINING_TASKS.validate_python, response)

    async def delete_training_task(self, task_id: str) -> None:
        await self.request("DELETE", f"/online-learning/async-batch-status/{quote_segment(task_id)}", expect_json=False)
        logger.info(f"Deleted training task {task_id}")

    async def start_training(self) -> None:
        """Kick off training. Only the acknowledgement is awaited; progress shows up in the task list."""
        await self.request("POST", "/model/train", url=self.train_url, expect_json=False)
        logger.info("Training started")
