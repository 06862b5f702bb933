"""Records exchanged with the recommendation and model-serving APIs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ModelStat(BaseModel):
    """Recommendation/click totals for one model version."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, protected_namespaces=())

    model_version: str = Field(alias="modelVersion")
    total_recommendations: int = Field(alias="totalRecommendations", ge=0)
    total_clicks: int = Field(alias="totalClicks", ge=0)


class ModelCatalog(BaseModel):
    """Trained models known to the serving API and the one currently active."""

    model_config = ConfigDict(frozen=True)

    models: tuple[str, ...] = ()
    current_model: str = ""
    message: str = ""

    @field_validator("models", mode="before")
    @classmethod
    def _dedupe_models(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            # Server order is kept; later duplicates are dropped
            return tuple(dict.fromkeys(value))
        return value

    @field_validator("current_model", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @model_validator(mode="after")
    def _current_model_is_listed(self) -> "ModelCatalog":
        if self.current_model and self.current_model not in self.models:
            raise ValueError(f"current_model '{self.current_model}' is not in the model list")
        return self


class TaskStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TrainingTask(BaseModel):
    """One online-learning task as reported by the model-serving API."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    status: TaskStatus
    start_time: datetime
    end_time: datetime | None = None
    total_interactions: int | None = None
    processed_interactions: int | None = None
    results: list[dict[str, Any]] = Field(default_factory=list)
    total_loss: float | None = None
    error: str | None = None
    save_path: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)
