"""Data models for the model-management view."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from recadmin.models.api_models import ModelCatalog, ModelStat, TrainingTask


class NotificationKind(str, Enum):
    ERROR = "error"
    SUCCESS = "success"


@dataclass(slots=True, frozen=True)
class Notification:
    """Transient operator-facing message. Only one is ever live."""

    kind: NotificationKind
    message: str


@dataclass(slots=True, frozen=True)
class OperationError:
    """Failed outcome of one dashboard operation.

    ``code`` names the operation that failed (``stats_unavailable``,
    ``apply_failed`` ...) so failures stay attributable; ``message`` is meant
    for the operator and ``detail`` carries the underlying error text.
    """

    code: str
    message: str
    detail: str = ""

    def __str__(self) -> str:
        return self.message


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass(slots=True, frozen=True)
class ViewSnapshot:
    """Immutable view of fetched and derived dashboard state."""

    stats: tuple[ModelStat, ...] = ()
    catalog: ModelCatalog = field(default_factory=ModelCatalog)
    tasks: tuple[TrainingTask, ...] = ()
    latest_completed: Optional[TrainingTask] = None
    notification: Optional[Notification] = None
    user_count: Optional[int] = None
    log_count: Optional[int] = None
    generated_at: datetime = field(default_factory=_utcnow)
