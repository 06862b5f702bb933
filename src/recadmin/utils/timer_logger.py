import json
import time
import uuid
from typing import Any, Dict, Literal, Optional, get_args

from loguru import logger

OPERATION_NAMES = Literal[
    "fetch_model_stats",
    "fetch_model_catalog",
    "fetch_training_tasks",
    "fetch_user_count",
    "fetch_log_count",
    "apply_model",
    "delete_model",
    "delete_task",
    "start_training",
]


class TimerLogger:
    """Logs start/end events with the elapsed time of one dashboard operation."""

    def __init__(self, name: OPERATION_NAMES, metadata: Optional[Dict[str, Any]] = None):
        self.name = name
        if self.name not in get_args(OPERATION_NAMES):
            raise ValueError(
                f"Invalid operation name: {name}. Valid names are: {', '.join(get_args(OPERATION_NAMES))}"
            )
        self.metadata = metadata or {}
        self.enter_time: Optional[float] = None
        self.exit_time: Optional[float] = None
        self.event_id: str = str(uuid.uuid4())

    @property
    def duration(self) -> Optional[float]:
        if self.enter_time is None or self.exit_time is None:
            return None
        return self.exit_time - self.enter_time

    async def __aenter__(self):
        self.enter_time = time.time()
        start_event = {
            "id": self.event_id,
            "name": self.name,
            "type": "start",
            "time": self.enter_time,
            "metadata": self.metadata,
        }
        logger.debug(f"Timer Logger: {json.dumps(start_event)}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.exit_time = time.time()
        end_event = {
            "id": self.event_id,
            "name": self.name,
            "type": "end",
            "time": self.exit_time,
            "metadata": self.metadata,
            "duration": self.duration,
            "failed": exc_type is not None,
        }
        logger.debug(f"Timer Logger: {json.dumps(end_event)}")
        return False
