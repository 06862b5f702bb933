from .api_models import ModelCatalog, ModelStat, TaskStatus, TrainingTask

__all__ = [
    "ModelCatalog",
    "ModelStat",
    "TaskStatus",
    "TrainingTask",
]
