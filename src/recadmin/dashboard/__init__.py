"""
Model-management view state for the recommendation admin dashboard.

``FetchCoordinator`` talks to the upstream services, ``PollingScheduler``
keeps the training-task list fresh, and ``SnapshotStore`` folds everything
into one immutable ``ViewSnapshot``. ``ModelManagementView`` ties the three
together behind a start/stop lifecycle.
"""

from .coordinator import FetchCoordinator
from .lifecycle import ModelManagementView
from .models import Notification, NotificationKind, OperationError, ViewSnapshot
from .resolver import SnapshotStore, resolve_click_rate, resolve_latest_completed, resolve_task_progress
from .scheduler import PollingScheduler

__all__ = [
    "FetchCoordinator",
    "ModelManagementView",
    "Notification",
    "NotificationKind",
    "OperationError",
    "PollingScheduler",
    "SnapshotStore",
    "ViewSnapshot",
    "resolve_click_rate",
    "resolve_latest_completed",
    "resolve_task_progress",
]
