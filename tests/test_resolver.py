from datetime import datetime, timezone

from recadmin.dashboard.models import NotificationKind, ViewSnapshot
from recadmin.dashboard.resolver import (
    SnapshotStore,
    resolve_click_rate,
    resolve_latest_completed,
    resolve_task_progress,
)
from recadmin.models.api_models import TaskStatus
from recadmin.test_utils import (
    MODEL_V1,
    TASK_A_ID,
    TASK_B_ID,
    TASK_C_ID,
    create_test_catalog,
    create_test_stat,
    create_test_task,
)


def test_click_rate_is_a_percentage():
    stat = create_test_stat(MODEL_V1, total_recommendations=100, total_clicks=25)
    assert resolve_click_rate(stat) == 25.0


def test_click_rate_is_zero_without_recommendations():
    assert resolve_click_rate(create_test_stat(MODEL_V1, 0, 0)) == 0.0
    # Clicks without recommendations still must not divide by zero
    assert resolve_click_rate(create_test_stat(MODEL_V1, 0, 7)) == 0.0


def test_latest_completed_picks_latest_end_time():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.COMPLETED, end_time="2024-01-01T00:00:00Z"),
        create_test_task(TASK_B_ID, TaskStatus.COMPLETED, end_time="2024-01-02T00:00:00Z"),
        create_test_task(TASK_C_ID, TaskStatus.FAILED, end_time=None),
    ]
    latest = resolve_latest_completed(tasks)
    assert latest is not None
    assert latest.task_id == TASK_B_ID


def test_latest_completed_is_none_without_completed_tasks():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.PENDING),
        create_test_task(TASK_B_ID, TaskStatus.PROCESSING),
        create_test_task(TASK_C_ID, TaskStatus.FAILED, end_time="2024-01-05T00:00:00Z"),
    ]
    assert resolve_latest_completed(tasks) is None
    assert resolve_latest_completed([]) is None


def test_latest_completed_ignores_newer_failed_tasks():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.COMPLETED, end_time="2024-01-01T00:00:00Z"),
        create_test_task(TASK_B_ID, TaskStatus.FAILED, end_time="2024-02-01T00:00:00Z"),
    ]
    assert resolve_latest_completed(tasks).task_id == TASK_A_ID


def test_latest_completed_ties_resolve_to_first_encountered():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.COMPLETED, end_time="2024-01-02T00:00:00Z"),
        create_test_task(TASK_B_ID, TaskStatus.COMPLETED, end_time="2024-01-02T00:00:00Z"),
    ]
    assert resolve_latest_completed(tasks).task_id == TASK_A_ID
    assert resolve_latest_completed(list(reversed(tasks))).task_id == TASK_B_ID


def test_latest_completed_treats_missing_end_time_as_oldest():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.COMPLETED, end_time=None),
        create_test_task(TASK_B_ID, TaskStatus.COMPLETED, end_time="2023-06-01T00:00:00Z"),
    ]
    assert resolve_latest_completed(tasks).task_id == TASK_B_ID
    assert resolve_latest_completed(tasks[:1]).task_id == TASK_A_ID


def test_latest_completed_compares_naive_and_aware_times():
    tasks = [
        create_test_task(TASK_A_ID, TaskStatus.COMPLETED, end_time=datetime(2024, 1, 3)),
        create_test_task(TASK_B_ID, TaskStatus.COMPLETED, end_time=datetime(2024, 1, 2, tzinfo=timezone.utc)),
    ]
    assert resolve_latest_completed(tasks).task_id == TASK_A_ID


def test_task_progress():
    running = create_test_task(
        TASK_A_ID, TaskStatus.PROCESSING, total_interactions=200, processed_interactions=50
    )
    assert resolve_task_progress(running) == 25.0
    assert resolve_task_progress(create_test_task(TASK_B_ID, TaskStatus.PENDING)) == 0.0
    assert resolve_task_progress(create_test_task(TASK_C_ID, TaskStatus.COMPLETED)) == 100.0

    overshoot = create_test_task(TASK_A_ID, TaskStatus.PROCESSING, total_interactions=10, processed_interactions=12)
    assert resolve_task_progress(overshoot) == 100.0


def test_notifications_are_mutually_exclusive():
    store = SnapshotStore()

    store.set_notification(NotificationKind.ERROR, "x")
    assert store.snapshot.notification.kind == NotificationKind.ERROR

    store.set_notification(NotificationKind.SUCCESS, "y")
    notification = store.snapshot.notification
    assert notification.kind == NotificationKind.SUCCESS
    assert notification.message == "y"

    store.clear_notification()
    assert store.snapshot.notification is None

    store.set_notification(NotificationKind.ERROR, "z")
    store.clear_notification()
    assert store.snapshot.notification is None


def test_merge_tasks_recomputes_latest_completed():
    store = SnapshotStore()
    store.merge_tasks([create_test_task(TASK_A_ID, end_time="2024-01-01T00:00:00Z")])
    assert store.snapshot.latest_completed.task_id == TASK_A_ID

    store.merge_tasks([create_test_task(TASK_B_ID, TaskStatus.PROCESSING)])
    assert store.snapshot.latest_completed is None
    assert [task.task_id for task in store.snapshot.tasks] == [TASK_B_ID]


def test_merges_replace_only_their_slice():
    store = SnapshotStore()
    store.merge_stats([create_test_stat(MODEL_V1, 10, 1)])
    store.merge_catalog(create_test_catalog(MODEL_V1, current_model=MODEL_V1))
    before = store.snapshot

    store.merge_user_count(5)
    after = store.snapshot
    assert after is not before
    assert after.stats == before.stats
    assert after.catalog == before.catalog
    assert after.user_count == 5
    assert after.log_count is None


def test_listeners_receive_every_snapshot():
    store = SnapshotStore()
    seen: list[ViewSnapshot] = []
    unsubscribe = store.subscribe(seen.append)

    store.merge_log_count(9)
    store.set_notification(NotificationKind.SUCCESS, "done")
    assert [snapshot.log_count for snapshot in seen] == [9, 9]
    assert seen[-1] is store.snapshot

    unsubscribe()
    store.clear_notification()
    assert len(seen) == 2


def test_failing_listener_does_not_block_others():
    store = SnapshotStore()
    seen = []

    def broken(_snapshot):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)
    store.merge_user_count(1)
    assert len(seen) == 1
    assert store.snapshot.user_count == 1
