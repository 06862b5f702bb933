import pytest

from recadmin.dashboard import FetchCoordinator
from recadmin.test_utils import (
    MODEL_V1,
    MODEL_V2,
    TASK_A_ID,
    create_fake_clients,
    create_test_catalog,
    create_test_stat,
    create_test_task,
)


@pytest.fixture
def fake_clients():
    return create_fake_clients(
        stats=[create_test_stat(MODEL_V1, 100, 25)],
        catalog=create_test_catalog(MODEL_V1, MODEL_V2, current_model=MODEL_V1),
        tasks=[create_test_task(TASK_A_ID, end_time="2024-01-01T00:00:00Z")],
        user_count=3,
        log_count=42,
    )


@pytest.fixture
def recommendation_client(fake_clients):
    return fake_clients[0]


@pytest.fixture
def model_client(fake_clients):
    return fake_clients[1]


@pytest.fixture
def coordinator(recommendation_client, model_client):
    return FetchCoordinator(recommendation_client=recommendation_client, model_client=model_client)
