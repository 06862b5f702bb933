import io

import pytest
from rich.console import Console

from recadmin import main as cli
from recadmin.dashboard import FetchCoordinator
from recadmin.exceptions import APIException
from recadmin.test_utils import MODEL_V1, MODEL_V2, TASK_A_ID, create_test_catalog


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=140, color_system=None)


@pytest.fixture
def patched_coordinator(monkeypatch, coordinator):
    monkeypatch.setattr(cli, "build_coordinator", lambda args: coordinator)
    return coordinator


def test_parser_defaults_come_from_settings():
    args = cli.build_parser().parse_args(["status"])
    assert args.command == "status"
    assert args.interval_ms > 0
    assert args.model_url.startswith("http")


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args([])


def test_build_coordinator_uses_cli_urls():
    args = cli.build_parser().parse_args(
        ["--model-url", "http://models:8000/api/v1", "--train-url", "http://models:8000/api/model/train", "train"]
    )
    coordinator = cli.build_coordinator(args)
    assert isinstance(coordinator, FetchCoordinator)


@pytest.mark.asyncio
async def test_status_prints_snapshot(patched_coordinator, console):
    args = cli.build_parser().parse_args(["status"])

    assert await cli.run(args, console) == 0
    output = console.file.getvalue()
    assert MODEL_V1 in output
    assert TASK_A_ID in output
    assert "25.00%" in output
    assert "42" in output


@pytest.mark.asyncio
async def test_status_reports_failure(patched_coordinator, model_client, console):
    model_client.list_models.side_effect = APIException("down")
    args = cli.build_parser().parse_args(["status"])

    assert await cli.run(args, console) == 1
    assert "Failed to load the model list." in console.file.getvalue()


@pytest.mark.asyncio
async def test_apply_command(patched_coordinator, model_client, console):
    model_client.list_models.side_effect = [
        create_test_catalog(MODEL_V1, MODEL_V2, current_model=MODEL_V1),
        create_test_catalog(MODEL_V1, MODEL_V2, current_model=MODEL_V2),
    ]
    args = cli.build_parser().parse_args(["apply", MODEL_V2])

    assert await cli.run(args, console) == 0
    model_client.change_model.assert_awaited_once_with(MODEL_V2)
    assert f"Model '{MODEL_V2}' is now active." in console.file.getvalue()


@pytest.mark.asyncio
async def test_delete_active_model_command_fails(patched_coordinator, model_client, console):
    args = cli.build_parser().parse_args(["delete-model", MODEL_V1])

    assert await cli.run(args, console) == 1
    model_client.delete_model.assert_not_awaited()
    assert "cannot be deleted" in console.file.getvalue()


@pytest.mark.asyncio
async def test_train_and_delete_task_commands(patched_coordinator, model_client, console):
    assert await cli.run(cli.build_parser().parse_args(["train"]), console) == 0
    model_client.start_training.assert_awaited_once()

    model_client.delete_training_task.side_effect = APIException("500 - oops", status=500)
    assert await cli.run(cli.build_parser().parse_args(["delete-task", TASK_A_ID]), console) == 1
    output = console.file.getvalue()
    assert "Training started." in output
    assert f"Failed to delete training task '{TASK_A_ID}'." in output


def test_main_runs_status(patched_coordinator, monkeypatch):
    monkeypatch.setattr(cli, "Console", lambda: Console(file=io.StringIO()))
    assert cli.main(["--log-level", "WARNING", "status"]) == 0
