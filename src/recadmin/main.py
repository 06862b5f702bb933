import argparse
import asyncio
import sys

from loguru import logger
from rich.console import Console
from rich.text import Text

from recadmin import settings
from recadmin.api_client import ModelAPIClient, RecommendationAPIClient
from recadmin.dashboard import FetchCoordinator, ModelManagementView, OperationError
from recadmin.dashboard.console import follow_snapshots, render_notification, render_snapshot


def _configure_logging(level: str, silence: bool) -> None:
    """Route loguru to stderr, or drop everything while the live console owns the screen."""
    logger.remove()
    if silence:
        logger.add(lambda message: None)
        return
    logger.add(sys.stderr, level=level)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="recadmin", description="Operate the recommendation model dashboard.")
    parser.add_argument(
        "--recommendation-url",
        default=settings.RECOMMENDATION_API_URL,
        help="Base URL of the user/log/recommendation API.",
    )
    parser.add_argument("--model-url", default=settings.MODEL_API_URL, help="Base URL of the model-serving API.")
    parser.add_argument("--train-url", default=settings.TRAIN_URL, help="Absolute URL that starts model training.")
    parser.add_argument(
        "--interval-ms",
        type=int,
        default=settings.POLL_INTERVAL_MS,
        help="Training-task polling interval in milliseconds (watch only).",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Log level for stderr output.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("status", help="Fetch everything once and print it.")
    watch = subparsers.add_parser("watch", help="Keep the dashboard live, polling training tasks.")
    watch.add_argument(
        "--show-logs",
        dest="show_logs",
        action="store_true",
        help="Keep log output enabled while the live view is running.",
    )
    apply = subparsers.add_parser("apply", help="Switch the active recommendation model.")
    apply.add_argument("model", help="Name of the model to activate.")
    delete_model = subparsers.add_parser("delete-model", help="Delete a trained model (not the active one).")
    delete_model.add_argument("model", help="Name of the model to delete.")
    delete_task = subparsers.add_parser("delete-task", help="Delete a training task.")
    delete_task.add_argument("task_id", help="Identifier of the task to delete.")
    subparsers.add_parser("train", help="Start training a new model.")
    return parser


def build_coordinator(args: argparse.Namespace) -> FetchCoordinator:
    return FetchCoordinator(
        recommendation_client=RecommendationAPIClient(args.recommendation_url),
        model_client=ModelAPIClient(args.model_url, train_url=args.train_url),
    )


async def _status(coordinator: FetchCoordinator, console: Console) -> int:
    await asyncio.gather(coordinator.refresh_all(), coordinator.refresh_overview())
    snapshot = coordinator.snapshot
    console.print(render_snapshot(snapshot))
    return 0 if snapshot.notification is None else 1


async def _watch(coordinator: FetchCoordinator, interval_ms: int, console: Console) -> int:
    async with ModelManagementView(coordinator=coordinator, poll_interval_ms=interval_ms) as view:
        await follow_snapshots(view.snapshot_queue, console=console)
    return 0


async def _mutate(coordinator: FetchCoordinator, args: argparse.Namespace, console: Console) -> int:
    # Policy checks compare against the active model, so load the catalog first
    await coordinator.fetch_model_catalog()
    coordinator.clear_notification()

    if args.command == "apply":
        result = await coordinator.apply_model(args.model)
    elif args.command == "delete-model":
        result = await coordinator.delete_model(args.model)
    elif args.command == "delete-task":
        result = await coordinator.delete_task(args.task_id)
    else:
        result = await coordinator.start_training()

    message = render_notification(coordinator.snapshot)
    if isinstance(result, OperationError):
        # The live notification may already belong to a later refresh
        console.print(Text(result.message, style="bold red"))
        if result.detail:
            console.print(Text(result.detail, style="dim"))
        return 1
    if message is not None:
        console.print(message)
    return 0


async def run(args: argparse.Namespace, console: Console | None = None) -> int:
    console = console or Console()
    coordinator = build_coordinator(args)
    if args.command == "status":
        return await _status(coordinator, console)
    if args.command == "watch":
        return await _watch(coordinator, args.interval_ms, console)
    return await _mutate(coordinator, args, console)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the dashboard operator console."""
    parser = build_parser()
    args = parser.parse_args(argv)
    silence = args.command == "watch" and not args.show_logs
    _configure_logging(args.log_level, silence)

    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
