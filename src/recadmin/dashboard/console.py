"""Rich readout of a ``ViewSnapshot`` for the operator console."""

from __future__ import annotations

import asyncio

from loguru import logger
from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from recadmin.models.api_models import TaskStatus

from .models import NotificationKind, ViewSnapshot
from .resolver import resolve_click_rate, resolve_task_progress
from .utils import format_count, format_loss, format_percent, format_timestamp

_STATUS_STYLES = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.PROCESSING: "cyan",
    TaskStatus.COMPLETED: "green",
    TaskStatus.FAILED: "red",
}


def render_overview(snapshot: ViewSnapshot) -> Panel:
    grid = Table.grid(padding=(0, 2))
    grid.add_column(width=16)
    grid.add_column(width=14)
    grid.add_column(width=16)
    grid.add_column(width=14)
    grid.add_row(
        Text("Users:", style="cyan"),
        Text(format_count(snapshot.user_count), style="yellow"),
        Text("Logs:", style="cyan"),
        Text(format_count(snapshot.log_count), style="yellow"),
    )
    grid.add_row(
        Text("Active model:", style="cyan"),
        Text(snapshot.catalog.current_model or "—", style="yellow"),
        Text("Last update:", style="cyan"),
        Text(format_timestamp(snapshot.generated_at), style="yellow"),
    )
    return Panel(grid, title="Overview", border_style="cyan", padding=(0, 1))


def render_stats(snapshot: ViewSnapshot) -> Panel:
    if not snapshot.stats:
        return Panel("No model statistics yet.", title="Model Performance", border_style="bright_blue")

    table = Table(show_header=True, header_style="bold magenta", border_style="bright_blue", box=None)
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Recommendations", justify="right", style="yellow")
    table.add_column("Clicks", justify="right", style="yellow")
    table.add_column("Click rate", justify="right", style="green")
    for stat in snapshot.stats:
        table.add_row(
            stat.model_version,
            format_count(stat.total_recommendations),
            format_count(stat.total_clicks),
            format_percent(resolve_click_rate(stat)),
        )
    return Panel(table, title="Model Performance", border_style="bright_blue", padding=(0, 1))


def render_models(snapshot: ViewSnapshot) -> Panel:
    catalog = snapshot.catalog
    if not catalog.models:
        return Panel("No trained models.", title="Models", border_style="bright_blue")

    table = Table(show_header=True, header_style="bold magenta", border_style="bright_blue", box=None)
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("State", justify="right")
    for name in catalog.models:
        active = name == catalog.current_model
        table.add_row(name, Text("active", style="bold green") if active else Text("—", style="dim"))
    return Panel(table, title="Models", border_style="bright_blue", padding=(0, 1))


def render_tasks(snapshot: ViewSnapshot) -> Panel:
    if not snapshot.tasks:
        return Panel("No training tasks.", title="Training Tasks", border_style="bright_blue")

    table = Table(show_header=True, header_style="bold magenta", border_style="bright_blue", box=None)
    table.add_column("Task", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Started")
    table.add_column("Finished")
    table.add_column("Loss", justify="right")
    for task in snapshot.tasks:
        table.add_row(
            task.task_id,
            Text(task.status.value, style=_STATUS_STYLES.get(task.status, "white")),
            format_percent(resolve_task_progress(task)),
            format_timestamp(task.start_time),
            format_timestamp(task.end_time),
            format_loss(task.total_loss),
        )

    latest = snapshot.latest_completed
    subtitle = None
    if latest is not None:
        subtitle = Text(
            f"Latest completed: {latest.task_id} at {format_timestamp(latest.end_time)}"
            + (f" → {latest.save_path}" if latest.save_path else ""),
            style="green",
        )
    return Panel(table, title="Training Tasks", subtitle=subtitle, border_style="bright_blue", padding=(0, 1))


def render_notification(snapshot: ViewSnapshot) -> Text | None:
    notification = snapshot.notification
    if notification is None:
        return None
    style = "bold red" if notification.kind == NotificationKind.ERROR else "bold green"
    return Text(notification.message, style=style)


def render_snapshot(snapshot: ViewSnapshot) -> Group:
    """Render the complete snapshot."""
    parts = [render_overview(snapshot), render_stats(snapshot), render_models(snapshot), render_tasks(snapshot)]
    notification = render_notification(snapshot)
    if notification is not None:
        parts.append(notification)
    return Group(*parts)


async def follow_snapshots(
    queue: asyncio.Queue[ViewSnapshot],
    *,
    console: Console | None = None,
    refresh_interval: float = 0.5,
) -> None:
    """Render the newest queued snapshot until cancelled."""
    console = console or Console()
    snapshot = await queue.get()
    with Live(render_snapshot(snapshot), console=console, refresh_per_second=4) as live:
        while True:
            latest = None
            try:
                while True:
                    latest = queue.get_nowait()
            except asyncio.QueueEmpty:
                pass

            if latest is not None:
                try:
                    live.update(render_snapshot(latest))
                except Exception as e:
                    logger.exception(f"Error rendering snapshot: {e}")
            await asyncio.sleep(refresh_interval)
