"""Utility functions for the dashboard."""

from datetime import datetime


def format_count(value: int | None) -> str:
    """Thousands-separated count, or a dash when unknown."""
    if value is None:
        return "—"
    return f"{value:,}"


def format_percent(value: float) -> str:
    return f"{value:.2f}%"


def format_timestamp(value: datetime | None) -> str:
    """Local-time rendering of a timestamp, or a dash when unset."""
    if value is None:
        return "—"
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%Y-%m-%d %H:%M:%S")


def format_loss(value: float | None) -> str:
    return f"{value:.4f}" if value is not None else "—"
