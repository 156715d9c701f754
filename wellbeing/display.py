"""Rich terminal formatting helpers."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from wellbeing.messages import format_duration
from wellbeing.models import ReminderSettings

console = Console()


def print_settings(settings: ReminderSettings, title: str = "Preferences") -> None:
    """Print the persisted settings in a panel."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("key", style="bold")
    table.add_column("value")
    table.add_column("human", style="dim")

    enabled = "[green]on[/green]" if settings.enabled else "[yellow]off[/yellow]"
    table.add_row("enabled", enabled, "")
    table.add_row(
        "break-interval",
        f"{settings.break_interval}s",
        format_duration(settings.break_interval),
    )
    table.add_row(
        "break-duration",
        f"{settings.break_duration}s",
        format_duration(settings.break_duration),
    )
    table.add_row(
        "snooze-duration",
        f"{settings.snooze_duration}s",
        format_duration(settings.snooze_duration),
    )

    console.print(Panel(table, title=title, border_style="blue"))


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[blue]{message}[/blue]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]{message}[/yellow]")
