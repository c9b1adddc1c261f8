"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from wuctl.core.theme import get_theme
from wuctl.models.update import OperationStatus

if TYPE_CHECKING:
    from wuctl.models.update import UpdateRecord


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())

_STATUS_LABELS: dict[OperationStatus, str] = {
    OperationStatus.PENDING: "",
    OperationStatus.IN_PROGRESS: "[status.in_progress]running[/]",
    OperationStatus.SUCCESS: "[status.success]removed[/]",
    OperationStatus.FAILED: "[status.failed]failed[/]",
    OperationStatus.SKIPPED: "[status.skipped]skipped[/]",
}


def create_update_table(title: str = "Installed Updates") -> Table:
    """Create a pre-configured table for displaying updates.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for update display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    # Removability icon, no header text
    table.add_column("", width=2, justify="center")
    table.add_column("KB", no_wrap=True)
    table.add_column("Title", style="text", overflow="ellipsis")
    table.add_column("Category", style="muted")
    table.add_column("Installed", style="muted", no_wrap=True)
    table.add_column("Method", style="info", no_wrap=True)
    table.add_column("Target", style="muted", overflow="fold")
    return table


def format_update_row(record: UpdateRecord) -> tuple[str, str, str, str, str, str, str]:
    """Format an update as a table row with proper styling.

    Removable updates get a filled circle, others an empty one. The most
    recent quality update is highlighted.

    Args:
        record: The update to format.

    Returns:
        Tuple of (icon, kb, title, category, installed, method, target) with Rich markup.
    """
    icon = "[removable]●[/]" if record.removable else "[not_removable]○[/]"
    kb = escape(record.kb_id or "-")
    title = escape(record.title)
    if record.is_latest_security:
        kb = f"[latest_security]{kb}[/]"
        title = f"{title} [latest_security](latest security update)[/]"

    return (
        icon,
        kb,
        title,
        record.category.value,
        record.installed_at.strftime("%Y-%m-%d"),
        record.method.display_name,
        escape(record.target or "-"),
    )


def create_result_table(title: str = "Removal Results") -> Table:
    """Create a pre-configured table for per-item removal results."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Update", no_wrap=True)
    table.add_column("Method", style="info", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Message", style="text", overflow="fold")
    return table


def format_status(status: OperationStatus) -> str:
    """Format an operation status with color markup."""
    return _STATUS_LABELS[status]


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
