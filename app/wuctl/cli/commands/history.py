"""History command for viewing past removal runs.

This module provides the `wuctl history` command.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from wuctl.core.state import StateManager
from wuctl.models.history import HistoryEntry
from wuctl.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View history of removal runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of removal runs.

    Each entry lists the updates attempted in one `wuctl remove` run
    and how many of them were removed.

    Examples:
        wuctl history              # Show last 20 runs
        wuctl history -n 50        # Show last 50 runs
        wuctl history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history(limit=limit)

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        _print_json(entries)
    else:
        _print_table(entries)


def _print_table(entries: list[HistoryEntry]) -> None:
    """Print history as Rich table.

    Args:
        entries: List of history entries to display.
    """
    table = Table(
        title="Removal History",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("ID", style="muted", no_wrap=True)
    table.add_column("Timestamp", style="info", no_wrap=True)
    table.add_column("Updates", style="text")
    table.add_column("Removed", style="success", justify="right")
    table.add_column("Failed", style="error", justify="right")

    for entry in entries:
        count = len(entry.items)
        names = ", ".join(item.kb_id or item.title for item in entry.items[:3])
        if count > 3:
            names += f" (+{count - 3} more)"

        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            names,
            str(entry.succeeded),
            str(entry.failed),
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")


def _print_json(entries: list[HistoryEntry]) -> None:
    """Print history as JSON."""
    output = [entry.to_dict() for entry in entries]
    console.print(json.dumps(output, indent=2), markup=False, highlight=False, soft_wrap=True)
