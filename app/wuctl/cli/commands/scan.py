"""Scan command implementation.

Reads the installed updates and shows how each one can be removed.
"""

import json
from typing import Annotated

import typer

from wuctl.cli.types import CategoryChoice, filter_by_category, filter_by_search, run_refresh
from wuctl.core.config import WuctlConfigError, load_config_or_default
from wuctl.core.inventory import RefreshResult
from wuctl.models.update import UpdateCategory, UpdateRecord
from wuctl.utils.formatting import (
    console,
    create_update_table,
    format_update_row,
    print_error,
    print_info,
)

app = typer.Typer(
    help="List installed updates and their uninstall method.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def scan_updates(
    ctx: typer.Context,
    category: Annotated[
        CategoryChoice,
        typer.Option(
            "--category",
            "-c",
            help="Update category to show: quality, driver, definition, other, or all.",
            case_sensitive=False,
        ),
    ] = CategoryChoice.ALL,
    search: Annotated[
        str | None,
        typer.Option(
            "--search",
            "-s",
            help="Only show updates whose title, KB or description contains TEXT.",
            metavar="TEXT",
        ),
    ] = None,
    removable_only: Annotated[
        bool,
        typer.Option(
            "--removable-only",
            "-r",
            help="Only show updates that can be uninstalled.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
    show_log: Annotated[
        bool,
        typer.Option(
            "--log",
            help="Print the identity matching trace.",
        ),
    ] = False,
) -> None:
    """Scan installed updates.

    Queries the update history, the DISM package list, the servicing
    registry and the driver store, then resolves which tool can
    uninstall each update.

    Examples:
        wuctl scan                      # All installed updates
        wuctl scan --category quality   # Cumulative and security updates only
        wuctl scan -s defender          # Updates mentioning Defender
        wuctl scan -r --json            # Removable updates as JSON
        wuctl scan --log                # Show why each update got its method
    """
    if ctx.invoked_subcommand is not None:
        return

    quiet = bool((ctx.obj or {}).get("quiet", False))

    try:
        config = load_config_or_default()
    except WuctlConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    result = run_refresh(config, quiet=quiet or json_output)

    records = filter_by_search(filter_by_category(result.records, category), search)
    if removable_only:
        records = [r for r in records if r.removable]

    if json_output:
        _print_json(records, result.match_log if show_log else None)
        return

    if not records:
        print_info("No installed updates found.")
    else:
        _print_table(records)
        if not quiet:
            _print_summary(result, records)

    if show_log:
        _print_match_log(result.match_log)


def _print_table(records: list[UpdateRecord]) -> None:
    """Print updates as a Rich table."""
    table = create_update_table()
    for record in records:
        table.add_row(*format_update_row(record))
    console.print(table)


def _print_summary(result: RefreshResult, shown: list[UpdateRecord]) -> None:
    """Print the category tally below the table."""
    counts = result.count_by_category()
    parts = [f"{counts[c]} {c.value}" for c in UpdateCategory if counts[c]]
    removable = sum(1 for r in shown if r.removable)
    console.print(
        f"\n[muted]{len(shown)} shown, {removable} removable "
        f"({len(result.records)} installed: {', '.join(parts) or 'none'})[/muted]"
    )


def _print_match_log(lines: list[str]) -> None:
    """Print the identity matcher trace."""
    console.print("\n[bold_header]Match log[/]")
    if not lines:
        console.print("[muted](empty)[/muted]")
        return
    for line in lines:
        console.print(line, markup=False, highlight=False)


def _print_json(records: list[UpdateRecord], match_log: list[str] | None) -> None:
    """Print updates as JSON for scripting."""
    payload: dict[str, object] = {"updates": [r.to_dict() for r in records]}
    if match_log is not None:
        payload["match_log"] = match_log
    console.print(
        json.dumps(payload, indent=2), markup=False, highlight=False, soft_wrap=True
    )
