"""Remove command implementation.

Uninstalls selected updates one at a time and records the run.
"""

import logging
from typing import Annotated

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn

from wuctl.cli.types import CategoryChoice, filter_by_category, filter_by_search, run_refresh
from wuctl.core.batch import BatchRunner, select_removable
from wuctl.core.config import WuctlConfig, WuctlConfigError, load_config_or_default
from wuctl.core.orchestrator import RemovalOrchestrator
from wuctl.core.state import StateManager
from wuctl.models.history import HistoryItem, create_history_entry
from wuctl.models.removal import BatchEvent, BatchEventType, BatchSummary
from wuctl.models.update import UpdateRecord
from wuctl.operators.dism import DismExecutor
from wuctl.operators.pnputil import PnpUtilExecutor
from wuctl.operators.wusa import WusaExecutor
from wuctl.scanners.dism import RollupIndexSource
from wuctl.utils.formatting import (
    console,
    create_result_table,
    create_update_table,
    format_status,
    format_update_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from wuctl.utils.shell import schedule_restart

logger = logging.getLogger(__name__)


def normalize_kb(value: str) -> str:
    """Normalize user input like '5034441' or 'kb5034441' to 'KB5034441'.

    Raises:
        ValueError: If the value is not a KB number.
    """
    text = value.strip().upper()
    digits = text[2:] if text.startswith("KB") else text
    if not digits.isdigit():
        msg = f"Not a KB identifier: {value}"
        raise ValueError(msg)
    return f"KB{digits}"


def select_by_kb(
    records: list[UpdateRecord], kb_ids: list[str]
) -> tuple[list[UpdateRecord], list[str]]:
    """Pick the newest record for each requested KB identifier.

    Args:
        records: Records ordered newest first.
        kb_ids: Normalized KB identifiers in request order.

    Returns:
        Tuple of (selected records, KB ids with no installed update).
    """
    newest: dict[str, UpdateRecord] = {}
    for record in records:
        if record.kb_id and record.kb_id not in newest:
            newest[record.kb_id] = record

    selected: list[UpdateRecord] = []
    missing: list[str] = []
    for kb_id in dict.fromkeys(kb_ids):
        if kb_id in newest:
            selected.append(newest[kb_id])
        else:
            missing.append(kb_id)
    return selected, missing


def build_orchestrator(config: WuctlConfig, dry_run: bool = False) -> RemovalOrchestrator:
    """Create an orchestrator wired to the system executors."""
    rollups = RollupIndexSource()
    return RemovalOrchestrator(
        package_executor=DismExecutor(dry_run=dry_run),
        driver_executor=PnpUtilExecutor(dry_run=dry_run),
        standalone_executor=WusaExecutor(dry_run=dry_run),
        secondary_index=lambda: list(rollups.collect()),
        standalone_timeout=float(config.standalone_timeout_seconds),
    )


class ProgressListener:
    """Drives a Rich progress bar from batch events."""

    def __init__(self, progress: Progress) -> None:
        self._progress = progress
        self._task: TaskID | None = None

    def __call__(self, event: BatchEvent) -> None:
        if event.event_type == BatchEventType.STARTED:
            self._task = self._progress.add_task("Removing updates", total=event.total)
            return
        if self._task is None:
            return
        if event.event_type == BatchEventType.ITEM_STARTED and event.record is not None:
            self._progress.update(self._task, description=f"Removing {event.record.display_id}")
        elif event.event_type == BatchEventType.ITEM_FINISHED:
            self._progress.update(self._task, completed=event.current)
        elif event.event_type == BatchEventType.FINISHED:
            self._progress.update(self._task, description="Done", completed=event.current)


def _print_plan(records: list[UpdateRecord], dry_run: bool) -> None:
    """Print the updates about to be removed."""
    table = create_update_table("Planned Removals (Dry Run)" if dry_run else "Planned Removals")
    for record in records:
        table.add_row(*format_update_row(record))
    console.print(table)


def _print_results(records: list[UpdateRecord]) -> None:
    """Print per-item outcomes."""
    table = create_result_table()
    for record in records:
        table.add_row(
            record.display_id,
            record.method.display_name,
            format_status(record.status),
            record.message,
        )
    console.print(table)


def _print_tally(summary: BatchSummary, skipped: int) -> None:
    """Print the success and failure tally."""
    if summary.failed == 0 and skipped == 0:
        print_success(f"All {summary.succeeded} update(s) removed.")
        return
    parts = [
        f"[success]{summary.succeeded} removed[/success]",
        f"[error]{summary.failed} failed[/error]",
    ]
    if skipped:
        parts.append(f"[muted]{skipped} skipped[/muted]")
    console.print("\n" + ", ".join(parts))


def _confirm(records: list[UpdateRecord], config: WuctlConfig) -> bool:
    """Ask for confirmation, twice when the latest security update is included."""
    if not typer.confirm(f"\nRemove {len(records)} update(s)?", default=False):
        return False
    latest = next((r for r in records if r.is_latest_security), None)
    if latest is not None and config.confirm_latest_security:
        print_warning(
            f"{latest.display_id} is the most recent security update. "
            "Removing it leaves the system without its fixes."
        )
        return typer.confirm("Remove it anyway?", default=False)
    return True


def _record_history(records: list[UpdateRecord]) -> None:
    """Append the run to the history file; failures only warn."""
    items = [HistoryItem.from_record(r) for r in records if r.status.is_terminal]
    if not items:
        return
    entry = create_history_entry(items, metadata={"command": "remove"})
    try:
        StateManager().record_run(entry)
    except (OSError, RuntimeError) as e:
        logger.warning("Failed to record history: %s", e)
        print_warning(f"Could not record history: {e}")


def _offer_restart(yes: bool) -> None:
    """Schedule a restart, asking first unless --yes was given."""
    if not yes and not typer.confirm("Restart Windows now?", default=False):
        return
    try:
        result = schedule_restart()
    except OSError as e:
        print_error(f"Could not schedule restart: {e}")
        return
    if result.success:
        print_success("Restarting in 30 seconds. Run 'shutdown /a' to cancel.")
    else:
        print_error(f"Could not schedule restart: {result.output.strip() or result.exit_code}")


def remove_updates(
    ctx: typer.Context,
    kb_ids: Annotated[
        list[str] | None,
        typer.Argument(
            help="KB identifiers to remove, e.g. KB5034441 or 5034441.",
            show_default=False,
        ),
    ] = None,
    all_removable: Annotated[
        bool,
        typer.Option(
            "--all-removable",
            "-a",
            help="Remove every update that has an uninstall method.",
        ),
    ] = False,
    category: Annotated[
        CategoryChoice,
        typer.Option(
            "--category",
            "-c",
            help="Restrict the selection to one category.",
            case_sensitive=False,
        ),
    ] = CategoryChoice.ALL,
    search: Annotated[
        str | None,
        typer.Option(
            "--search",
            "-s",
            help="With --all-removable, only updates whose title, KB or description match TEXT.",
            metavar="TEXT",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be done without making changes.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation prompt and proceed.",
        ),
    ] = False,
    restart: Annotated[
        bool,
        typer.Option(
            "--restart",
            help="Offer to restart Windows after updates were removed.",
        ),
    ] = False,
) -> None:
    """Uninstall installed updates.

    Each update is removed with the tool resolved during the scan:
    DISM for servicing packages, PnPUtil for drivers and WUSA for
    standalone updates. Updates run one after another; a failure does
    not stop the remaining ones.

    Examples:
        wuctl remove KB5034441              # Remove one update
        wuctl remove KB5034441 KB5033375 -y # Remove two, no prompt
        wuctl remove -a -c driver --dry-run # Preview removing all drivers
        wuctl remove -a -s ".net" --restart # Remove .NET updates, then restart
    """
    quiet = bool((ctx.obj or {}).get("quiet", False))

    if not kb_ids and not all_removable:
        print_error("Specify KB identifiers or --all-removable.")
        raise typer.Exit(code=1)

    try:
        requested = [normalize_kb(kb) for kb in kb_ids or []]
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    try:
        config = load_config_or_default()
    except WuctlConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e

    result = run_refresh(config, quiet=quiet)
    candidates = filter_by_category(result.records, category)

    if all_removable:
        selection = [r for r in filter_by_search(candidates, search) if r.removable]
    else:
        selection, missing = select_by_kb(candidates, requested)
        for kb_id in missing:
            print_warning(f"{kb_id} is not installed.")

    runnable, skipped = select_removable(selection)
    for record in skipped:
        print_warning(f"{record.display_id} cannot be uninstalled, skipping.")

    if not runnable:
        print_info("Nothing to remove.")
        if selection or not all_removable:
            raise typer.Exit(code=1)
        return

    _print_plan(runnable, dry_run)

    if not dry_run and not yes and not _confirm(runnable, config):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    runner = BatchRunner(build_orchestrator(config, dry_run=dry_run))
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        disable=quiet,
        transient=True,
    ) as progress:
        runner.subscribe(ProgressListener(progress))
        summary = runner.run_batch(runnable)

    _print_results(runnable + skipped)
    _print_tally(summary, len(skipped))

    if dry_run:
        print_info("\nDry-run mode: No changes were made.")
    elif config.record_history:
        _record_history(runnable + skipped)

    if summary.reboot_required:
        print_warning(
            f"{summary.reboot_required} update(s) need a restart to finish uninstalling."
        )
    if restart and not dry_run and summary.succeeded:
        _offer_restart(yes)

    if summary.failed:
        raise typer.Exit(code=1)
