"""Inventory collection and the refresh cycle.

A refresh queries the update history, the DISM package list, the
servicing registry and the driver store concurrently, then resolves
every update against the joint snapshot. A source that cannot be
queried contributes an empty list instead of aborting the refresh.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeVar

from wuctl.core.drivers import resolve_drivers
from wuctl.core.matcher import resolve
from wuctl.models.inventory import InventorySnapshot
from wuctl.models.update import UpdateCategory, UpdateRecord
from wuctl.scanners.dism import PackageSource, RollupIndexSource
from wuctl.scanners.history import HistorySource
from wuctl.scanners.pnputil import DriverSource

if TYPE_CHECKING:
    from wuctl.models.inventory import DriverInventoryEntry, PackageInventoryEntry
    from wuctl.scanners.base import Source

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class RefreshResult:
    """Outcome of one refresh cycle.

    Attributes:
        records: Resolved update records, newest first.
        match_log: Trace lines from the identity matcher.
        snapshot: Inventory the records were resolved against.
        warnings: Sources that could not be queried, with the reason.
    """

    records: list[UpdateRecord]
    match_log: list[str]
    snapshot: InventorySnapshot
    warnings: list[str] = field(default_factory=list)

    @property
    def removable(self) -> list[UpdateRecord]:
        """Records with a resolved uninstall method."""
        return [r for r in self.records if r.removable]

    def count_by_category(self) -> dict[UpdateCategory, int]:
        """Number of records per category."""
        counts = dict.fromkeys(UpdateCategory, 0)
        for record in self.records:
            counts[record.category] += 1
        return counts


def _collect_safely(source: Source[T], warnings: list[str]) -> list[T]:
    """Collect all entries of a source, degrading to an empty list."""
    if not source.is_available():
        logger.warning("%s unavailable, treating as empty", source.name)
        warnings.append(f"{source.name}: not available")
        return []
    try:
        entries = list(source.collect())
    except (RuntimeError, OSError, ValueError, subprocess.SubprocessError) as e:
        logger.warning("Failed to query %s: %s", source.name, e)
        warnings.append(f"{source.name}: {e}")
        return []
    logger.debug("%s returned %d entries", source.name, len(entries))
    return entries


def collect_snapshot(
    history: Source[UpdateRecord],
    packages: Source[PackageInventoryEntry],
    rollups: Source[str],
    drivers: Source[DriverInventoryEntry],
    warnings: list[str] | None = None,
) -> InventorySnapshot:
    """Query all four sources concurrently.

    Returns only once every source has finished.

    Args:
        history: Update history source.
        packages: DISM package source.
        rollups: Servicing registry source.
        drivers: Driver store source.
        warnings: Optional list receiving one line per failed source.

    Returns:
        InventorySnapshot holding the joint result.
    """
    warnings = warnings if warnings is not None else []

    with ThreadPoolExecutor(max_workers=4, thread_name_prefix="inventory") as pool:
        history_future = pool.submit(_collect_safely, history, warnings)
        packages_future = pool.submit(_collect_safely, packages, warnings)
        rollups_future = pool.submit(_collect_safely, rollups, warnings)
        drivers_future = pool.submit(_collect_safely, drivers, warnings)

        return InventorySnapshot(
            records=history_future.result(),
            packages=packages_future.result(),
            secondary_names=rollups_future.result(),
            drivers=drivers_future.result(),
        )


def mark_latest_security(records: Sequence[UpdateRecord]) -> UpdateRecord | None:
    """Flag the most recently installed quality update.

    Exactly one quality record ends up flagged when any exists.

    Returns:
        The flagged record, or None.
    """
    latest: UpdateRecord | None = None
    for record in records:
        record.is_latest_security = False
        if record.category == UpdateCategory.QUALITY and (
            latest is None or record.installed_at > latest.installed_at
        ):
            latest = record
    if latest is not None:
        latest.is_latest_security = True
    return latest


def resolve_snapshot(snapshot: InventorySnapshot) -> list[str]:
    """Resolve all records of a snapshot in place.

    Returns:
        Identity matcher trace lines.
    """
    logs = resolve(snapshot.records, snapshot.packages, snapshot.secondary_names)
    resolve_drivers(
        [r for r in snapshot.records if r.category == UpdateCategory.DRIVER],
        snapshot.drivers,
    )
    mark_latest_security(snapshot.records)
    return logs


def refresh(
    history: Source[UpdateRecord] | None = None,
    packages: Source[PackageInventoryEntry] | None = None,
    rollups: Source[str] | None = None,
    drivers: Source[DriverInventoryEntry] | None = None,
    powershell: str = "powershell.exe",
) -> RefreshResult:
    """Run a full refresh cycle.

    Sources default to the system implementations.

    Args:
        history: Update history source.
        packages: DISM package source.
        rollups: Servicing registry source.
        drivers: Driver store source.
        powershell: PowerShell executable for the default history source.

    Returns:
        RefreshResult with resolved records, newest first.
    """
    warnings: list[str] = []
    snapshot = collect_snapshot(
        history or HistorySource(powershell=powershell),
        packages or PackageSource(),
        rollups or RollupIndexSource(),
        drivers or DriverSource(),
        warnings=warnings,
    )
    logger.info(
        "Inventory: %d updates, %d DISM packages, %d RollupFix names, %d drivers",
        len(snapshot.records),
        len(snapshot.packages),
        len(snapshot.secondary_names),
        len(snapshot.drivers),
    )

    match_log = resolve_snapshot(snapshot)
    records = sorted(snapshot.records, key=lambda r: r.installed_at, reverse=True)
    return RefreshResult(records=records, match_log=match_log, snapshot=snapshot, warnings=warnings)
