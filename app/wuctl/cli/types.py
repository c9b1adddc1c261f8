"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules.
"""

from collections.abc import Iterable
from enum import Enum

from wuctl.core.config import WuctlConfig
from wuctl.core.inventory import RefreshResult, refresh
from wuctl.models.update import UpdateCategory, UpdateRecord
from wuctl.utils.formatting import err_console, print_warning


class CategoryChoice(str, Enum):
    """Update categories selectable on the command line."""

    QUALITY = "quality"
    DRIVER = "driver"
    DEFINITION = "definition"
    OTHER = "other"
    ALL = "all"


def filter_by_category(
    records: Iterable[UpdateRecord],
    category: CategoryChoice = CategoryChoice.ALL,
) -> list[UpdateRecord]:
    """Keep only records of the chosen category.

    Args:
        records: Records to filter.
        category: Category choice, ALL keeps everything.

    Returns:
        Filtered list in input order.
    """
    if category == CategoryChoice.ALL:
        return list(records)
    wanted = UpdateCategory(category.value)
    return [r for r in records if r.category == wanted]


def filter_by_search(records: Iterable[UpdateRecord], text: str | None) -> list[UpdateRecord]:
    """Keep records whose title, KB identifier or description contains text.

    Matching is case-insensitive. Empty text keeps everything.
    """
    keyword = (text or "").strip().casefold()
    if not keyword:
        return list(records)
    return [
        r
        for r in records
        if keyword in r.title.casefold()
        or keyword in r.kb_id.casefold()
        or keyword in r.description.casefold()
    ]


def run_refresh(config: WuctlConfig, quiet: bool = False) -> RefreshResult:
    """Refresh the inventory behind a status spinner.

    Sources that could not be queried are reported as warnings.

    Args:
        config: Active configuration.
        quiet: Suppress the spinner and source warnings.

    Returns:
        RefreshResult of the completed cycle.
    """
    if quiet:
        result = refresh(powershell=config.powershell)
    else:
        with err_console.status("Reading update inventory..."):
            result = refresh(powershell=config.powershell)
        for warning in result.warnings:
            print_warning(f"Inventory source skipped: {warning}")
    return result
