"""Matching of driver updates to driver store packages.

The update history only gives a free-text title for driver updates, so
matching is heuristic: the title must mention the provider, and either
the device class or the package must carry an original inf name. The
first eligible inventory entry wins; when several entries share a
provider the earlier one is taken even if a later one fits better.
"""

import logging
from collections.abc import Sequence

from wuctl.models.inventory import DriverInventoryEntry
from wuctl.models.update import UninstallMethod, UpdateCategory, UpdateRecord

logger = logging.getLogger(__name__)


def driver_matches(title: str, driver: DriverInventoryEntry) -> bool:
    """Check if an update title refers to a driver package.

    Args:
        title: Update title.
        driver: Driver store entry.

    Returns:
        True if the title contains the provider and either the class
        or the entry has an original name.
    """
    title_lower = title.lower()
    provider = driver.provider.lower()
    device_class = driver.device_class.lower()

    if not provider or provider not in title_lower:
        return False
    return bool(device_class and device_class in title_lower) or bool(driver.original_name)


def find_driver(title: str, drivers: Sequence[DriverInventoryEntry]) -> DriverInventoryEntry | None:
    """Return the first driver entry matching the title, if any."""
    return next((driver for driver in drivers if driver_matches(title, driver)), None)


def resolve_drivers(
    driver_updates: Sequence[UpdateRecord],
    drivers: Sequence[DriverInventoryEntry],
) -> None:
    """Resolve driver updates to pnputil removals in place.

    Non-driver records are ignored. Driver records that match no entry
    are left unresolved.

    Args:
        driver_updates: Records to resolve.
        drivers: Driver store inventory, in enumeration order.
    """
    for record in driver_updates:
        if record.category != UpdateCategory.DRIVER:
            continue

        record.clear_resolution()
        driver = find_driver(record.title, drivers)
        if driver is None:
            logger.debug("No driver package matches '%s'", record.title)
            continue

        record.assign(UninstallMethod.DRIVER_TOOL, driver.inf_name)
        record.driver_provider = driver.provider
        record.driver_class = driver.device_class
        record.driver_version = driver.version
        logger.debug("Driver match: '%s' -> %s", record.title, driver.inf_name)
