"""pnputil driver inventory source.

Enumerates third-party driver packages in the driver store.
"""

import logging
import re
from collections.abc import Iterator

from wuctl.models.inventory import DriverInventoryEntry
from wuctl.scanners.base import Source
from wuctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

_BLOCK_START = re.compile(r"(?=Published Name)", re.IGNORECASE)

_FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
    "inf_name": re.compile(r"Published Name\s*:\s*(.+)", re.IGNORECASE),
    "original_name": re.compile(r"Original Name\s*:\s*(.+)", re.IGNORECASE),
    "provider": re.compile(r"Provider Name\s*:\s*(.+)", re.IGNORECASE),
    "device_class": re.compile(r"Class Name\s*:\s*(.+)", re.IGNORECASE),
    "version": re.compile(r"Driver Version\s*:\s*(.+)", re.IGNORECASE),
    "signer": re.compile(r"Signer Name\s*:\s*(.+)", re.IGNORECASE),
}


class DriverSource(Source[DriverInventoryEntry]):
    """Source for third-party driver packages (pnputil /enum-drivers)."""

    _PNPUTIL_TIMEOUT: float = 120.0

    @property
    def name(self) -> str:
        """Return the source name."""
        return "pnputil drivers"

    def is_available(self) -> bool:
        """Check if pnputil is available."""
        return command_exists("pnputil")

    def collect(self) -> Iterator[DriverInventoryEntry]:
        """Enumerate third-party driver packages.

        Yields:
            DriverInventoryEntry for each driver package with an inf name.

        Raises:
            RuntimeError: If pnputil is unavailable or fails.
        """
        if not self.is_available():
            msg = "pnputil is not available on this system"
            raise RuntimeError(msg)

        result = run_command(["pnputil", "/enum-drivers"], timeout=self._PNPUTIL_TIMEOUT)
        if not result.success:
            msg = f"pnputil /enum-drivers failed: {result.output.strip() or result.returncode}"
            raise RuntimeError(msg)

        yield from self.parse(result.stdout)

    def parse(self, output: str) -> Iterator[DriverInventoryEntry]:
        """Parse pnputil /enum-drivers output.

        Args:
            output: Raw pnputil output.

        Yields:
            DriverInventoryEntry for each block with a published name.
        """
        for block in _BLOCK_START.split(output):
            if not block.strip():
                continue

            fields: dict[str, str] = {}
            for field_name, pattern in _FIELD_PATTERNS.items():
                match = pattern.search(block)
                if match:
                    fields[field_name] = match.group(1).strip()

            if not fields.get("inf_name"):
                logger.debug("Skipping pnputil block without published name: %r", block[:100])
                continue

            yield DriverInventoryEntry(**fields)
