"""DISM package inventory and servicing registry sources.

PackageSource lists installed servicing packages through DISM.
RollupIndexSource reads the Component Based Servicing registry key, which
also holds RollupFix packages that DISM /Get-Packages leaves out.
"""

import logging
import re
from collections.abc import Iterator

from wuctl.models.inventory import PackageInventoryEntry
from wuctl.scanners.base import Source
from wuctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

CBS_PACKAGES_KEY = (
    r"HKLM\SOFTWARE\Microsoft\Windows\CurrentVersion\Component Based Servicing\Packages"
)

_BLOCK_SEPARATOR = re.compile(r"\r?\n[ \t]*\r?\n")


class PackageSource(Source[PackageInventoryEntry]):
    """Source for servicing packages reported by DISM /Get-Packages."""

    _DISM_TIMEOUT: float = 300.0

    @property
    def name(self) -> str:
        """Return the source name."""
        return "DISM packages"

    def is_available(self) -> bool:
        """Check if DISM is available."""
        return command_exists("dism")

    def collect(self) -> Iterator[PackageInventoryEntry]:
        """List installed servicing packages.

        Yields:
            PackageInventoryEntry for each package with an identity.

        Raises:
            RuntimeError: If DISM is unavailable or the query fails.
        """
        if not self.is_available():
            msg = "DISM is not available on this system"
            raise RuntimeError(msg)

        result = run_command(
            ["dism", "/Online", "/Get-Packages", "/English"],
            timeout=self._DISM_TIMEOUT,
        )
        if not result.success:
            msg = (
                f"DISM /Get-Packages failed with exit code {result.returncode}: "
                f"{result.output.strip()}"
            )
            raise RuntimeError(msg)

        yield from self.parse(result.stdout)

    def parse(self, output: str) -> Iterator[PackageInventoryEntry]:
        """Parse DISM /Get-Packages output.

        The output is a sequence of blank-line separated blocks of
        'Key : Value' lines. Blocks without a Package Identity (the tool
        banner, the trailing status line) are skipped.

        Args:
            output: Raw DISM output.

        Yields:
            PackageInventoryEntry for each package block.
        """
        for block in _BLOCK_SEPARATOR.split(output):
            identity = ""
            state = ""
            for line in block.splitlines():
                key, sep, value = line.strip().partition(":")
                if not sep:
                    continue
                key = key.strip().lower()
                if key == "package identity":
                    identity = value.strip()
                elif key == "state":
                    state = value.strip()

            if identity:
                yield PackageInventoryEntry(identity=identity, state=state)


class RollupIndexSource(Source[str]):
    """Secondary name index built from the servicing registry.

    Yields the names of RollupFix package keys. Names are bare strings
    and are only used as substring-match keys.
    """

    _REG_TIMEOUT: float = 60.0

    @property
    def name(self) -> str:
        """Return the source name."""
        return "servicing registry"

    def is_available(self) -> bool:
        """Check if reg.exe is available."""
        return command_exists("reg")

    def collect(self) -> Iterator[str]:
        """List RollupFix package names from the servicing registry.

        Yields:
            Package key names containing 'RollupFix'.

        Raises:
            RuntimeError: If reg.exe is unavailable or the query fails.
        """
        if not self.is_available():
            msg = "reg.exe is not available on this system"
            raise RuntimeError(msg)

        result = run_command(["reg", "query", CBS_PACKAGES_KEY], timeout=self._REG_TIMEOUT)
        if not result.success:
            msg = f"reg query failed: {result.stderr.strip() or result.returncode}"
            raise RuntimeError(msg)

        yield from self.parse(result.stdout)

    def parse(self, output: str) -> Iterator[str]:
        """Parse 'reg query' output into RollupFix key names.

        Args:
            output: Raw reg.exe output, one full key path per line.

        Yields:
            Last path segment of each RollupFix sub-key.
        """
        for line in output.splitlines():
            line = line.strip()
            if not line.upper().startswith("HKEY_"):
                continue
            name = line.rsplit("\\", 1)[-1]
            if "rollupfix" in name.lower():
                yield name
