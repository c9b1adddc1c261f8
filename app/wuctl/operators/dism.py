"""DISM removal executor.

Removes servicing packages by package identity.
"""

from wuctl.models.update import UninstallMethod
from wuctl.operators.base import RemovalExecutor
from wuctl.utils.shell import command_exists


class DismExecutor(RemovalExecutor):
    """Executor for DISM /Remove-Package."""

    @property
    def method(self) -> UninstallMethod:
        """Return PACKAGE_MANAGER as the method."""
        return UninstallMethod.PACKAGE_MANAGER

    def is_available(self) -> bool:
        """Check if DISM is available."""
        return command_exists("dism")

    def build_command(self, target: str) -> list[str]:
        """Build the DISM command removing a package identity."""
        return [
            "dism",
            "/Online",
            "/Remove-Package",
            f"/PackageName:{target}",
            "/NoRestart",
            "/Quiet",
            "/English",
        ]
