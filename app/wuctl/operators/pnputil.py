"""pnputil removal executor.

Deletes driver packages from the driver store and uninstalls them
from the devices using them.
"""

from wuctl.models.update import UninstallMethod
from wuctl.operators.base import RemovalExecutor
from wuctl.utils.shell import command_exists


class PnpUtilExecutor(RemovalExecutor):
    """Executor for pnputil /delete-driver."""

    @property
    def method(self) -> UninstallMethod:
        """Return DRIVER_TOOL as the method."""
        return UninstallMethod.DRIVER_TOOL

    def is_available(self) -> bool:
        """Check if pnputil is available."""
        return command_exists("pnputil")

    def build_command(self, target: str) -> list[str]:
        """Build the pnputil command deleting an inf (e.g. 'oem12.inf')."""
        return ["pnputil", "/delete-driver", target, "/uninstall", "/force"]
