"""Windows Update Standalone Installer (wusa) removal executor.

Uninstalls updates by KB number.
"""

from wuctl.models.update import UninstallMethod
from wuctl.operators.base import RemovalExecutor
from wuctl.utils.shell import command_exists


class WusaExecutor(RemovalExecutor):
    """Executor for wusa /uninstall."""

    @property
    def method(self) -> UninstallMethod:
        """Return STANDALONE_INSTALLER as the method."""
        return UninstallMethod.STANDALONE_INSTALLER

    def is_available(self) -> bool:
        """Check if wusa is available."""
        return command_exists("wusa")

    def build_command(self, target: str) -> list[str]:
        """Build the wusa command for a KB identifier.

        wusa expects the bare number, so a 'KB' prefix is stripped.
        """
        kb_number = target.strip()
        if kb_number.upper().startswith("KB"):
            kb_number = kb_number[2:]
        return ["wusa", "/uninstall", f"/kb:{kb_number}", "/quiet", "/norestart"]
