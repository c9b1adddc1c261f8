"""Abstract base class for removal executors.

This module defines the RemovalExecutor interface implemented by the
three native uninstall mechanisms (DISM, pnputil, wusa).
"""

import logging
from abc import ABC, abstractmethod

from wuctl.models.update import UninstallMethod
from wuctl.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)


class RemovalExecutor(ABC):
    """Abstract base class for all removal executors.

    An executor runs one native uninstall command for one target and
    reports the raw exit code and output. Interpreting the exit code is
    left to the caller.

    Attributes:
        dry_run: If True, only log the command without executing it.

    Example:
        >>> executor = DismExecutor(dry_run=True)
        >>> result = executor.remove("Package_for_RollupFix~31bf3856ad364e35~amd64~~26100.3194.1.7")
        >>> result.returncode
        0
    """

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the executor.

        Args:
            dry_run: If True, only simulate removals without executing them.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if executor is in dry-run mode."""
        return self._dry_run

    @property
    @abstractmethod
    def method(self) -> UninstallMethod:
        """Return the uninstall method this executor implements."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool is available on this system."""

    @abstractmethod
    def build_command(self, target: str) -> list[str]:
        """Build the command line removing the given target.

        Args:
            target: Identity to remove (non-empty).

        Returns:
            Command and arguments.
        """

    def remove(self, target: str, timeout: float | None = None) -> CommandResult:
        """Remove a single target.

        Blocks until the command exits. With a timeout, the process is
        killed once the timeout expires.

        Args:
            target: Identity to remove.
            timeout: Maximum time in seconds to wait, or None to wait
                for the tool's own termination.

        Returns:
            CommandResult with the raw exit code and output.

        Raises:
            ValueError: If target is empty.
            subprocess.TimeoutExpired: If the timeout expires.
            FileNotFoundError: If the tool cannot be started.
        """
        if not target:
            msg = f"{self.method.display_name} target cannot be empty"
            raise ValueError(msg)

        args = self.build_command(target)

        if self.dry_run:
            logger.info("Dry-run: would execute %s", " ".join(args))
            return CommandResult(stdout=f"Dry-run: {' '.join(args)}", stderr="", returncode=0)

        logger.info("Executing %s removal for %s", self.method.display_name, target)
        result = run_command(args, timeout=timeout)
        logger.debug(
            "%s exited with %d (0x%08X)",
            self.method.display_name,
            result.returncode,
            result.exit_code,
        )
        return result
