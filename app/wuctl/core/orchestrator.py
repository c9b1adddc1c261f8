"""Removal orchestration with exit-code classification and fallback.

The orchestrator turns a resolved UpdateRecord into a RemovalVerdict:
it dispatches to the executor for the record's method, classifies the
exit code, and applies the single documented fallback (wusa reporting an
unsupported update format is retried through DISM against the RollupFix
package found for the record's build version).

Executor exceptions never escape: they become failed verdicts carrying
the exception text.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from wuctl.core.matcher import find_secondary_name
from wuctl.models.removal import RemovalVerdict
from wuctl.models.update import UninstallMethod

if TYPE_CHECKING:
    from wuctl.models.update import UpdateRecord
    from wuctl.operators.base import RemovalExecutor
    from wuctl.utils.shell import CommandResult

logger = logging.getLogger(__name__)

# Shared by DISM, pnputil and wusa: ERROR_SUCCESS_REBOOT_REQUIRED
EXIT_REBOOT_REQUIRED = 3010
# DISM: CBS_E_NOT_INSTALLED
DISM_PACKAGE_NOT_FOUND = 0x800F0825
# wusa: ERROR_INVALID_PARAMETER, the update format is not supported by wusa
WUSA_UNSUPPORTED_FORMAT = 87
WUSA_NOT_APPLICABLE = 0x80240006
WUSA_NOT_UNINSTALLABLE = 0x80240017
WUSA_ACCESS_DENIED = 0x80070005
WUSA_PACKAGE_NOT_FOUND = 0x80070002

DEFAULT_STANDALONE_TIMEOUT = 300.0

PACKAGE_MANAGER_PREFIX = "(package manager)"
STANDALONE_PREFIX = "(standalone installer)"

SecondaryIndex = Callable[[], Sequence[str]]


def _format_code(code: int) -> str:
    return f"{code} (0x{code:08X})"


def classify_package_result(result: CommandResult) -> RemovalVerdict:
    """Interpret the exit code of a DISM removal."""
    code = result.exit_code
    if code == 0:
        return RemovalVerdict(True, "DISM removed the package")
    if code == EXIT_REBOOT_REQUIRED:
        return RemovalVerdict(
            True, "DISM removed the package, restart required", reboot_required=True
        )
    if code == DISM_PACKAGE_NOT_FOUND:
        return RemovalVerdict(False, "DISM could not find the package")
    detail = result.output.strip()
    message = f"DISM error {_format_code(code)}"
    return RemovalVerdict(False, f"{message}\n{detail}" if detail else message)


def classify_driver_result(result: CommandResult) -> RemovalVerdict:
    """Interpret the exit code of a pnputil removal."""
    output = result.output.strip()
    if result.exit_code == 0:
        return RemovalVerdict(True, output or "Driver package deleted")
    if result.exit_code == EXIT_REBOOT_REQUIRED:
        return RemovalVerdict(
            True, output or "Driver package deleted, restart required", reboot_required=True
        )
    return RemovalVerdict(False, output or f"pnputil error {_format_code(result.exit_code)}")


_STANDALONE_FAILURES: dict[int, str] = {
    WUSA_UNSUPPORTED_FORMAT: "wusa does not support this update format (0x57)",
    WUSA_NOT_APPLICABLE: "The update is not applicable to this system or was already removed",
    WUSA_NOT_UNINSTALLABLE: "The update cannot be uninstalled",
    WUSA_ACCESS_DENIED: "Access denied (0x80070005), run as administrator",
    WUSA_PACKAGE_NOT_FOUND: "The update package was not found (0x80070002)",
}


def classify_standalone_result(result: CommandResult) -> RemovalVerdict:
    """Interpret the exit code of a wusa removal."""
    code = result.exit_code
    if code == 0:
        return RemovalVerdict(True, "wusa uninstalled the update")
    if code == EXIT_REBOOT_REQUIRED:
        return RemovalVerdict(
            True, "wusa uninstalled the update, restart required", reboot_required=True
        )
    if code in _STANDALONE_FAILURES:
        return RemovalVerdict(False, _STANDALONE_FAILURES[code])
    return RemovalVerdict(False, f"wusa exited with {_format_code(code)}")


def _prefixed(prefix: str, verdict: RemovalVerdict) -> RemovalVerdict:
    return RemovalVerdict(verdict.success, f"{prefix} {verdict.message}", verdict.reboot_required)


class RemovalOrchestrator:
    """Removes single updates through the right native mechanism.

    Attributes:
        standalone_timeout: Upper bound in seconds for a wusa run.
    """

    def __init__(
        self,
        package_executor: RemovalExecutor,
        driver_executor: RemovalExecutor,
        standalone_executor: RemovalExecutor,
        secondary_index: SecondaryIndex,
        standalone_timeout: float = DEFAULT_STANDALONE_TIMEOUT,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            package_executor: DISM executor.
            driver_executor: pnputil executor.
            standalone_executor: wusa executor.
            secondary_index: Callable returning the current RollupFix names;
                queried again on every fallback.
            standalone_timeout: Upper bound in seconds for a wusa run.
        """
        self._package = package_executor
        self._driver = driver_executor
        self._standalone = standalone_executor
        self._secondary_index = secondary_index
        self.standalone_timeout = standalone_timeout

    def remove(self, record: UpdateRecord) -> RemovalVerdict:
        """Remove one update.

        Never raises: executor errors are reported as failed verdicts.

        Args:
            record: Resolved update. Its target is updated when the
                DISM fallback succeeds against a different package.

        Returns:
            RemovalVerdict describing the outcome.
        """
        handlers: dict[UninstallMethod, Callable[[UpdateRecord], RemovalVerdict]] = {
            UninstallMethod.DRIVER_TOOL: self._remove_driver,
            UninstallMethod.PACKAGE_MANAGER: self._remove_resolved_package,
            UninstallMethod.STANDALONE_INSTALLER: self._remove_standalone,
            UninstallMethod.COMBINED: self._remove_combined,
        }
        handler = handlers.get(record.method)
        if handler is None:
            return RemovalVerdict(False, "No usable uninstall method")

        try:
            return handler(record)
        except Exception as e:  # noqa: BLE001
            logger.warning("Removal of %s raised: %s", record.display_id, e)
            return RemovalVerdict(False, f"Removal failed: {e}")

    def _remove_driver(self, record: UpdateRecord) -> RemovalVerdict:
        if not record.target:
            return RemovalVerdict(False, "Driver inf name is empty")
        return classify_driver_result(self._driver.remove(record.target))

    def _remove_resolved_package(self, record: UpdateRecord) -> RemovalVerdict:
        return self._remove_package(record.target)

    def _remove_package(self, identity: str) -> RemovalVerdict:
        if not identity:
            return RemovalVerdict(False, "Package identity is empty")
        return classify_package_result(self._package.remove(identity))

    def _remove_standalone(self, record: UpdateRecord) -> RemovalVerdict:
        if not record.kb_id:
            return RemovalVerdict(False, "No KB identifier to uninstall")

        try:
            result = self._standalone.remove(record.kb_id, timeout=self.standalone_timeout)
        except subprocess.TimeoutExpired:
            timeout = self.standalone_timeout
            logger.warning("wusa timed out for %s after %.0fs", record.kb_id, timeout)
            return RemovalVerdict(False, f"wusa timed out after {timeout:.0f} seconds")

        if result.exit_code == WUSA_UNSUPPORTED_FORMAT:
            return self._fallback_to_package(record)
        return classify_standalone_result(result)

    def _fallback_to_package(self, record: UpdateRecord) -> RemovalVerdict:
        """Retry through DISM after wusa rejected the update format."""
        logger.info("%s: unsupported format for wusa, looking up RollupFix package", record.kb_id)

        name = None
        if record.build_version:
            name = find_secondary_name(record.build_version, self._secondary_index())
        if name is None:
            return RemovalVerdict(
                False,
                "wusa does not support this update format and no RollupFix package was found",
            )

        logger.info("%s: retrying with DISM against %s", record.kb_id, name)
        verdict = self._remove_package(name)
        if verdict.success:
            record.assign(record.method, name)
        return verdict

    def _remove_combined(self, record: UpdateRecord) -> RemovalVerdict:
        if record.target:
            try:
                verdict = self._remove_package(record.target)
            except Exception as e:  # noqa: BLE001
                verdict = RemovalVerdict(False, f"DISM could not run: {e}")
            if verdict.success:
                return _prefixed(PACKAGE_MANAGER_PREFIX, verdict)
            logger.info("%s: DISM failed (%s), trying wusa", record.display_id, verdict.message)
        return _prefixed(STANDALONE_PREFIX, self._remove_standalone(record))
