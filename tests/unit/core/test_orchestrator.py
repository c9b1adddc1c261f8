"""Unit tests for RemovalOrchestrator.

Tests for exit-code classification, the wusa-to-DISM fallback and the
combined method.
"""

import subprocess
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from wuctl.core.orchestrator import (
    DISM_PACKAGE_NOT_FOUND,
    EXIT_REBOOT_REQUIRED,
    PACKAGE_MANAGER_PREFIX,
    STANDALONE_PREFIX,
    WUSA_NOT_APPLICABLE,
    WUSA_UNSUPPORTED_FORMAT,
    RemovalOrchestrator,
    classify_driver_result,
    classify_package_result,
    classify_standalone_result,
)
from wuctl.models.update import UninstallMethod, UpdateCategory, UpdateRecord
from wuctl.utils.shell import CommandResult

MakeRecord = Callable[..., UpdateRecord]

ROLLUP_3194 = "Package_for_RollupFix~31bf3856ad364e35~amd64~~26100.3194.1.7"


def _result(code: int, stdout: str = "") -> CommandResult:
    return CommandResult(stdout=stdout, stderr="", returncode=code)


@pytest.fixture
def package_executor() -> MagicMock:
    """DISM executor mock."""
    return MagicMock()


@pytest.fixture
def driver_executor() -> MagicMock:
    """pnputil executor mock."""
    return MagicMock()


@pytest.fixture
def standalone_executor() -> MagicMock:
    """wusa executor mock."""
    return MagicMock()


@pytest.fixture
def secondary_index() -> MagicMock:
    """Secondary index returning the current RollupFix names."""
    return MagicMock(return_value=[ROLLUP_3194])


@pytest.fixture
def orchestrator(
    package_executor: MagicMock,
    driver_executor: MagicMock,
    standalone_executor: MagicMock,
    secondary_index: MagicMock,
) -> RemovalOrchestrator:
    """Orchestrator wired to mock executors."""
    return RemovalOrchestrator(
        package_executor=package_executor,
        driver_executor=driver_executor,
        standalone_executor=standalone_executor,
        secondary_index=secondary_index,
        standalone_timeout=120.0,
    )


class TestClassifyPackageResult:
    """Tests for classify_package_result."""

    def test_success(self) -> None:
        """Exit code 0 is success without restart."""
        verdict = classify_package_result(_result(0))
        assert verdict.success is True
        assert verdict.reboot_required is False

    def test_reboot_required(self) -> None:
        """3010 is success with a restart."""
        verdict = classify_package_result(_result(EXIT_REBOOT_REQUIRED))
        assert verdict.success is True
        assert verdict.reboot_required is True
        assert "restart" in verdict.message

    def test_not_found_signed(self) -> None:
        """The package-not-found HRESULT is recognized from a signed code."""
        verdict = classify_package_result(_result(DISM_PACKAGE_NOT_FOUND - 2**32))
        assert verdict.success is False
        assert verdict.message == "DISM could not find the package"

    def test_other_code_keeps_raw_code_and_output(self) -> None:
        """Unknown codes report the code and the tool output."""
        verdict = classify_package_result(_result(740, "Elevated permissions are required."))
        assert verdict.success is False
        assert "740" in verdict.message
        assert "Elevated permissions are required." in verdict.message


class TestClassifyDriverResult:
    """Tests for classify_driver_result."""

    @pytest.mark.parametrize("code", [0, EXIT_REBOOT_REQUIRED])
    def test_success_codes(self, code: int) -> None:
        """0 and 3010 are success."""
        assert classify_driver_result(_result(code, "Driver package deleted.")).success is True

    def test_failure_uses_output(self) -> None:
        """Failures carry the tool's own message."""
        verdict = classify_driver_result(_result(1, "Failed to delete driver package: in use"))
        assert verdict.success is False
        assert verdict.message == "Failed to delete driver package: in use"


class TestClassifyStandaloneResult:
    """Tests for classify_standalone_result."""

    def test_not_applicable(self) -> None:
        """The not-applicable code is a failure with an explanation."""
        verdict = classify_standalone_result(_result(WUSA_NOT_APPLICABLE))
        assert verdict.success is False
        assert "not applicable" in verdict.message

    def test_unknown_code(self) -> None:
        """Unknown codes are reported raw."""
        verdict = classify_standalone_result(_result(1618))
        assert verdict.success is False
        assert "1618" in verdict.message


class TestRemovePackageAndDriver:
    """Tests for single-executor methods."""

    def test_package_manager(
        self,
        orchestrator: RemovalOrchestrator,
        package_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """PACKAGE_MANAGER calls DISM with the target identity."""
        record = make_record()
        record.assign(UninstallMethod.PACKAGE_MANAGER, ROLLUP_3194)
        package_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        package_executor.remove.assert_called_once_with(ROLLUP_3194)

    def test_driver_tool(
        self,
        orchestrator: RemovalOrchestrator,
        driver_executor: MagicMock,
        package_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """DRIVER_TOOL calls pnputil with the inf name and nothing else."""
        record = make_record(kb_id="", build_version="", category=UpdateCategory.DRIVER)
        record.assign(UninstallMethod.DRIVER_TOOL, "oem3.inf")
        driver_executor.remove.return_value = _result(0, "Driver package deleted successfully.")

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        driver_executor.remove.assert_called_once_with("oem3.inf")
        package_executor.remove.assert_not_called()

    def test_unresolved_record(
        self, orchestrator: RemovalOrchestrator, make_record: MakeRecord
    ) -> None:
        """A record without method fails without running anything."""
        verdict = orchestrator.remove(make_record())
        assert verdict.success is False
        assert verdict.message == "No usable uninstall method"


class TestRemoveStandalone:
    """Tests for the wusa path and its DISM fallback."""

    @pytest.fixture
    def record(self, make_record: MakeRecord) -> UpdateRecord:
        """A wusa-resolved cumulative update."""
        record = make_record()
        record.assign(UninstallMethod.STANDALONE_INSTALLER, "KB5051987")
        return record

    def test_success(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """wusa is called with the KB id and the configured timeout."""
        standalone_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        standalone_executor.remove.assert_called_once_with("KB5051987", timeout=120.0)

    def test_timeout(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """A timeout is a failure distinct from an exit code."""
        standalone_executor.remove.side_effect = subprocess.TimeoutExpired(cmd="wusa", timeout=120)

        verdict = orchestrator.remove(record)

        assert verdict.success is False
        assert verdict.message == "wusa timed out after 120 seconds"

    def test_unsupported_format_falls_back_to_dism(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        package_executor: MagicMock,
        secondary_index: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """Exit code 87 retries through DISM and updates the target."""
        standalone_executor.remove.return_value = _result(WUSA_UNSUPPORTED_FORMAT)
        package_executor.remove.return_value = _result(EXIT_REBOOT_REQUIRED)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        assert verdict.reboot_required is True
        secondary_index.assert_called_once()
        package_executor.remove.assert_called_once_with(ROLLUP_3194)
        assert record.target == ROLLUP_3194

    def test_fallback_failure_keeps_target(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        package_executor: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """A failing DISM retry is the final verdict; the target is unchanged."""
        standalone_executor.remove.return_value = _result(WUSA_UNSUPPORTED_FORMAT)
        package_executor.remove.return_value = _result(DISM_PACKAGE_NOT_FOUND)

        verdict = orchestrator.remove(record)

        assert verdict.success is False
        assert verdict.message == "DISM could not find the package"
        assert record.target == "KB5051987"
        assert standalone_executor.remove.call_count == 1

    def test_fallback_without_secondary_match(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        package_executor: MagicMock,
        secondary_index: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """No RollupFix name means failure without a DISM call."""
        secondary_index.return_value = []
        standalone_executor.remove.return_value = _result(WUSA_UNSUPPORTED_FORMAT)

        verdict = orchestrator.remove(record)

        assert verdict.success is False
        assert "no RollupFix package" in verdict.message
        package_executor.remove.assert_not_called()

    def test_fallback_without_build_version(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        secondary_index: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """Records without build version cannot use the fallback."""
        record = make_record(kb_id="KB5050187", build_version="")
        record.assign(UninstallMethod.STANDALONE_INSTALLER, "KB5050187")
        standalone_executor.remove.return_value = _result(WUSA_UNSUPPORTED_FORMAT)

        verdict = orchestrator.remove(record)

        assert verdict.success is False
        secondary_index.assert_not_called()

    def test_executor_exception_becomes_failure(
        self,
        orchestrator: RemovalOrchestrator,
        standalone_executor: MagicMock,
        record: UpdateRecord,
    ) -> None:
        """Exceptions from an executor never escape."""
        standalone_executor.remove.side_effect = FileNotFoundError("wusa.exe not found")

        verdict = orchestrator.remove(record)

        assert verdict.success is False
        assert "wusa.exe not found" in verdict.message


class TestRemoveCombined:
    """Tests for the COMBINED method."""

    def test_dism_success_skips_wusa(
        self,
        orchestrator: RemovalOrchestrator,
        package_executor: MagicMock,
        standalone_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """A successful DISM attempt is final and prefixed."""
        record = make_record()
        record.assign(UninstallMethod.COMBINED, ROLLUP_3194)
        package_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        assert verdict.message.startswith(PACKAGE_MANAGER_PREFIX)
        standalone_executor.remove.assert_not_called()

    def test_dism_failure_falls_through_to_wusa(
        self,
        orchestrator: RemovalOrchestrator,
        package_executor: MagicMock,
        standalone_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """A failed DISM attempt continues with wusa."""
        record = make_record()
        record.assign(UninstallMethod.COMBINED, ROLLUP_3194)
        package_executor.remove.return_value = _result(DISM_PACKAGE_NOT_FOUND)
        standalone_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        assert verdict.message == f"{STANDALONE_PREFIX} wusa uninstalled the update"
        standalone_executor.remove.assert_called_once()

    def test_dism_error_falls_through_to_wusa(
        self,
        orchestrator: RemovalOrchestrator,
        package_executor: MagicMock,
        standalone_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """DISM failing to start still leaves wusa to try."""
        record = make_record()
        record.assign(UninstallMethod.COMBINED, ROLLUP_3194)
        package_executor.remove.side_effect = FileNotFoundError("dism not found")
        standalone_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        assert verdict.message.startswith(STANDALONE_PREFIX)
        standalone_executor.remove.assert_called_once()

    def test_missing_target_goes_straight_to_wusa(
        self,
        orchestrator: RemovalOrchestrator,
        package_executor: MagicMock,
        standalone_executor: MagicMock,
        make_record: MakeRecord,
    ) -> None:
        """Without a package identity DISM is not attempted."""
        record = make_record(method=UninstallMethod.COMBINED, removable=True)
        standalone_executor.remove.return_value = _result(0)

        verdict = orchestrator.remove(record)

        assert verdict.success is True
        assert verdict.message.startswith(STANDALONE_PREFIX)
        package_executor.remove.assert_not_called()
        standalone_executor.remove.assert_called_once_with("KB5051987", timeout=120.0)
