"""Unit tests for HistorySource.

Tests for the update history source and its title helpers.
"""

import subprocess
from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from wuctl.models.update import UpdateCategory
from wuctl.scanners.history import (
    DEFINITION_CATEGORY_ID,
    HistorySource,
    categorize,
    extract_build_version,
    extract_kb,
)
from wuctl.utils.shell import CommandResult


class TestExtractKb:
    """Tests for extract_kb."""

    def test_extracts_first_kb(self) -> None:
        """The first KB token wins."""
        assert extract_kb("Update (KB5051987) supersedes KB5050009") == "KB5051987"

    def test_normalizes_case(self) -> None:
        """Lowercase 'kb' is normalized to 'KB'."""
        assert extract_kb("security update kb890830") == "KB890830"

    @pytest.mark.parametrize("title", ["", None, "No identifier here", "KB12345"])
    def test_no_kb(self, title: str | None) -> None:
        """Titles without a 6-7 digit KB return an empty string."""
        assert extract_kb(title) == ""


class TestExtractBuildVersion:
    """Tests for extract_build_version."""

    def test_extracts_parenthesized_version(self) -> None:
        """A '(NNNNN.N)' token is extracted."""
        title = "2025-02 Cumulative Update for Windows 11 (KB5051987) (26100.3194)"
        assert extract_build_version(title) == "26100.3194"

    def test_ignores_unparenthesized_version(self) -> None:
        """Bare versions are not build versions."""
        assert extract_build_version("Realtek - Extension - 10.0.26100.1") == ""


class TestCategorize:
    """Tests for categorize."""

    def test_category_tag_wins_over_title(self) -> None:
        """An explicit definition tag beats the title heuristics."""
        categories = [("Definition Updates", DEFINITION_CATEGORY_ID)]
        assert categorize("Cumulative Update", categories) == UpdateCategory.DEFINITION

    def test_definition_category_id(self) -> None:
        """The definition category id is recognized without a name."""
        categories = [("", DEFINITION_CATEGORY_ID.lower())]
        assert categorize("Something", categories) == UpdateCategory.DEFINITION

    def test_driver_tag(self) -> None:
        """A drivers tag classifies as driver."""
        assert categorize("Anything", [("Drivers", "")]) == UpdateCategory.DRIVER

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("Security Intelligence Update for Microsoft Defender", UpdateCategory.DEFINITION),
            ("Intel Corporation - Firmware - 1.2.3", UpdateCategory.DRIVER),
            ("NVIDIA - Display - 32.0.15.6094", UpdateCategory.DRIVER),
            ("2025-02 Cumulative Update for Windows 11", UpdateCategory.QUALITY),
            ("Servicing Stack Update for Windows 10", UpdateCategory.QUALITY),
            ("2025-01 .NET Framework 4.8.1 Update", UpdateCategory.QUALITY),
            ("Windows Malicious Software Removal Tool", UpdateCategory.OTHER),
        ],
    )
    def test_title_heuristics(self, title: str, expected: UpdateCategory) -> None:
        """Titles are classified by keyword when no tag decides."""
        assert categorize(title) == expected

    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("驱动程序", UpdateCategory.DRIVER),
            ("定义更新", UpdateCategory.DEFINITION),
        ],
    )
    def test_chinese_tags(self, tag: str, expected: UpdateCategory) -> None:
        """Chinese category tag names are recognized."""
        assert categorize("Realtek - Extension - 1.0", [(tag, "")]) == expected

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("2025-02 适用于 Windows 11 的累积更新 (KB5051987)", UpdateCategory.QUALITY),
            ("Windows 安全更新 (KB5050187)", UpdateCategory.QUALITY),
            ("Microsoft Defender 防病毒软件定义更新 - KB2267602", UpdateCategory.DEFINITION),
        ],
    )
    def test_chinese_titles(self, title: str, expected: UpdateCategory) -> None:
        """Chinese title keywords are recognized."""
        assert categorize(title) == expected


class TestHistorySource:
    """Tests for HistorySource class."""

    @pytest.fixture
    def source(self) -> HistorySource:
        """Create HistorySource instance."""
        return HistorySource(powershell="pwsh")

    def test_is_available_checks_configured_executable(self, source: HistorySource) -> None:
        """is_available looks up the configured PowerShell."""
        with patch("wuctl.scanners.history.command_exists") as mock_exists:
            mock_exists.return_value = True
            assert source.is_available() is True
            mock_exists.assert_called_once_with("pwsh")

    def test_parse_keeps_successful_installations(
        self, source: HistorySource, mock_history_output: str
    ) -> None:
        """Uninstall entries and failed installs are dropped."""
        records = list(source.parse(mock_history_output))

        assert [r.kb_id for r in records] == ["KB5051987", "KB5050187", "KB2267602", ""]

    def test_parse_fills_record_fields(
        self, source: HistorySource, mock_history_output: str
    ) -> None:
        """Title, date, KB, build version and category are parsed."""
        record = next(iter(source.parse(mock_history_output)))

        assert record.build_version == "26100.3194"
        assert record.category == UpdateCategory.QUALITY
        assert record.installed_at == datetime(2025, 2, 12, 9, 30, tzinfo=UTC)
        assert record.support_url == "https://support.microsoft.com/help/5051987"

    def test_parse_categories(self, source: HistorySource, mock_history_output: str) -> None:
        """Single-object and list category fields are both handled."""
        categories = [r.category for r in source.parse(mock_history_output)]

        assert categories == [
            UpdateCategory.QUALITY,
            UpdateCategory.QUALITY,
            UpdateCategory.DEFINITION,
            UpdateCategory.DRIVER,
        ]

    def test_parse_single_object(self, source: HistorySource) -> None:
        """A lone JSON object is treated as a one-entry list."""
        output = '{"Title": "", "Date": "bad", "Operation": 1, "ResultCode": 2}'

        records = list(source.parse(output))

        assert len(records) == 1
        assert records[0].title == "Unknown update"
        assert records[0].installed_at == datetime.fromtimestamp(0, UTC)

    def test_parse_empty_output(self, source: HistorySource, mock_empty_output: str) -> None:
        """Empty output yields nothing."""
        assert list(source.parse(mock_empty_output)) == []

    def test_parse_invalid_json_raises(self, source: HistorySource) -> None:
        """Output that is not JSON raises RuntimeError."""
        with pytest.raises(RuntimeError, match="Invalid update history output"):
            list(source.parse("Exception calling QueryHistory"))

    def test_collect_runs_powershell(
        self, source: HistorySource, mock_history_output: str
    ) -> None:
        """collect runs the query through the configured PowerShell."""
        with (
            patch("wuctl.scanners.history.command_exists", return_value=True),
            patch("wuctl.scanners.history.run_powershell") as mock_run,
        ):
            mock_run.return_value = CommandResult(
                stdout=mock_history_output, stderr="", returncode=0
            )

            records = list(source.collect())

        assert len(records) == 4
        assert mock_run.call_args.kwargs["executable"] == "pwsh"

    def test_collect_raises_on_failure(self, source: HistorySource) -> None:
        """A failing query raises RuntimeError."""
        with (
            patch("wuctl.scanners.history.command_exists", return_value=True),
            patch("wuctl.scanners.history.run_powershell") as mock_run,
        ):
            mock_run.return_value = CommandResult(stdout="", stderr="COM error", returncode=1)

            with pytest.raises(RuntimeError, match="COM error"):
                list(source.collect())

    def test_collect_raises_when_unavailable(self, source: HistorySource) -> None:
        """collect raises RuntimeError without PowerShell."""
        with (
            patch("wuctl.scanners.history.command_exists", return_value=False),
            pytest.raises(RuntimeError, match="not available"),
        ):
            list(source.collect())

    def test_collect_propagates_timeout(self, source: HistorySource) -> None:
        """A hanging query surfaces as TimeoutExpired."""
        with (
            patch("wuctl.scanners.history.command_exists", return_value=True),
            patch("wuctl.scanners.history.run_powershell") as mock_run,
        ):
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="pwsh", timeout=180)

            with pytest.raises(subprocess.TimeoutExpired):
                list(source.collect())
