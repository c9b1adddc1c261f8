"""Windows Update history source.

Queries the Windows Update Agent history through PowerShell and turns
every successful installation into an UpdateRecord, classifying it and
extracting its KB identifier and build version from the title.
"""

import json
import logging
import re
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

from wuctl.models.update import UpdateCategory, UpdateRecord
from wuctl.scanners.base import Source
from wuctl.utils.shell import command_exists, run_powershell

logger = logging.getLogger(__name__)

# IUpdateHistoryEntry.Operation
_OPERATION_INSTALLATION = 1
# IUpdateHistoryEntry.ResultCode: Succeeded, SucceededWithErrors
_SUCCESS_RESULT_CODES = frozenset({2, 3})

# Windows Update category id of "Definition Updates"
DEFINITION_CATEGORY_ID = "E0789628-CE08-4437-BE74-2495B842F43B"

_KB_PATTERN = re.compile(r"KB(\d{6,7})", re.IGNORECASE)
_BUILD_VERSION_PATTERN = re.compile(r"\((\d{5}\.\d+)\)")
# .NET round-trip dates carry 7 fractional digits
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")

# Category tag names as reported by English and Chinese Windows installations
_DEFINITION_TAGS = ("definition", "定义")
_DRIVER_TAGS = ("driver", "驱动")

_DEFINITION_KEYWORDS = ("definition update", "security intelligence", "antimalware")
_DEFENDER_DEFINITION_KEYWORDS = ("definition", "定义")
_DRIVER_KEYWORDS = ("driver", "firmware")
_HARDWARE_KEYWORDS = ("nvidia", "intel", "amd", "realtek", "usb", "bluetooth", "wi-fi", "audio")
_QUALITY_KEYWORDS = (
    "cumulative update",
    "security update",
    "安全更新",
    "累积更新",
    "quality",
    "servicing stack",
    ".net framework",
)

_HISTORY_SCRIPT = r"""
$ErrorActionPreference = 'Stop'
[Console]::OutputEncoding = [System.Text.Encoding]::UTF8
$session = New-Object -ComObject Microsoft.Update.Session
$searcher = $session.CreateUpdateSearcher()
$count = $searcher.GetTotalHistoryCount()
$items = @()
if ($count -gt 0) {
    foreach ($e in $searcher.QueryHistory(0, $count)) {
        $cats = @()
        try {
            foreach ($c in $e.Categories) {
                $cats += [pscustomobject]@{ Name = [string]$c.Name; CategoryID = [string]$c.CategoryID }
            }
        } catch {}
        $uid = ''
        try { $uid = [string]$e.UpdateIdentity.UpdateID } catch {}
        $items += [pscustomobject]@{
            Title = [string]$e.Title
            Date = $e.Date.ToUniversalTime().ToString('o')
            Description = [string]$e.Description
            SupportUrl = [string]$e.SupportUrl
            UpdateId = $uid
            Operation = [int]$e.Operation
            ResultCode = [int]$e.ResultCode
            Categories = $cats
        }
    }
}
ConvertTo-Json -InputObject @($items) -Depth 4 -Compress
"""


def extract_kb(title: str | None) -> str:
    """Extract the first KB identifier from an update title.

    Args:
        title: Update title.

    Returns:
        Normalized identifier such as 'KB5034441', or an empty string.
    """
    if not title:
        return ""
    match = _KB_PATTERN.search(title)
    return f"KB{match.group(1)}" if match else ""


def extract_build_version(title: str | None) -> str:
    """Extract the first parenthesized build version from an update title.

    Args:
        title: Update title, e.g. '2025-01 Cumulative Update ... (KB5050009) (26100.2894)'.

    Returns:
        Build version such as '26100.2894', or an empty string.
    """
    if not title:
        return ""
    match = _BUILD_VERSION_PATTERN.search(title)
    return match.group(1) if match else ""


def categorize(title: str, categories: list[tuple[str, str]] | None = None) -> UpdateCategory:
    """Classify an update.

    Explicit Windows Update category tags win over title heuristics.

    Args:
        title: Update title.
        categories: (name, category id) pairs reported for the update.

    Returns:
        The update category.
    """
    for name, category_id in categories or []:
        name_lower = name.lower()
        if category_id.upper() == DEFINITION_CATEGORY_ID or any(
            tag in name_lower for tag in _DEFINITION_TAGS
        ):
            return UpdateCategory.DEFINITION
        if any(tag in name_lower for tag in _DRIVER_TAGS):
            return UpdateCategory.DRIVER

    title_lower = title.lower()

    if any(keyword in title_lower for keyword in _DEFINITION_KEYWORDS) or (
        "defender" in title_lower
        and any(keyword in title_lower for keyword in _DEFENDER_DEFINITION_KEYWORDS)
    ):
        return UpdateCategory.DEFINITION

    if any(keyword in title_lower for keyword in _DRIVER_KEYWORDS) or (
        " - " in title_lower and any(keyword in title_lower for keyword in _HARDWARE_KEYWORDS)
    ):
        return UpdateCategory.DRIVER

    if any(keyword in title_lower for keyword in _QUALITY_KEYWORDS):
        return UpdateCategory.QUALITY

    return UpdateCategory.OTHER


def _parse_date(value: object) -> datetime:
    """Parse an ISO 8601 timestamp, falling back to the epoch."""
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", value))
        except ValueError:
            logger.debug("Unparseable history date: %r", value)
        else:
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    return datetime.fromtimestamp(0, UTC)


class HistorySource(Source[UpdateRecord]):
    """Source for the installed-update history of the Windows Update Agent.

    Only successful installation entries are reported; uninstallations
    and failed installs are dropped.
    """

    _QUERY_TIMEOUT: float = 180.0

    def __init__(self, powershell: str = "powershell.exe") -> None:
        """Initialize the source.

        Args:
            powershell: PowerShell executable used to reach the COM API.
        """
        self._powershell = powershell

    @property
    def name(self) -> str:
        """Return the source name."""
        return "update history"

    def is_available(self) -> bool:
        """Check if PowerShell is available."""
        return command_exists(self._powershell)

    def collect(self) -> Iterator[UpdateRecord]:
        """Query the update history.

        Yields:
            UpdateRecord for each successfully installed update.

        Raises:
            RuntimeError: If PowerShell is unavailable, the query fails
                or its output is not valid JSON.
        """
        if not self.is_available():
            msg = "PowerShell is not available on this system"
            raise RuntimeError(msg)

        result = run_powershell(
            _HISTORY_SCRIPT,
            executable=self._powershell,
            timeout=self._QUERY_TIMEOUT,
        )
        if not result.success:
            detail = result.stderr.strip() or result.returncode
            msg = f"Windows Update history query failed: {detail}"
            raise RuntimeError(msg)

        yield from self.parse(result.stdout)

    def parse(self, output: str) -> Iterator[UpdateRecord]:
        """Parse the JSON emitted by the history query.

        Args:
            output: JSON array (or single object) of history entries.

        Yields:
            UpdateRecord for each successful installation entry.

        Raises:
            RuntimeError: If the output is not valid JSON.
        """
        output = output.strip()
        if not output:
            return

        try:
            data = json.loads(output)
        except json.JSONDecodeError as e:
            msg = f"Invalid update history output: {e}"
            raise RuntimeError(msg) from e

        entries = data if isinstance(data, list) else [data]
        for entry in entries:
            if not isinstance(entry, dict):
                logger.debug("Skipping non-object history entry: %r", entry)
                continue
            record = self._parse_entry(entry)
            if record is not None:
                yield record

    def _parse_entry(self, entry: dict[str, Any]) -> UpdateRecord | None:
        """Turn one history entry into an UpdateRecord.

        Returns:
            UpdateRecord, or None for non-installation or failed entries.
        """
        if entry.get("Operation") != _OPERATION_INSTALLATION:
            return None
        if entry.get("ResultCode") not in _SUCCESS_RESULT_CODES:
            return None

        title = str(entry.get("Title") or "").strip() or "Unknown update"
        raw_categories = entry.get("Categories") or []
        if isinstance(raw_categories, dict):
            raw_categories = [raw_categories]
        categories = [
            (str(c.get("Name") or ""), str(c.get("CategoryID") or ""))
            for c in raw_categories
            if isinstance(c, dict)
        ]

        return UpdateRecord(
            title=title,
            installed_at=_parse_date(entry.get("Date")),
            kb_id=extract_kb(title),
            description=str(entry.get("Description") or ""),
            category=categorize(title, categories),
            build_version=extract_build_version(title),
            update_id=str(entry.get("UpdateId") or ""),
            support_url=str(entry.get("SupportUrl") or ""),
        )
