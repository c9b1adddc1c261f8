"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import json
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import pytest
from wuctl.models.update import UpdateCategory, UpdateRecord


@pytest.fixture
def make_record() -> Callable[..., UpdateRecord]:
    """Factory for UpdateRecord instances with sensible defaults."""

    def _make(
        title: str = "2025-02 Cumulative Update for Windows 11 (KB5051987) (26100.3194)",
        kb_id: str = "KB5051987",
        build_version: str = "26100.3194",
        category: UpdateCategory = UpdateCategory.QUALITY,
        installed_at: datetime | None = None,
        **kwargs: Any,
    ) -> UpdateRecord:
        return UpdateRecord(
            title=title,
            installed_at=installed_at or datetime(2025, 2, 12, 9, 30, tzinfo=UTC),
            kb_id=kb_id,
            build_version=build_version,
            category=category,
            **kwargs,
        )

    return _make


@pytest.fixture
def mock_history_output() -> str:
    """Sample JSON emitted by the update history PowerShell query."""
    entries = [
        {
            "Title": "2025-02 Cumulative Update for Windows 11 Version 24H2 (KB5051987) (26100.3194)",
            "Date": "2025-02-12T09:30:00.0000000Z",
            "Description": "Install this update to resolve issues in Windows.",
            "SupportUrl": "https://support.microsoft.com/help/5051987",
            "UpdateId": "0b8f7a5c-0000-4000-8000-000000000001",
            "Operation": 1,
            "ResultCode": 2,
            "Categories": [
                {"Name": "Security Updates", "CategoryID": "0FA1201D-4330-4FA8-8AE9-B877473B6441"}
            ],
        },
        {
            "Title": "2025-01 .NET Framework 3.5 and 4.8.1 for Windows 11 (KB5050187)",
            "Date": "2025-01-15T08:00:00.0000000Z",
            "Description": "",
            "SupportUrl": "",
            "UpdateId": "",
            "Operation": 1,
            "ResultCode": 3,
            "Categories": {"Name": "Updates", "CategoryID": "CD5FFD1E-E932-4E3A-BF74-18BF0B1BBD83"},
        },
        {
            "Title": "Security Intelligence Update for Microsoft Defender Antivirus - KB2267602",
            "Date": "2025-02-13T06:00:00.0000000Z",
            "Description": "",
            "SupportUrl": "",
            "UpdateId": "",
            "Operation": 1,
            "ResultCode": 2,
            "Categories": [
                {"Name": "Definition Updates", "CategoryID": "E0789628-CE08-4437-BE74-2495B842F43B"}
            ],
        },
        {
            "Title": "Realtek Semiconductor Corp. - Extension - 10.0.26100.1",
            "Date": "2025-01-20T12:00:00.0000000Z",
            "Description": "Realtek Semiconductor Corp. Extension driver update",
            "SupportUrl": "",
            "UpdateId": "",
            "Operation": 1,
            "ResultCode": 2,
            "Categories": [{"Name": "Drivers", "CategoryID": "EBFC1FC5-71A4-4F7B-9ACA-3B9A503104A0"}],
        },
        {
            "Title": "2024-12 Cumulative Update for Windows 11 Version 24H2 (KB5048667) (26100.2605)",
            "Date": "2024-12-11T09:30:00.0000000Z",
            "Description": "",
            "SupportUrl": "",
            "UpdateId": "",
            "Operation": 2,
            "ResultCode": 2,
            "Categories": [],
        },
        {
            "Title": "2024-11 Cumulative Update for Windows 11 Version 24H2 (KB5046617) (26100.2314)",
            "Date": "2024-11-13T09:30:00.0000000Z",
            "Description": "",
            "SupportUrl": "",
            "UpdateId": "",
            "Operation": 1,
            "ResultCode": 4,
            "Categories": [],
        },
    ]
    return json.dumps(entries)


@pytest.fixture
def mock_dism_output() -> str:
    """Sample dism /Online /Get-Packages /English output."""
    return """
Deployment Image Servicing and Management tool
Version: 10.0.26100.1150

Image Version: 10.0.26100.3194

Packages listing:

Package Identity : Package_for_DotNetRollup_481~31bf3856ad364e35~amd64~~10.0.9290.1
State : Installed
Release Type : Update
Install Time : 1/15/2025 8:04 AM

Package Identity : Package_for_KB5050187~31bf3856ad364e35~amd64~~10.0.1.4
State : Installed
Release Type : Update
Install Time : 1/15/2025 8:05 AM

Package Identity : Package_for_ServicingStack_3188~31bf3856ad364e35~amd64~~26100.3188.1.3
State : Installed
Release Type : Update
Install Time : 2/12/2025 9:31 AM

The operation completed successfully.
"""


@pytest.fixture
def mock_reg_output() -> str:
    """Sample reg query output for the servicing packages key."""
    root = (
        "HKEY_LOCAL_MACHINE\\SOFTWARE\\Microsoft\\Windows\\CurrentVersion"
        "\\Component Based Servicing\\Packages"
    )
    return "\r\n".join(
        [
            "",
            f"{root}\\Microsoft-Windows-Client-Features-Package~31bf3856ad364e35~amd64~~10.0.26100.1",
            f"{root}\\Package_for_RollupFix~31bf3856ad364e35~amd64~~26100.3194.1.7",
            f"{root}\\Package_for_RollupFix~31bf3856ad364e35~amd64~~26100.2894.1.4",
            f"{root}\\Package_for_ServicingStack_3188~31bf3856ad364e35~amd64~~26100.3188.1.3",
            "",
        ]
    )


@pytest.fixture
def mock_pnputil_output() -> str:
    """Sample pnputil /enum-drivers output."""
    return """Microsoft PnP Utility

Published Name:     oem3.inf
Original Name:      rtkhdaud.inf
Provider Name:      Realtek Semiconductor Corp.
Class Name:         Extension
Class GUID:         {e2f84ce7-8efa-411c-aa69-97454ca4cb57}
Driver Version:     01/10/2025 10.0.26100.1
Signer Name:        Microsoft Windows Hardware Compatibility Publisher

Published Name:     oem7.inf
Original Name:      iaStorVD.inf
Provider Name:      Intel Corporation
Class Name:         Storage controllers
Class GUID:         {4d36e97b-e325-11ce-bfc1-08002be10318}
Driver Version:     07/20/2024 20.1.0.1006
Signer Name:        Microsoft Windows Hardware Compatibility Publisher

"""


@pytest.fixture
def mock_empty_output() -> str:
    """Empty output for testing edge cases."""
    return ""
