"""Update record models.

This module defines the data structures for representing installed
Windows updates and the state attached to them during resolution
and removal.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class UpdateCategory(Enum):
    """Classification of an installed update.

    Attributes:
        QUALITY: Cumulative, security, servicing stack and .NET updates.
        DRIVER: Third-party driver and firmware updates.
        DEFINITION: Antimalware / security intelligence definitions.
        OTHER: Anything that fits none of the above.
    """

    QUALITY = "quality"
    DRIVER = "driver"
    DEFINITION = "definition"
    OTHER = "other"


class UninstallMethod(Enum):
    """Native mechanism able to uninstall an update.

    Attributes:
        NONE: The update cannot be removed.
        PACKAGE_MANAGER: Remove the servicing package via DISM.
        DRIVER_TOOL: Delete the driver package via pnputil.
        STANDALONE_INSTALLER: Uninstall by KB number via wusa.
        COMBINED: Try DISM first, then wusa.
    """

    NONE = "none"
    PACKAGE_MANAGER = "dism"
    DRIVER_TOOL = "pnputil"
    STANDALONE_INSTALLER = "wusa"
    COMBINED = "combined"

    @property
    def display_name(self) -> str:
        """Short label used in tables."""
        return _METHOD_LABELS[self]


_METHOD_LABELS: dict[UninstallMethod, str] = {
    UninstallMethod.NONE: "-",
    UninstallMethod.PACKAGE_MANAGER: "DISM",
    UninstallMethod.DRIVER_TOOL: "PnPUtil",
    UninstallMethod.STANDALONE_INSTALLER: "WUSA",
    UninstallMethod.COMBINED: "DISM/WUSA",
}


class OperationStatus(Enum):
    """Per-item status during a removal run."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is expected for this run."""
        return self in (OperationStatus.SUCCESS, OperationStatus.FAILED, OperationStatus.SKIPPED)


@dataclass(slots=True)
class UpdateRecord:
    """One installed update taken from the update history.

    Records are created fresh on every refresh. The matchers fill in the
    resolution fields (removable, method, target) and the batch runner
    fills in the status fields. Resolution fields must only be changed
    through :meth:`assign`, :meth:`mark_not_removable` and
    :meth:`clear_resolution` so that method and target stay in sync.

    Attributes:
        title: Update title as reported by Windows Update.
        installed_at: Installation timestamp.
        kb_id: Normalized KB identifier (e.g. 'KB5034441') or empty.
        description: Free-text description.
        category: Update category.
        build_version: Build version parsed from the title (e.g. '26100.3194').
        removable: Whether a removal mechanism was resolved.
        method: Resolved uninstall method.
        target: Identity handed to the executor (package identity, inf
            name or KB identifier depending on the method).
        is_latest_security: Marks the most recently installed quality update.
        status: Operation status for the current removal run.
        message: Diagnostic message from the last removal attempt.
        driver_provider: Driver provider (driver updates only).
        driver_class: Driver device class (driver updates only).
        driver_version: Driver version and date (driver updates only).
        update_id: Windows Update identity of the update.
        support_url: Support URL reported by Windows Update.
    """

    title: str
    installed_at: datetime
    kb_id: str = ""
    description: str = ""
    category: UpdateCategory = UpdateCategory.OTHER
    build_version: str = ""
    removable: bool = False
    method: UninstallMethod = UninstallMethod.NONE
    target: str = ""
    is_latest_security: bool = False
    status: OperationStatus = OperationStatus.PENDING
    message: str = ""
    driver_provider: str = ""
    driver_class: str = ""
    driver_version: str = ""
    update_id: str = field(default="", repr=False)
    support_url: str = field(default="", repr=False)

    @property
    def kb_number(self) -> str:
        """KB identifier without the 'KB' prefix."""
        return self.kb_id[2:] if self.kb_id.upper().startswith("KB") else self.kb_id

    @property
    def label(self) -> str:
        """Short label used in match logs, e.g. 'KB5034441(26100.3194)'."""
        return f"{self.kb_id}({self.build_version})"

    @property
    def display_id(self) -> str:
        """KB identifier or a truncated title when there is none."""
        if self.kb_id:
            return self.kb_id
        return self.title if len(self.title) <= 40 else self.title[:37] + "..."

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output.

        Returns:
            Dictionary representation of the record.
        """
        result: dict[str, Any] = {
            "title": self.title,
            "kb_id": self.kb_id,
            "installed_at": self.installed_at.isoformat(),
            "category": self.category.value,
            "build_version": self.build_version,
            "removable": self.removable,
            "method": self.method.value,
            "target": self.target,
            "is_latest_security": self.is_latest_security,
            "status": self.status.value,
        }
        if self.message:
            result["message"] = self.message
        if self.category == UpdateCategory.DRIVER and self.driver_provider:
            result["driver"] = {
                "provider": self.driver_provider,
                "class": self.driver_class,
                "version": self.driver_version,
            }
        return result

    def assign(self, method: UninstallMethod, target: str) -> None:
        """Resolve the record to a removal mechanism.

        Args:
            method: Uninstall method, must not be NONE.
            target: Identity for the executor, must not be empty.

        Raises:
            ValueError: If method is NONE or target is empty.
        """
        if method == UninstallMethod.NONE:
            msg = "Cannot assign UninstallMethod.NONE, use mark_not_removable()"
            raise ValueError(msg)
        if not target:
            msg = f"Target identity cannot be empty for method {method.value}"
            raise ValueError(msg)
        self.method = method
        self.target = target
        self.removable = True

    def mark_not_removable(self) -> None:
        """Mark the record as having no usable removal mechanism."""
        self.method = UninstallMethod.NONE
        self.target = ""
        self.removable = False

    def clear_resolution(self) -> None:
        """Reset every field set by the matchers."""
        self.mark_not_removable()
        self.driver_provider = ""
        self.driver_class = ""
        self.driver_version = ""

    def set_status(self, status: OperationStatus, message: str = "") -> None:
        """Update the operation status and message together."""
        self.status = status
        self.message = message
