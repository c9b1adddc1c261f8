"""History entry model for tracking removal runs.

This module defines data structures for recording update removal
batches in a history file, giving an audit trail of what was removed,
through which mechanism, and with which outcome.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from wuctl.models.update import OperationStatus, UninstallMethod, UpdateRecord


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single update attempted during a removal run.

    Attributes:
        title: Update title.
        method: Uninstall method that was used.
        status: Terminal status of the attempt.
        kb_id: KB identifier, if any.
        target: Identity passed to the executor.
        message: Outcome message.
    """

    title: str
    method: UninstallMethod
    status: OperationStatus
    kb_id: str = ""
    target: str = ""
    message: str = ""

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.title:
            msg = "Update title cannot be empty"
            raise ValueError(msg)

    @classmethod
    def from_record(cls, record: UpdateRecord) -> HistoryItem:
        """Capture the removal-relevant state of an update record."""
        return cls(
            title=record.title,
            method=record.method,
            status=record.status,
            kb_id=record.kb_id,
            target=record.target,
            message=record.message,
        )

    @property
    def success(self) -> bool:
        """Check if this item was removed."""
        return self.status == OperationStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage.

        Returns:
            Dictionary representation of the history item.
        """
        result: dict[str, Any] = {
            "title": self.title,
            "method": self.method.value,
            "status": self.status.value,
        }
        if self.kb_id:
            result["kb_id"] = self.kb_id
        if self.target:
            result["target"] = self.target
        if self.message:
            result["message"] = self.message
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryItem:
        """Deserialize from dictionary.

        Args:
            data: Dictionary containing item data.

        Returns:
            HistoryItem instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If method or status is invalid.
        """
        return cls(
            title=data["title"],
            method=UninstallMethod(data["method"]),
            status=OperationStatus(data["status"]),
            kb_id=data.get("kb_id", ""),
            target=data.get("target", ""),
            message=data.get("message", ""),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single removal run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        items: Updates attempted in this run.
        metadata: Additional context (command, dry_run, ...).
    """

    id: str
    timestamp: str
    items: tuple[HistoryItem, ...]
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)
        if not self.items:
            msg = "History entry must have at least one item"
            raise ValueError(msg)

    @property
    def succeeded(self) -> int:
        """Number of items removed successfully."""
        return sum(1 for item in self.items if item.success)

    @property
    def failed(self) -> int:
        """Number of items that were attempted and failed."""
        return sum(1 for item in self.items if item.status == OperationStatus.FAILED)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "items": [item.to_dict() for item in self.items],
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If item data is invalid.
        """
        items = tuple(HistoryItem.from_dict(item) for item in data["items"])
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            items=items,
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """Serialize to JSON line for JSONL storage.

        Returns:
            Single JSON line (no trailing newline).
        """
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        """Deserialize from JSON line.

        Raises:
            json.JSONDecodeError: If line is not valid JSON.
            KeyError: If required fields are missing.
            ValueError: If data is invalid.
        """
        data = json.loads(line.strip())
        return cls.from_dict(data)


def create_history_entry(
    items: list[HistoryItem],
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Factory function to create a new HistoryEntry.

    Automatically generates a unique ID and current timestamp.

    Args:
        items: Updates attempted in the run.
        metadata: Optional additional context.

    Returns:
        New HistoryEntry with auto-generated ID and timestamp.

    Raises:
        ValueError: If items list is empty.
    """
    if not items:
        msg = "Cannot create history entry with no items"
        raise ValueError(msg)

    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        items=tuple(items),
        metadata=metadata or {},
    )
