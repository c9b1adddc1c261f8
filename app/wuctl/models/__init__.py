"""Data models for wuctl.

This module exports the core data structures used throughout the application.
"""

from wuctl.models.history import HistoryEntry, HistoryItem, create_history_entry
from wuctl.models.inventory import (
    DriverInventoryEntry,
    InventorySnapshot,
    PackageInventoryEntry,
)
from wuctl.models.removal import BatchEvent, BatchEventType, BatchSummary, RemovalVerdict
from wuctl.models.update import (
    OperationStatus,
    UninstallMethod,
    UpdateCategory,
    UpdateRecord,
)

__all__ = [
    "BatchEvent",
    "BatchEventType",
    "BatchSummary",
    "DriverInventoryEntry",
    "HistoryEntry",
    "HistoryItem",
    "InventorySnapshot",
    "OperationStatus",
    "PackageInventoryEntry",
    "RemovalVerdict",
    "UninstallMethod",
    "UpdateCategory",
    "UpdateRecord",
    "create_history_entry",
]
