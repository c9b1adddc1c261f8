"""Removal result and batch progress models."""

from dataclasses import dataclass
from enum import Enum

from wuctl.models.update import UpdateRecord


@dataclass(frozen=True, slots=True)
class RemovalVerdict:
    """Outcome of removing a single update.

    Attributes:
        success: Whether the update was removed.
        message: Human-readable outcome, always set.
        reboot_required: Whether a restart is needed to finish the removal.
    """

    success: bool
    message: str
    reboot_required: bool = False

    @property
    def failed(self) -> bool:
        """Check if the removal failed."""
        return not self.success


class BatchEventType(Enum):
    """Kinds of events emitted by the batch runner.

    Attributes:
        STARTED: The batch is about to run; total is known.
        ITEM_STARTED: An item switched to IN_PROGRESS.
        ITEM_FINISHED: An item reached SUCCESS or FAILED; progress advanced.
        FINISHED: Every item has been attempted.
    """

    STARTED = "started"
    ITEM_STARTED = "item_started"
    ITEM_FINISHED = "item_finished"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class BatchEvent:
    """A progress notification from the batch runner.

    Attributes:
        event_type: What happened.
        current: Number of items finished so far.
        total: Number of items in the batch.
        record: The item concerned (None for STARTED/FINISHED).
    """

    event_type: BatchEventType
    current: int
    total: int
    record: UpdateRecord | None = None


@dataclass(frozen=True, slots=True)
class BatchSummary:
    """Final tally of a batch run.

    Attributes:
        succeeded: Updates removed.
        failed: Updates that could not be removed.
        reboot_required: Removed updates that need a restart to finish.
    """

    succeeded: int
    failed: int
    reboot_required: int = 0

    @property
    def total(self) -> int:
        """Number of attempted items."""
        return self.succeeded + self.failed
