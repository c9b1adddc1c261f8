"""Sequential batch removal of selected updates.

Removals run strictly one after another: the servicing stack serializes
package operations, and concurrent DISM/wusa invocations can corrupt its
state. Progress is published to listeners as BatchEvents, in order, from
the thread running the batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from wuctl.models.removal import BatchEvent, BatchEventType, BatchSummary
from wuctl.models.update import OperationStatus, UninstallMethod

if TYPE_CHECKING:
    from wuctl.core.orchestrator import RemovalOrchestrator
    from wuctl.models.update import UpdateRecord

logger = logging.getLogger(__name__)

BatchListener = Callable[[BatchEvent], None]


def is_runnable(record: UpdateRecord) -> bool:
    """Check if a record can be handed to the batch runner."""
    return record.removable and record.method != UninstallMethod.NONE


def select_removable(
    selection: Iterable[UpdateRecord],
) -> tuple[list[UpdateRecord], list[UpdateRecord]]:
    """Split a user selection into runnable and skipped records.

    Skipped records are marked SKIPPED with an explanatory message.

    Args:
        selection: Records chosen by the user.

    Returns:
        Tuple of (runnable, skipped) records, each in selection order.
    """
    runnable: list[UpdateRecord] = []
    skipped: list[UpdateRecord] = []
    for record in selection:
        if is_runnable(record):
            runnable.append(record)
        else:
            record.set_status(OperationStatus.SKIPPED, "No uninstall method available")
            skipped.append(record)
    return runnable, skipped


class BatchRunner:
    """Runs removals for a selection of updates, one at a time.

    Example:
        >>> runner = BatchRunner(orchestrator)
        >>> runner.subscribe(lambda event: print(event.event_type, event.current))
        >>> summary = runner.run_batch(selected)
    """

    def __init__(
        self,
        orchestrator: RemovalOrchestrator,
        listeners: Iterable[BatchListener] = (),
    ) -> None:
        """Initialize the runner.

        Args:
            orchestrator: Orchestrator performing single removals.
            listeners: Callables notified of every BatchEvent.
        """
        self._orchestrator = orchestrator
        self._listeners: list[BatchListener] = list(listeners)
        self._selection: list[UpdateRecord] = []
        self._current = 0

    @property
    def selection(self) -> list[UpdateRecord]:
        """Records of the current (or last) batch."""
        return list(self._selection)

    @property
    def progress(self) -> tuple[int, int]:
        """Aggregate progress as (finished, total)."""
        return self._current, len(self._selection)

    def subscribe(self, listener: BatchListener) -> None:
        """Register a listener for batch events."""
        self._listeners.append(listener)

    def run_batch(self, selection: Sequence[UpdateRecord]) -> BatchSummary:
        """Remove every record in the selection.

        Each record goes IN_PROGRESS before its removal starts and ends
        SUCCESS or FAILED with the orchestrator's message. A failure
        never stops the batch.

        Args:
            selection: Records to remove; all must be runnable.

        Returns:
            BatchSummary with success and failure counts.

        Raises:
            ValueError: If a record has no resolved uninstall method.
        """
        not_runnable = [record.display_id for record in selection if not is_runnable(record)]
        if not_runnable:
            names = ", ".join(not_runnable)
            msg = f"Updates without an uninstall method cannot be removed: {names}"
            raise ValueError(msg)

        self._selection = list(selection)
        self._current = 0
        total = len(self._selection)
        succeeded = 0
        failed = 0
        reboot_required = 0

        logger.info("Removing %d update(s)", total)
        self._emit(BatchEvent(BatchEventType.STARTED, 0, total))

        for record in self._selection:
            record.set_status(OperationStatus.IN_PROGRESS)
            self._emit(BatchEvent(BatchEventType.ITEM_STARTED, self._current, total, record))

            verdict = self._orchestrator.remove(record)
            if verdict.success:
                record.set_status(OperationStatus.SUCCESS, verdict.message)
                succeeded += 1
                if verdict.reboot_required:
                    reboot_required += 1
                logger.info("Removed %s: %s", record.display_id, verdict.message)
            else:
                record.set_status(OperationStatus.FAILED, verdict.message)
                failed += 1
                logger.warning("Failed to remove %s: %s", record.display_id, verdict.message)

            self._current += 1
            self._emit(BatchEvent(BatchEventType.ITEM_FINISHED, self._current, total, record))

        self._emit(BatchEvent(BatchEventType.FINISHED, self._current, total))
        logger.info("Batch finished: %d succeeded, %d failed", succeeded, failed)
        return BatchSummary(succeeded=succeeded, failed=failed, reboot_required=reboot_required)

    def _emit(self, event: BatchEvent) -> None:
        """Notify listeners; a failing listener does not stop the batch."""
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:  # noqa: BLE001
                logger.warning("Batch listener failed on %s: %s", event.event_type.value, e)
