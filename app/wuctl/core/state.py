"""State management for removal history.

This module provides the StateManager class for persisting and querying
removal history entries in a JSONL file format.
"""

import json
import logging
from pathlib import Path

from wuctl.core.paths import ensure_state_dir, get_state_dir
from wuctl.models.history import HistoryEntry

logger = logging.getLogger(__name__)


class StateManager:
    """Manages removal history in a JSONL file.

    Storage location: <state dir>/history.jsonl

    Each line is a complete JSON object representing one HistoryEntry,
    which allows append-only writes and line-by-line recovery from
    partially written files.
    """

    HISTORY_FILENAME = "history.jsonl"

    def __init__(self, state_dir: Path | None = None) -> None:
        """Initialize StateManager.

        Args:
            state_dir: Optional override for state directory.
        """
        self._state_dir = state_dir if state_dir is not None else get_state_dir()

    @property
    def history_path(self) -> Path:
        """Path to the history.jsonl file."""
        return self._state_dir / self.HISTORY_FILENAME

    def record_run(self, entry: HistoryEntry) -> None:
        """Append a removal run to the history file.

        Creates file and parent directories if they don't exist.

        Args:
            entry: The history entry to record.

        Raises:
            RuntimeError: If the state directory cannot be created.
            OSError: If the file cannot be written.
        """
        if self._state_dir == get_state_dir():
            ensure_state_dir()
        else:
            self._state_dir.mkdir(parents=True, exist_ok=True)

        with self.history_path.open(mode="a", encoding="utf-8") as f:
            f.write(entry.to_json_line() + "\n")
            f.flush()

    def get_history(self, limit: int | None = None) -> list[HistoryEntry]:
        """Read history entries, newest first.

        Args:
            limit: Maximum number of entries to return, or None for all.

        Returns:
            List of HistoryEntry, newest first. Empty if the file doesn't exist.
        """
        if not self.history_path.exists():
            return []

        entries: list[HistoryEntry] = []

        with self.history_path.open(encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                try:
                    entries.append(HistoryEntry.from_json_line(line))
                except (json.JSONDecodeError, KeyError, ValueError) as e:
                    logger.warning("Skipping corrupt history line %d: %s", line_num, str(e))
                    continue

        entries.reverse()

        if limit is not None:
            return entries[:limit]
        return entries
