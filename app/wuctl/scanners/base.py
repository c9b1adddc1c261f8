"""Abstract base class for inventory sources.

This module defines the Source interface that every inventory
collector (update history, DISM packages, servicing registry,
pnputil drivers) must implement.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class Source(ABC, Generic[T]):
    """Abstract base class for all inventory sources.

    Sources query one system facility and yield the entries it reports.
    They never interpret the entries beyond parsing them.

    Example:
        >>> source = DriverSource()
        >>> if source.is_available():
        ...     for driver in source.collect():
        ...         print(f"{driver.inf_name}: {driver.provider}")
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return a short human-readable name used in logs."""

    @abstractmethod
    def collect(self) -> Iterator[T]:
        """Query the facility and yield every entry it reports.

        Yields:
            Parsed entries.

        Raises:
            RuntimeError: If the facility is unavailable or the query fails.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool is available on this system.

        Returns:
            True if the source can be queried, False otherwise.
        """

    def count(self) -> int:
        """Count the entries reported by the source."""
        return sum(1 for _ in self.collect())
