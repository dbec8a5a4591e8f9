"""
Base abstract interface for telemetry stores.

The store is the only shared mutable state in the server. Connection handlers
append to it, the persistence scheduler snapshots and drains it, and historical
search reads snapshots of it. Implementations must make every operation a single
critical section with respect to both the main log and the export batch.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from sensorlog.core.models import SensorRecord


class TelemetryStore(ABC):
    """Abstract base class for all telemetry store implementations

    Each store must implement:
    1. append() - add a record to the log and to the pending export batch
    2. snapshot() - independent copy of the log in arrival order
    3. drain_export_batch() - atomically take every pending export record
    4. restore_export_batch() - put back a drained batch whose export failed
    5. load() - replace the log wholesale at startup
    """

    @abstractmethod
    def append(self, record: SensorRecord) -> None:
        """Add a record to the main log and to the export batch"""
        pass

    @abstractmethod
    def snapshot(self) -> list[SensorRecord]:
        """Return an independent copy of the main log in insertion order"""
        pass

    @abstractmethod
    def drain_export_batch(self) -> list[SensorRecord]:
        """Remove and return all pending export records (empty list if none)"""
        pass

    @abstractmethod
    def restore_export_batch(self, records: Iterable[SensorRecord]) -> None:
        """Put records from a failed export back in front of the pending batch

        The records must come from a previous drain_export_batch() call, so they
        are already part of the main log.
        """
        pass

    @abstractmethod
    def load(self, records: Iterable[SensorRecord]) -> None:
        """Replace the main log. The export batch is left untouched."""
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the store backend"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(records={len(self)})"
