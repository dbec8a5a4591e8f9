"""
In-memory telemetry store guarded by a single lock.
"""

import threading
from collections.abc import Iterable

from sensorlog.core.models import SensorRecord

from .base import TelemetryStore


class LockedTelemetryStore(TelemetryStore):
    """Append-only log plus pending export batch behind one mutex

    Records are immutable, so the export batch shares the same objects as the
    main log; copies are only made when handing data out.
    """

    def __init__(self, records: Iterable[SensorRecord] | None = None):
        self._records: list[SensorRecord] = list(records or [])
        self._export_batch: list[SensorRecord] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "locked"

    def append(self, record: SensorRecord) -> None:
        with self._lock:
            self._records.append(record)
            self._export_batch.append(record)

    def snapshot(self) -> list[SensorRecord]:
        with self._lock:
            return list(self._records)

    def drain_export_batch(self) -> list[SensorRecord]:
        with self._lock:
            batch = self._export_batch
            self._export_batch = []
            return batch

    def restore_export_batch(self, records: Iterable[SensorRecord]) -> None:
        records = list(records)
        if not records:
            return
        with self._lock:
            self._export_batch[:0] = records

    def load(self, records: Iterable[SensorRecord]) -> None:
        records = list(records)
        with self._lock:
            self._records = records

    def pending_export_count(self) -> int:
        """Number of records waiting for the next export"""
        with self._lock:
            return len(self._export_batch)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
