"""
Binary snapshot file: the durable full-state checkpoint used for recovery.

Layout (little-endian, fixed regardless of host byte order):

    [u64 record_count]
    record_count x [u64 len][timestamp utf-8][f64 temperature][f64 humidity][f64 light]
                   [u64 len][sensor_id utf-8]

A snapshot replaces the previous file entirely. Loading is all-or-nothing: a
file whose header does not match the records actually readable is rejected.
"""

import os
import struct
from collections.abc import Iterable
from pathlib import Path

import structlog

from sensorlog.core.models import SensorRecord
from sensorlog.store.base import TelemetryStore

logger = structlog.get_logger(__name__)

_U64 = struct.Struct("<Q")
_METRICS = struct.Struct("<ddd")


class SnapshotError(Exception):
    """Raised when a snapshot file cannot be decoded"""


def encode_records(records: Iterable[SensorRecord]) -> bytes:
    """Serialize records to the snapshot byte layout"""
    records = list(records)
    parts = [_U64.pack(len(records))]
    for record in records:
        parts.append(_pack_string(record.timestamp))
        parts.append(_METRICS.pack(record.temperature, record.humidity, record.light))
        parts.append(_pack_string(record.sensor_id))
    return b"".join(parts)


def decode_records(data: bytes) -> list[SensorRecord]:
    """Parse the snapshot byte layout

    Raises:
        SnapshotError: On a short header, a truncated record, undecodable text
            or bytes left over after the announced record count
    """
    reader = _Reader(data)
    count = reader.u64("record count")

    records = []
    for index in range(count):
        try:
            timestamp = reader.string("timestamp")
            temperature, humidity, light = reader.unpack(_METRICS, "metrics")
            sensor_id = reader.string("sensor_id")
        except SnapshotError as e:
            raise SnapshotError(f"record {index} of {count}: {e}") from e
        records.append(SensorRecord(timestamp, temperature, humidity, light, sensor_id))

    if reader.remaining:
        raise SnapshotError(
            f"{reader.remaining} trailing bytes after {count} records (header/record mismatch)"
        )
    return records


def write_snapshot(path: str | Path, records: Iterable[SensorRecord]) -> int:
    """Truncate and rewrite the snapshot file

    Returns:
        Number of records written

    Raises:
        OSError: If the destination cannot be opened or written
    """
    records = list(records)
    payload = encode_records(records)
    with open(path, "wb") as f:
        f.write(payload)
    return len(records)


def load_snapshot(path: str | Path) -> list[SensorRecord]:
    """Read a snapshot file; a missing file yields no records

    Raises:
        SnapshotError: If the file exists but is not a valid snapshot
        OSError: If the file exists but cannot be read
    """
    if not os.path.exists(path):
        logger.info("No snapshot file found, starting empty", path=str(path))
        return []

    with open(path, "rb") as f:
        data = f.read()
    return decode_records(data)


def restore_store(store: TelemetryStore, path: str | Path) -> int:
    """Load the snapshot into the store at startup

    A corrupt or unreadable snapshot is discarded and the store starts empty.
    This loses every record the file held, so it is logged as a warning.

    Returns:
        Number of records loaded
    """
    try:
        records = load_snapshot(path)
    except (SnapshotError, OSError) as e:
        logger.warning(
            "Snapshot rejected, starting with an empty store (stored data is NOT recovered)",
            path=str(path),
            error=str(e),
        )
        return 0

    store.load(records)
    if records:
        logger.info("Snapshot loaded", path=str(path), count=len(records))
    return len(records)


def _pack_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    return _U64.pack(len(raw)) + raw


class _Reader:
    """Bounds-checked cursor over snapshot bytes"""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def take(self, size: int, what: str) -> bytes:
        if size > self.remaining:
            raise SnapshotError(
                f"truncated {what}: need {size} bytes, {self.remaining} available"
            )
        chunk = self.data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def unpack(self, layout: struct.Struct, what: str) -> tuple:
        return layout.unpack(self.take(layout.size, what))

    def u64(self, what: str) -> int:
        return self.unpack(_U64, what)[0]

    def string(self, what: str) -> str:
        length = self.u64(f"{what} length")
        try:
            return self.take(length, what).decode("utf-8")
        except UnicodeDecodeError as e:
            raise SnapshotError(f"{what} is not valid UTF-8") from e
