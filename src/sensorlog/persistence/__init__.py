"""
Persistence: binary snapshots (full-state checkpoints), JSON exports (deltas) and their scheduler.
"""

from .export import read_export, write_export
from .scheduler import PersistenceScheduler
from .snapshot import (
    SnapshotError,
    decode_records,
    encode_records,
    load_snapshot,
    restore_store,
    write_snapshot,
)

__all__ = [
    "PersistenceScheduler",
    "SnapshotError",
    "decode_records",
    "encode_records",
    "load_snapshot",
    "read_export",
    "restore_store",
    "write_export",
    "write_snapshot",
]
