"""
Human-readable JSON export of the records ingested since the previous export.
"""

import json
from collections.abc import Sequence
from pathlib import Path

from sensorlog.core.models import SensorRecord
from sensorlog.core.timestamps import now_timestamp, sanitize_for_filename


def export_filename(prefix: str, suffix: str, timestamp: str | None = None) -> str:
    """Build an export file name embedding a filesystem-safe timestamp"""
    return f"{prefix}{sanitize_for_filename(timestamp or now_timestamp())}{suffix}"


def render_export(records: Sequence[SensorRecord]) -> str:
    """Pretty-printed JSON array of field-named records"""
    return json.dumps([record.to_dict() for record in records], indent=4, ensure_ascii=False)


def write_export(
    directory: str | Path,
    records: Sequence[SensorRecord],
    prefix: str = "sensor_data_export_",
    suffix: str = ".json",
    timestamp: str | None = None,
) -> Path:
    """Write records to a new timestamped export file

    Returns:
        Path of the written file

    Raises:
        OSError: If the file cannot be created or written; a partially
            written file is removed
        UnicodeEncodeError: If a record holds text with no UTF-8 form; no
            file is created
    """
    name = export_filename(prefix, suffix, timestamp)
    path = Path(directory) / name
    content = render_export(records).encode("utf-8")

    # Never overwrite an earlier export created within the same millisecond
    attempt = 0
    while True:
        try:
            f = open(path, "xb")
        except FileExistsError:
            attempt += 1
            path = Path(directory) / f"{name.removesuffix(suffix)}-{attempt}{suffix}"
            continue

        try:
            with f:
                f.write(content)
        except OSError:
            path.unlink(missing_ok=True)
            raise
        return path


def read_export(path: str | Path) -> list[SensorRecord]:
    """Read an export file back into records"""
    with open(path, encoding="utf-8") as f:
        return [SensorRecord.from_dict(item) for item in json.load(f)]
