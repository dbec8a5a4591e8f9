"""
Tests for JSON export files.
"""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from sensorlog.persistence.export import export_filename, read_export, render_export, write_export


class TestExport:
    """Tests for export helpers."""

    def test_filename_is_sanitized(self):
        name = export_filename("sensor_data_export_", ".json", "2024-01-02T03:04:05.678Z")

        assert name == "sensor_data_export_2024-01-02T03-04-05_678Z.json"
        assert ":" not in export_filename("p_", ".json")

    def test_render_is_pretty_printed_array(self, make_record):
        text = render_export([make_record(sensor_id="s-1")])

        assert text.startswith("[\n    {")
        assert json.loads(text) == [
            {
                "timestamp": "2024-01-02T12:00:00.000Z",
                "temperature": 22.0,
                "humidity": 50.0,
                "light": 500.0,
                "sensor_id": "s-1",
            }
        ]

    def test_write_and_read(self, tmp_path, make_record):
        records = [make_record(sensor_id="a"), make_record(sensor_id="b", light=123.5)]

        path = write_export(tmp_path, records, timestamp="2024-01-02T03:04:05.678Z")

        assert path.name == "sensor_data_export_2024-01-02T03-04-05_678Z.json"
        assert read_export(path) == records

    def test_same_timestamp_does_not_overwrite(self, tmp_path, make_record):
        first = write_export(tmp_path, [make_record(sensor_id="a")], timestamp="2024-01-02T00:00:00.000Z")
        second = write_export(tmp_path, [make_record(sensor_id="b")], timestamp="2024-01-02T00:00:00.000Z")

        assert first != second
        assert read_export(first)[0].sensor_id == "a"
        assert read_export(second)[0].sensor_id == "b"

    def test_missing_directory_raises(self, tmp_path, make_record):
        with pytest.raises(OSError):
            write_export(tmp_path / "missing", [make_record()])

    def test_unencodable_text_creates_no_file(self, tmp_path, make_record):
        """A lone surrogate cannot be written as UTF-8; nothing is left behind."""
        with pytest.raises(UnicodeEncodeError):
            write_export(tmp_path, [make_record(sensor_id="\ud800")])

        assert list(tmp_path.iterdir()) == []

    def test_failed_write_removes_partial_file(self, tmp_path, make_record):
        def partial_open(path, mode):
            Path(path).write_bytes(b"[")
            handle = MagicMock()
            handle.__enter__.return_value = handle
            handle.__exit__.return_value = False
            handle.write.side_effect = OSError(28, "No space left on device")
            return handle

        with patch("sensorlog.persistence.export.open", side_effect=partial_open, create=True):
            with pytest.raises(OSError, match="No space left"):
                write_export(tmp_path, [make_record()])

        assert list(tmp_path.iterdir()) == []
