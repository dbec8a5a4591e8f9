"""
Pytest configuration and shared fixtures.
"""

import pytest

from sensorlog.core.config import ServerConfig, Thresholds
from sensorlog.core.models import SensorRecord
from sensorlog.simulator.models import SimulatorConfig
from sensorlog.store.memory import LockedTelemetryStore


@pytest.fixture
def thresholds():
    """Default thresholds: temp [20, 26], humidity [40, 60], light [300, 800]."""
    return Thresholds()


@pytest.fixture
def make_record():
    """Factory for records with in-range defaults."""

    def _make(
        timestamp="2024-01-02T12:00:00.000Z",
        temperature=22.0,
        humidity=50.0,
        light=500.0,
        sensor_id="sensor-001",
    ):
        return SensorRecord(
            timestamp=timestamp,
            temperature=temperature,
            humidity=humidity,
            light=light,
            sensor_id=sensor_id,
        )

    return _make


@pytest.fixture
def store():
    """Empty in-memory store."""
    return LockedTelemetryStore()


@pytest.fixture
def server_config(tmp_path):
    """Server configuration with fast timers, an ephemeral port and tmp persistence paths."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        snapshot_interval=60.0,
        export_interval=300.0,
        report_interval=0.0,
        tick_interval=0.05,
        poll_interval=0.05,
        receive_timeout=0.05,
        shutdown_grace=5.0,
        snapshot_path=str(tmp_path / "sensor_data.bin"),
        export_dir=str(tmp_path),
    )


@pytest.fixture
def simulator_config():
    """Small simulator configuration without anomalies for predictable tests."""
    return SimulatorConfig(
        host="127.0.0.1",
        port=9999,
        num_sensors=2,
        interval_seconds=0.1,
        anomaly_probability=0.0,
    )
