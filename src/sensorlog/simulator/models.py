"""
Data models and enums for the sensor simulator.
"""

from dataclasses import dataclass
from enum import Enum


class SensorAnomalyType(Enum):
    """Types of anomalies that can be injected into simulated readings"""

    HEAT_WAVE = "heat_wave"
    COLD_SNAP = "cold_snap"
    HUMIDITY_SPIKE = "humidity_spike"
    DRY_AIR = "dry_air"
    BLACKOUT = "blackout"
    GLARE = "glare"


@dataclass
class SimulatorConfig:
    """Configuration for the sensor simulator"""

    # Server settings
    host: str = "127.0.0.1"
    port: int = 9999
    buffer_size: int = 4096
    reply_timeout_seconds: float = 5.0

    # Generation settings
    num_sensors: int = 3
    interval_seconds: float = 5.0

    # Anomaly settings
    anomaly_probability: float = 0.05  # 5% chance of anomaly per reading
    enabled_anomalies: list[SensorAnomalyType] | None = None

    def __post_init__(self):
        if self.enabled_anomalies is None:
            self.enabled_anomalies = list(SensorAnomalyType)
