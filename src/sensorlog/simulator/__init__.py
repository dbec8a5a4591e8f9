"""
Sensor simulator for the telemetry server.
Streams realistic temperature, humidity and light readings with configurable anomalies.
"""

from .config import CHAOS_CONFIG, CLIMATE_FOCUS_CONFIG, DEV_CONFIG, NORMAL_CONFIG
from .models import SensorAnomalyType, SimulatorConfig
from .sensor_state import SensorState
from .simulator import SensorSimulator

__all__ = [
    "SensorAnomalyType",
    "SimulatorConfig",
    "SensorState",
    "SensorSimulator",
    "NORMAL_CONFIG",
    "CHAOS_CONFIG",
    "CLIMATE_FOCUS_CONFIG",
    "DEV_CONFIG",
]
