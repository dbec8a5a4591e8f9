"""
Predefined configurations for different simulation scenarios.
"""

from .models import SensorAnomalyType, SimulatorConfig

# Normal operation (low anomaly rate)
NORMAL_CONFIG = SimulatorConfig(
    num_sensors=5,
    anomaly_probability=0.01,
    interval_seconds=5.0,
)


# Chaos mode (high anomaly rate, all types)
CHAOS_CONFIG = SimulatorConfig(
    num_sensors=20,
    anomaly_probability=0.2,
    interval_seconds=1.0,
)


# Climate issues only (temperature and humidity)
CLIMATE_FOCUS_CONFIG = SimulatorConfig(
    num_sensors=8,
    anomaly_probability=0.05,
    enabled_anomalies=[
        SensorAnomalyType.HEAT_WAVE,
        SensorAnomalyType.COLD_SNAP,
        SensorAnomalyType.HUMIDITY_SPIKE,
        SensorAnomalyType.DRY_AIR,
    ],
    interval_seconds=2.0,
)


# Development/Testing (fast and small)
DEV_CONFIG = SimulatorConfig(num_sensors=2, anomaly_probability=0.1, interval_seconds=1.0)
