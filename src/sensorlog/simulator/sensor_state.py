"""
Sensor state management and reading generation.
"""

import random
from datetime import datetime
from typing import Any

from sensorlog.core.timestamps import format_timestamp, now_timestamp

from .models import SensorAnomalyType


class SensorState:
    """Tracks the state of one environmental sensor over time for realistic evolution"""

    def __init__(self, sensor_id: str):
        self.sensor_id = sensor_id

        # Base values, inside the default normal bounds
        self.base_temp = random.uniform(21, 25)
        self.base_humidity = random.uniform(45, 55)
        self.base_light = random.uniform(400, 700)

        # Current anomaly state
        self.active_anomaly: SensorAnomalyType | None = None
        self.anomaly_duration: int = 0

    def generate_reading(
        self, inject_anomaly: SensorAnomalyType | None = None, timestamp: datetime | None = None
    ) -> dict[str, Any]:
        """Generate one flat ingestion message with optional anomaly injection

        Args:
            inject_anomaly: Optional anomaly type to inject
            timestamp: Optional custom timestamp (defaults to now)
        """
        if inject_anomaly:
            self.active_anomaly = inject_anomaly
            self.anomaly_duration = random.randint(3, 10)  # lasts 3-10 readings

        temp_offset = 0.0
        humidity_offset = 0.0
        light_mult = 1.0

        if self.active_anomaly:
            if self.active_anomaly == SensorAnomalyType.HEAT_WAVE:
                temp_offset = random.uniform(4, 10)
            elif self.active_anomaly == SensorAnomalyType.COLD_SNAP:
                temp_offset = -random.uniform(4, 10)
            elif self.active_anomaly == SensorAnomalyType.HUMIDITY_SPIKE:
                humidity_offset = random.uniform(15, 35)
            elif self.active_anomaly == SensorAnomalyType.DRY_AIR:
                humidity_offset = -random.uniform(15, 30)
            elif self.active_anomaly == SensorAnomalyType.BLACKOUT:
                light_mult = random.uniform(0.0, 0.3)
            elif self.active_anomaly == SensorAnomalyType.GLARE:
                light_mult = random.uniform(1.5, 2.5)

            self.anomaly_duration -= 1
            if self.anomaly_duration <= 0:
                self.active_anomaly = None

        temperature = self.base_temp + random.uniform(-0.5, 0.5) + temp_offset
        humidity = min(100.0, max(0.0, self.base_humidity + random.uniform(-2, 2) + humidity_offset))
        light = max(0.0, (self.base_light + random.uniform(-30, 30)) * light_mult)

        return {
            "timestamp": format_timestamp(timestamp) if timestamp else now_timestamp(),
            "temperature": round(temperature, 2),
            "humidity": round(humidity, 2),
            "light": round(light, 1),
            "sensor_id": self.sensor_id,
        }
