"""
Data models shared by the store, the anomaly engine and the persistence layer.
"""

from dataclasses import asdict, dataclass
from typing import Any

UNKNOWN_SENSOR_ID = "unknown"

RECORD_FIELDS = ("timestamp", "temperature", "humidity", "light", "sensor_id")


@dataclass(frozen=True)
class SensorRecord:
    """One ingested sensor reading. Immutable once constructed."""

    timestamp: str
    temperature: float
    humidity: float
    light: float
    sensor_id: str = UNKNOWN_SENSOR_ID

    def to_dict(self) -> dict[str, Any]:
        """Convert to a field-named dict (JSON export, query replies)"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SensorRecord":
        """Create from a field-named dict"""
        return cls(
            timestamp=str(data["timestamp"]),
            temperature=float(data["temperature"]),
            humidity=float(data["humidity"]),
            light=float(data["light"]),
            sensor_id=str(data.get("sensor_id", UNKNOWN_SENSOR_ID)),
        )
