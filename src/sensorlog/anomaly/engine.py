"""
Threshold-based anomaly evaluation.

Pure functions: a record and a Thresholds value in, a finding out. No shared
state, so handlers, the scheduler and historical search call them without any
locking.
"""

from dataclasses import dataclass
from typing import Any

from sensorlog.core.config import Thresholds
from sensorlog.core.models import SensorRecord
from sensorlog.core.timestamps import strip_milliseconds


@dataclass(frozen=True)
class MetricSpec:
    """How one metric is checked and described"""

    field: str
    label: str
    unit: str
    precision: int
    min_attr: str
    max_attr: str


# Evaluation order is fixed; descriptions follow it regardless of magnitude
METRICS = (
    MetricSpec("temperature", "Temperature", "°C", 2, "temp_min", "temp_max"),
    MetricSpec("humidity", "Humidity", "%", 2, "humidity_min", "humidity_max"),
    MetricSpec("light", "Light intensity", "lux", 0, "light_min", "light_max"),
)


@dataclass(frozen=True)
class AnomalyFinding:
    """Result of evaluating one record against the thresholds"""

    record: SensorRecord
    descriptions: tuple[str, ...]
    deviation_score: float

    @property
    def is_anomalous(self) -> bool:
        return bool(self.descriptions)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "record": self.record.to_dict(),
            "descriptions": list(self.descriptions),
            "deviation_score": self.deviation_score,
        }


def evaluate(record: SensorRecord, thresholds: Thresholds) -> AnomalyFinding:
    """Check every metric of a record against its bounds

    The deviation score is the sum of the per-metric distances outside
    [min, max]; it is 0.0 exactly when no metric is out of range.

    Args:
        record: The reading to check
        thresholds: Inclusive bounds per metric

    Returns:
        AnomalyFinding with descriptions in temperature, humidity, light order
    """
    descriptions: list[str] = []
    score = 0.0
    when = strip_milliseconds(record.timestamp)

    for metric in METRICS:
        value = getattr(record, metric.field)
        low = getattr(thresholds, metric.min_attr)
        high = getattr(thresholds, metric.max_attr)

        if value < low:
            descriptions.append(_describe(when, metric, value, "below minimum", low))
            score += low - value
        elif value > high:
            descriptions.append(_describe(when, metric, value, "above maximum", high))
            score += value - high

    return AnomalyFinding(record=record, descriptions=tuple(descriptions), deviation_score=score)


def check(record: SensorRecord, thresholds: Thresholds) -> tuple[str, ...]:
    """Descriptions only, for inline checks on the ingestion path"""
    return evaluate(record, thresholds).descriptions


def is_anomalous(record: SensorRecord, thresholds: Thresholds) -> bool:
    return evaluate(record, thresholds).is_anomalous


def _describe(when: str, metric: MetricSpec, value: float, relation: str, bound: float) -> str:
    p = metric.precision
    return (
        f"Warning ({when}): {metric.label} ({value:.{p}f} {metric.unit}) "
        f"{relation} ({bound:.{p}f} {metric.unit})"
    )
