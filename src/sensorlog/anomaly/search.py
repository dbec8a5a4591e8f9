"""
Historical anomaly search over a snapshot of the store.

Timestamps are compared as strings. This is chronologically correct only
because every stored timestamp uses the canonical fixed-width UTC form (see
sensorlog.core.timestamps); records loaded from older snapshots in another
format will not order correctly.
"""

from collections.abc import Iterable
from enum import Enum
from operator import attrgetter

from sensorlog.core.config import Thresholds
from sensorlog.core.models import SensorRecord
from sensorlog.core.timestamps import normalize_timestamp

from .engine import AnomalyFinding, evaluate


class SortKey(Enum):
    """Sort orders supported by historical search"""

    TIMESTAMP = "timestamp"
    DEVIATION = "deviation"


_SORT_VALUES = {
    SortKey.TIMESTAMP: attrgetter("record.timestamp"),
    SortKey.DEVIATION: attrgetter("deviation_score"),
}


def normalize_bound(bound: str | None) -> str:
    """Canonicalize a search bound; empty or None means unbounded"""
    if not bound:
        return ""
    return normalize_timestamp(bound)


def in_range(timestamp: str, start: str = "", end: str = "") -> bool:
    """Inclusive range check on canonical timestamps"""
    if start and timestamp < start:
        return False
    if end and timestamp > end:
        return False
    return True


def search(
    records: Iterable[SensorRecord],
    thresholds: Thresholds,
    start: str = "",
    end: str = "",
    sort_key: SortKey | str = SortKey.TIMESTAMP,
    descending: bool = False,
) -> list[AnomalyFinding]:
    """Find anomalous records inside a time window

    Args:
        records: Records in store order (typically store.snapshot())
        thresholds: Bounds passed to the anomaly engine
        start: Inclusive lower bound, "" for none
        end: Inclusive upper bound, "" for none
        sort_key: 'timestamp' or 'deviation'
        descending: Sort direction; ties keep store order either way

    Returns:
        Anomalous findings, sorted

    Raises:
        ValueError: If sort_key is unknown
    """
    key = SortKey(sort_key)

    findings = []
    for record in records:
        if not in_range(record.timestamp, start, end):
            continue
        finding = evaluate(record, thresholds)
        if finding.is_anomalous:
            findings.append(finding)

    # sorted() is stable and keeps equal keys in input order even with reverse=True
    return sorted(findings, key=_SORT_VALUES[key], reverse=descending)


def search_data(
    records: Iterable[SensorRecord],
    thresholds: Thresholds,
    start: str = "",
    end: str = "",
    sort_key: SortKey | str = SortKey.TIMESTAMP,
    descending: bool = False,
) -> list[SensorRecord]:
    """Every record inside a time window, anomalous or not

    Same window and ordering rules as search(); sorting by deviation ranks
    in-range readings (score 0) as equals.

    Raises:
        ValueError: If sort_key is unknown
    """
    key = SortKey(sort_key)
    findings = [
        evaluate(record, thresholds)
        for record in records
        if in_range(record.timestamp, start, end)
    ]
    findings.sort(key=_SORT_VALUES[key], reverse=descending)
    return [finding.record for finding in findings]


def summarize(findings: list[AnomalyFinding], limit: int = 5) -> dict:
    """Capped summary of findings for periodic reporting

    Returns:
        Dictionary with the total count, the top entries and how many were left out
    """
    top = [
        {
            "timestamp": f.record.timestamp,
            "sensor_id": f.record.sensor_id,
            "deviation_score": round(f.deviation_score, 2),
            "descriptions": list(f.descriptions),
        }
        for f in findings[:limit]
    ]
    return {
        "total": len(findings),
        "top": top,
        "omitted": max(0, len(findings) - limit),
    }
