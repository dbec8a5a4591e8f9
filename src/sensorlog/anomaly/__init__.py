"""
Threshold anomaly detection for sensor readings.

- Engine: evaluates one record against the configured bounds (descriptions + deviation score)
- Search: filters a store snapshot by time window and sorts all or only the anomalous records
"""

from .engine import AnomalyFinding, check, evaluate, is_anomalous
from .search import SortKey, normalize_bound, search, search_data, summarize

__all__ = [
    "AnomalyFinding",
    "SortKey",
    "check",
    "evaluate",
    "is_anomalous",
    "normalize_bound",
    "search",
    "search_data",
    "summarize",
]
