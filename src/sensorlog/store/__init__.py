"""
Telemetry store registry and factory.
"""

from .base import TelemetryStore
from .memory import LockedTelemetryStore

# Registry of available store backends
STORE_REGISTRY = {
    "locked": LockedTelemetryStore,
}


def get_store(backend: str = "locked") -> TelemetryStore:
    """Factory to create a telemetry store

    Args:
        backend: Name of the store backend (e.g., 'locked')

    Returns:
        An empty store instance

    Raises:
        ValueError: If backend is not registered
    """
    if backend not in STORE_REGISTRY:
        available = ", ".join(STORE_REGISTRY.keys())
        raise ValueError(f"Unknown store backend '{backend}'. Available backends: {available}")

    return STORE_REGISTRY[backend]()


def list_backends() -> list[str]:
    """List all available store backends"""
    return list(STORE_REGISTRY.keys())


__all__ = [
    "LockedTelemetryStore",
    "STORE_REGISTRY",
    "TelemetryStore",
    "get_store",
    "list_backends",
]
