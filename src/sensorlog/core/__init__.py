"""
Core utilities shared across the server, the persistence layer and the simulator.
"""

from .config import ServerConfig, Thresholds
from .logger import setup_logging
from .models import SensorRecord

__all__ = ["SensorRecord", "ServerConfig", "Thresholds", "setup_logging"]
