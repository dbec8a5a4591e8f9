"""
Process configuration: listen endpoint, persistence intervals and anomaly thresholds.

Values are fixed for the lifetime of the process. ``ServerConfig.from_env`` reads
``SENSORLOG_*`` environment variables (a ``.env`` file is loaded by the logger
module), and the ``serve`` CLI overrides them with command-line arguments.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

ENV_PREFIX = "SENSORLOG_"


@dataclass(frozen=True)
class Thresholds:
    """Normal operating bounds for each metric (inclusive)"""

    temp_min: float = 20.0
    temp_max: float = 26.0
    humidity_min: float = 40.0
    humidity_max: float = 60.0
    light_min: float = 300.0
    light_max: float = 800.0

    def __post_init__(self):
        for metric in ("temp", "humidity", "light"):
            low = getattr(self, f"{metric}_min")
            high = getattr(self, f"{metric}_max")
            if low > high:
                raise ValueError(f"{metric}_min ({low}) must not exceed {metric}_max ({high})")


@dataclass
class ServerConfig:
    """Configuration for the ingestion server"""

    # Listening endpoint
    host: str = "127.0.0.1"
    port: int = 9999
    buffer_size: int = 4096

    # Expected cadence of sensor updates (used by the simulator)
    sensor_update_interval: float = 5.0

    # Persistence
    snapshot_interval: float = 60.0
    export_interval: float = 300.0
    report_interval: float = 10.0  # 0 disables the periodic anomaly report
    tick_interval: float = 1.0
    shutdown_grace: float = 10.0  # max wait for handlers before the final flush
    snapshot_path: str = "sensor_data.bin"
    export_dir: str = "."
    export_prefix: str = "sensor_data_export_"
    export_suffix: str = ".json"

    # Connection handling
    poll_interval: float = 1.0
    receive_timeout: float = 1.0
    max_connections: int = 0  # 0 = one thread per connection, unbounded
    store_backend: str = "locked"

    thresholds: Thresholds = field(default_factory=Thresholds)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a configuration from SENSORLOG_* environment variables"""
        load_dotenv()
        defaults = cls()
        default_thresholds = defaults.thresholds

        thresholds = Thresholds(
            temp_min=_read_float_env("TEMP_MIN", default_thresholds.temp_min),
            temp_max=_read_float_env("TEMP_MAX", default_thresholds.temp_max),
            humidity_min=_read_float_env("HUMIDITY_MIN", default_thresholds.humidity_min),
            humidity_max=_read_float_env("HUMIDITY_MAX", default_thresholds.humidity_max),
            light_min=_read_float_env("LIGHT_MIN", default_thresholds.light_min),
            light_max=_read_float_env("LIGHT_MAX", default_thresholds.light_max),
        )

        return cls(
            host=_read_str_env("HOST", defaults.host),
            port=_read_int_env("PORT", defaults.port),
            buffer_size=_read_int_env("BUFFER_SIZE", defaults.buffer_size),
            sensor_update_interval=_read_float_env(
                "SENSOR_UPDATE_INTERVAL", defaults.sensor_update_interval
            ),
            snapshot_interval=_read_float_env("SNAPSHOT_INTERVAL", defaults.snapshot_interval),
            export_interval=_read_float_env("EXPORT_INTERVAL", defaults.export_interval),
            report_interval=_read_float_env("REPORT_INTERVAL", defaults.report_interval),
            snapshot_path=_read_str_env("SNAPSHOT_PATH", defaults.snapshot_path),
            export_dir=_read_str_env("EXPORT_DIR", defaults.export_dir),
            poll_interval=_read_float_env("POLL_INTERVAL", defaults.poll_interval),
            receive_timeout=_read_float_env("RECEIVE_TIMEOUT", defaults.receive_timeout),
            shutdown_grace=_read_float_env("SHUTDOWN_GRACE", defaults.shutdown_grace),
            max_connections=_read_int_env("MAX_CONNECTIONS", defaults.max_connections),
            store_backend=_read_str_env("STORE_BACKEND", defaults.store_backend),
            thresholds=thresholds,
        )


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(ENV_PREFIX + name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_int_env(name: str, default: int) -> int:
    candidate = _read_str_env(name, "")
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_float_env(name: str, default: float) -> float:
    candidate = _read_str_env(name, "")
    if not candidate:
        return default
    try:
        return float(candidate)
    except ValueError:
        return default
