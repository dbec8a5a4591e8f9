"""
Sensor Telemetry Server - CLI Entry Point
Ingests sensor readings over TCP, flags threshold violations and persists the log
"""

import argparse
import logging
import os
import signal
import sys
from dataclasses import replace

import structlog

from sensorlog.core.config import ServerConfig
from sensorlog.core.logger import LOG_FORMATS, format_from_name, setup_logging
from sensorlog.persistence.scheduler import PersistenceScheduler
from sensorlog.persistence.snapshot import restore_store
from sensorlog.server.supervisor import ConnectionSupervisor
from sensorlog.store import get_store, list_backends

logger = structlog.get_logger(__name__)


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Sensor telemetry ingestion server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
        Examples:
        # Defaults (127.0.0.1:9999, snapshot every 60s, export every 300s)
        python -m sensorlog.server.serve

        # Listen on all interfaces with a connection limit
        python -m sensorlog.server.serve --host 0.0.0.0 --max-connections 64

        # Faster persistence for local testing
        python -m sensorlog.server.serve --snapshot-interval 10 --export-interval 30

        # Using environment variables (or a .env file)
        export SENSORLOG_PORT=9000
        export SENSORLOG_TEMP_MAX=28
        python -m sensorlog.server.serve
        """,
    )

    # Network settings
    parser.add_argument("--host", help="Listen address (default: 127.0.0.1 or SENSORLOG_HOST)")
    parser.add_argument("--port", type=int, help="Listen port (default: 9999 or SENSORLOG_PORT)")
    parser.add_argument("--buffer-size", type=int, help="Receive buffer size in bytes")
    parser.add_argument(
        "--max-connections",
        type=int,
        help="Maximum concurrent connections, 0 for unbounded (default: 0)",
    )

    # Persistence settings
    parser.add_argument("--snapshot-path", help="Binary snapshot file (default: sensor_data.bin)")
    parser.add_argument("--snapshot-interval", type=float, help="Seconds between snapshots")
    parser.add_argument("--export-dir", help="Directory for JSON exports (default: .)")
    parser.add_argument("--export-interval", type=float, help="Seconds between JSON exports")
    parser.add_argument(
        "--report-interval",
        type=float,
        help="Seconds between historical anomaly reports, 0 to disable (default: 10)",
    )
    parser.add_argument("--store", choices=list_backends(), help="Store backend")

    # Logging
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=list(LOG_FORMATS),
        default=format_from_name(os.getenv("LOG_FORMAT")),
        help="Log output format (default: console or LOG_FORMAT env var)",
    )

    return parser.parse_args(argv)


def build_config_from_args(args) -> ServerConfig:
    """Build a ServerConfig from the environment, overridden by command-line arguments"""
    config = ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "buffer_size": args.buffer_size,
        "max_connections": args.max_connections,
        "snapshot_path": args.snapshot_path,
        "snapshot_interval": args.snapshot_interval,
        "export_dir": args.export_dir,
        "export_interval": args.export_interval,
        "report_interval": args.report_interval,
        "store_backend": args.store,
    }
    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})

    logger.info("Configuration built", config=config)
    return config


def run_server(config: ServerConfig) -> int:
    """Start the supervisor and the persistence scheduler and block until shutdown"""
    store = get_store(config.store_backend)
    restore_store(store, config.snapshot_path)

    supervisor = ConnectionSupervisor(config, store)
    try:
        supervisor.bind()
    except OSError:
        return 1

    scheduler = PersistenceScheduler(
        store, config, supervisor.shutdown_event, writers_done=supervisor.closed
    )

    def handle_signal(signum, frame):
        logger.info("Received signal, shutting down", signal=signal.Signals(signum).name)
        supervisor.shutdown()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    scheduler.start()
    try:
        supervisor.serve_forever()
    finally:
        supervisor.shutdown()
        scheduler.join()

    logger.info("Server stopped", records=len(store))
    return 0


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level), log_format=args.log_format)

    logger.info("Starting Sensor Telemetry Server")

    try:
        config = build_config_from_args(args)
        return run_server(config)

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Server failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
