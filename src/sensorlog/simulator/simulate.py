"""
Sensor Simulator - CLI Entry Point
Streams simulated sensor readings to the telemetry server, or queries it
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace

import structlog

from sensorlog.core.logger import LOG_FORMATS, format_from_name, setup_logging
from sensorlog.simulator import (
    CHAOS_CONFIG,
    CLIMATE_FOCUS_CONFIG,
    DEV_CONFIG,
    NORMAL_CONFIG,
    SensorAnomalyType,
    SensorSimulator,
    SimulatorConfig,
)

logger = structlog.get_logger(__name__)


# Predefined configurations
CONFIGS = {
    "normal": NORMAL_CONFIG,
    "chaos": CHAOS_CONFIG,
    "climate": CLIMATE_FOCUS_CONFIG,
    "dev": DEV_CONFIG,
}


def parse_arguments(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description="Sensor simulator for the telemetry server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
            # Use predefined normal config
            python -m sensorlog.simulator.simulate --config normal

            # Use chaos config for 60 seconds
            python -m sensorlog.simulator.simulate --config chaos --duration 60

            # Custom configuration
            python -m sensorlog.simulator.simulate --sensors 10 --interval 0.5 --anomaly-prob 0.2

            # Records of one hour, newest first
            python -m sensorlog.simulator.simulate --query data --descending \\
                --start 2024-01-02T10:00:00.000Z --end 2024-01-02T10:59:59.999Z

            # Query the most severe anomalies of one day
            python -m sensorlog.simulator.simulate --query anomalies --sort-by deviation \\
                --descending --start 2024-01-02T00:00:00.000Z --end 2024-01-02T23:59:59.999Z
        """,
    )

    # Predefined config
    parser.add_argument(
        "--config", choices=list(CONFIGS.keys()), help="Use a predefined configuration"
    )

    # Server settings
    parser.add_argument(
        "--host",
        default=os.getenv("SENSORLOG_HOST", "127.0.0.1"),
        help="Server host (default: 127.0.0.1 or SENSORLOG_HOST env var)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("SENSORLOG_PORT", "9999")),
        help="Server port (default: 9999 or SENSORLOG_PORT env var)",
    )

    # Generation settings
    parser.add_argument("--sensors", type=int, help="Number of sensors to simulate")
    parser.add_argument("--interval", type=float, help="Interval between rounds in seconds")
    parser.add_argument(
        "--anomaly-prob", type=float, help="Probability of anomaly injection (0.0 to 1.0)"
    )
    parser.add_argument(
        "--anomalies",
        nargs="+",
        choices=[a.value for a in SensorAnomalyType],
        help="Specific anomaly types to enable",
    )
    parser.add_argument(
        "--duration", type=int, help="Duration to run in seconds (default: infinite)"
    )

    # Query mode
    parser.add_argument(
        "--query",
        choices=["all", "data", "anomalies"],
        help="Query the server instead of streaming readings",
    )
    parser.add_argument("--start", default="", help="Search window start (inclusive)")
    parser.add_argument("--end", default="", help="Search window end (inclusive)")
    parser.add_argument(
        "--sort-by", choices=["timestamp", "deviation"], default="timestamp", help="Sort key"
    )
    parser.add_argument("--descending", action="store_true", help="Sort in descending order")

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


def build_config_from_args(args) -> SimulatorConfig:
    """Build a SimulatorConfig from command-line arguments"""
    if args.config:
        config = CONFIGS[args.config]
        logger.info("Using predefined configuration", config_name=args.config)
    else:
        config = SimulatorConfig()
        logger.info("Using default configuration")

    overrides = {"host": args.host, "port": args.port}
    if args.sensors:
        overrides["num_sensors"] = args.sensors
    if args.interval:
        overrides["interval_seconds"] = args.interval
    if args.anomaly_prob is not None:
        overrides["anomaly_probability"] = args.anomaly_prob
    if args.anomalies:
        overrides["enabled_anomalies"] = [SensorAnomalyType(a) for a in args.anomalies]

    # Presets are shared module objects; never mutate them
    return replace(config, **overrides)


def run_query(simulator: SensorSimulator, args) -> None:
    if args.query == "all":
        result = simulator.fetch_all_data()
    elif args.query == "data":
        result = simulator.search_data(
            start=args.start, end=args.end, sort_by=args.sort_by, descending=args.descending
        )
    else:
        result = simulator.search_anomalies(
            start=args.start, end=args.end, sort_by=args.sort_by, descending=args.descending
        )
    print(json.dumps(result, indent=4, ensure_ascii=False))


def main(argv=None):
    """Main entry point"""
    args = parse_arguments(argv)

    setup_logging(level=getattr(logging, args.log_level), log_format=args.log_format)

    logger.info("Starting Sensor Simulator")

    try:
        config = build_config_from_args(args)
        simulator = SensorSimulator(config)

        if args.query:
            try:
                run_query(simulator, args)
            finally:
                simulator.close()
        else:
            simulator.run(duration_seconds=args.duration)

        logger.info("Simulator completed successfully")
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0

    except Exception as e:
        logger.error("Simulator failed", error=str(e), exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
