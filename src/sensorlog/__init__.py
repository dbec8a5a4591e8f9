"""
Sensor telemetry ingestion server.

Streams temperature, humidity and light readings over TCP into a shared
in-memory log, flags threshold violations, and persists the log as binary
snapshots and JSON exports.

Usage:
    # Run the server
    python -m sensorlog.server.serve

    # Stream simulated readings
    python -m sensorlog.simulator.simulate --config dev
"""

__version__ = "1.0.0"
