"""
Sensor fleet simulator sending readings to the ingestion server over TCP.
"""

import json
import random
import socket
import time
from typing import Any

import structlog

from sensorlog.server.protocol import ACK, MessageType

from .models import SimulatorConfig
from .sensor_state import SensorState

logger = structlog.get_logger(__name__)


class SensorSimulator:
    """Simulates a fleet of sensors streaming readings to the server"""

    def __init__(self, config: SimulatorConfig):
        self.config = config
        logger.info("Initializing sensor simulator", config=config)

        self.sensors: list[SensorState] = [
            SensorState(f"sensor-{i + 1:03d}") for i in range(config.num_sensors)
        ]
        self.sock: socket.socket | None = None

        self.stats = {
            "sent": 0,
            "acknowledged": 0,
            "rejected": 0,
            "anomalies_injected": 0,
            "connection_errors": 0,
        }

        logger.info(
            "Anomaly configuration",
            probability=config.anomaly_probability,
            enabled_anomalies=[a.value for a in config.enabled_anomalies],
        )

    def connect(self):
        """Open the connection to the server if needed"""
        if self.sock is not None:
            return
        try:
            self.sock = socket.create_connection(
                (self.config.host, self.config.port), timeout=self.config.reply_timeout_seconds
            )
            logger.info("Connected to server", host=self.config.host, port=self.config.port)
        except OSError as e:
            logger.error(
                "Failed to connect to server",
                host=self.config.host,
                port=self.config.port,
                error=str(e),
            )
            raise

    def close(self):
        """Close the server connection"""
        if self.sock is not None:
            self.sock.close()
            self.sock = None
            logger.info("Connection closed")

    def send_message(self, message: dict[str, Any]) -> str:
        """Send one message and return the server's reply as text

        Raises:
            ConnectionError: If the server closed the connection
            OSError: On any other transport failure
        """
        self.connect()
        self.sock.sendall(json.dumps(message).encode("utf-8"))
        reply = self.sock.recv(self.config.buffer_size)
        if not reply:
            raise ConnectionError("Server closed the connection")
        return reply.decode("utf-8", errors="replace")

    def request(self, message: dict[str, Any]) -> Any:
        """Send a query and read a JSON reply, which may span several reads

        Raises:
            RuntimeError: If the server answered with an error status
        """
        self.connect()
        self.sock.sendall(json.dumps(message).encode("utf-8"))

        received = b""
        while True:
            chunk = self.sock.recv(self.config.buffer_size)
            if not chunk:
                raise ConnectionError("Server closed the connection")
            received += chunk
            text = received.decode("utf-8", errors="replace")
            if text.startswith("Error:"):
                raise RuntimeError(text)
            try:
                return json.loads(text)
            except json.JSONDecodeError:
                continue

    def fetch_all_data(self) -> list[dict[str, Any]]:
        """All records currently held by the server"""
        return self.request({"type": MessageType.GET_ALL_DATA.value})

    def search_anomalies(
        self, start: str = "", end: str = "", sort_by: str = "timestamp", descending: bool = False
    ) -> list[dict[str, Any]]:
        """Run a historical anomaly search on the server"""
        return self._windowed_query(MessageType.SEARCH_ANOMALIES, start, end, sort_by, descending)

    def search_data(
        self, start: str = "", end: str = "", sort_by: str = "timestamp", descending: bool = False
    ) -> list[dict[str, Any]]:
        """Fetch every record inside a time window"""
        return self._windowed_query(MessageType.SEARCH_DATA, start, end, sort_by, descending)

    def _windowed_query(
        self, kind: MessageType, start: str, end: str, sort_by: str, descending: bool
    ) -> list[dict[str, Any]]:
        return self.request(
            {
                "type": kind.value,
                "start": start,
                "end": end,
                "sort_by": sort_by,
                "descending": descending,
            }
        )

    def generate_round(self) -> int:
        """Send one reading per sensor

        Returns:
            Number of readings acknowledged by the server
        """
        acknowledged = 0
        for sensor in self.sensors:
            anomaly = None
            if random.random() < self.config.anomaly_probability:
                anomaly = random.choice(self.config.enabled_anomalies)

            reading = sensor.generate_reading(inject_anomaly=anomaly)
            if anomaly:
                self.stats["anomalies_injected"] += 1
                logger.warning(
                    "Anomaly injected", anomaly_type=anomaly.value, sensor_id=sensor.sensor_id
                )

            try:
                reply = self.send_message(reading)
            except OSError as e:
                self.stats["connection_errors"] += 1
                logger.error("Failed to send reading", sensor_id=sensor.sensor_id, error=str(e))
                self.close()
                break

            self.stats["sent"] += 1
            if reply == ACK:
                self.stats["acknowledged"] += 1
                acknowledged += 1
            else:
                self.stats["rejected"] += 1
                logger.warning("Reading rejected", sensor_id=sensor.sensor_id, reply=reply)

        return acknowledged

    def run(self, duration_seconds: int = None):
        """Run the simulator continuously or for a specified duration

        Args:
            duration_seconds: Optional duration in seconds. If None, runs indefinitely.
        """
        logger.info(
            "Starting simulator",
            host=self.config.host,
            port=self.config.port,
            duration=duration_seconds if duration_seconds else "indefinite",
        )

        start_time = time.time()
        last_log_time = start_time

        try:
            while True:
                self.generate_round()

                elapsed = time.time() - start_time

                # Log stats every 10 seconds
                if time.time() - last_log_time >= 10:
                    logger.info("Simulator stats", elapsed_sec=round(elapsed, 1), **self.stats)
                    last_log_time = time.time()

                if duration_seconds and elapsed >= duration_seconds:
                    logger.info("Duration limit reached", duration_seconds=duration_seconds)
                    break

                time.sleep(self.config.interval_seconds)

        except KeyboardInterrupt:
            logger.info("Received interrupt signal, stopping simulator")

        finally:
            elapsed = time.time() - start_time
            self.close()
            logger.info("Simulator stopped", elapsed_sec=round(elapsed, 1), **self.stats)
