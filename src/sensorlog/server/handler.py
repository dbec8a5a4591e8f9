"""
Per-connection control loop: receive, decode, store, reply.
"""

import socket
import threading

import structlog

from sensorlog.anomaly.engine import check
from sensorlog.anomaly.search import search, search_data
from sensorlog.core.config import Thresholds
from sensorlog.store.base import TelemetryStore

from .protocol import (
    ACK,
    ERROR_INTERNAL,
    DecodeError,
    MessageType,
    decode_message,
    encode_reply,
    message_type,
    parse_record,
    parse_search_query,
)

logger = structlog.get_logger(__name__)

_PAYLOAD_PREVIEW = 200


class ConnectionHandler:
    """Serves one client connection until it closes, fails or shutdown is requested

    Receives use a timeout so the shutdown event is re-checked at least every
    ``receive_timeout`` seconds even when the peer is silent.
    """

    def __init__(
        self,
        conn: socket.socket,
        client: str,
        store: TelemetryStore,
        thresholds: Thresholds,
        shutdown_event: threading.Event,
        buffer_size: int = 4096,
        receive_timeout: float = 1.0,
    ):
        self.conn = conn
        self.client = client
        self.store = store
        self.thresholds = thresholds
        self.shutdown_event = shutdown_event
        self.buffer_size = buffer_size
        self.receive_timeout = receive_timeout

        self.stats = {
            "messages": 0,
            "records_stored": 0,
            "anomalies": 0,
            "decode_errors": 0,
            "internal_errors": 0,
        }

    def run(self):
        """Serve the connection; always closes the socket"""
        logger.info("Connection accepted", client=self.client)
        try:
            self.conn.settimeout(self.receive_timeout)
            self._serve()
        except OSError as e:
            logger.warning("Connection error", client=self.client, error=str(e))
        finally:
            self.conn.close()
            logger.info("Connection closed", client=self.client, **self.stats)

    def _serve(self):
        while not self.shutdown_event.is_set():
            try:
                payload = self.conn.recv(self.buffer_size)
            except TimeoutError:
                continue
            except ConnectionResetError:
                logger.warning("Connection reset by peer", client=self.client)
                return

            if not payload:
                logger.info("Connection closed by client", client=self.client)
                return

            reply = self.handle_message(payload)
            self.conn.sendall(encode_reply(reply))

    def handle_message(self, payload: bytes) -> str | list:
        """Process one inbound message and return the reply payload"""
        self.stats["messages"] += 1
        try:
            message = decode_message(payload)
            kind = message_type(message)

            if kind is MessageType.SENSOR_DATA:
                return self._ingest(message)

            if kind is MessageType.GET_ALL_DATA:
                return [record.to_dict() for record in self.store.snapshot()]

            query = parse_search_query(message)
            if kind is MessageType.SEARCH_DATA:
                records = search_data(self.store.snapshot(), self.thresholds, **query)
                return [record.to_dict() for record in records]

            findings = search(self.store.snapshot(), self.thresholds, **query)
            return [finding.to_dict() for finding in findings]

        except DecodeError as e:
            self.stats["decode_errors"] += 1
            logger.warning(
                "Rejected message",
                client=self.client,
                reason=e.detail or e.reply,
                payload=payload[:_PAYLOAD_PREVIEW].decode("utf-8", errors="replace"),
            )
            return e.reply

        except Exception as e:
            self.stats["internal_errors"] += 1
            logger.error(
                "Failed to process message", client=self.client, error=str(e), exc_info=True
            )
            return ERROR_INTERNAL

    def _ingest(self, message: dict) -> str:
        record = parse_record(message)

        # Inline check is informational only; every decoded record is stored
        descriptions = check(record, self.thresholds)
        if descriptions:
            self.stats["anomalies"] += 1
            for description in descriptions:
                logger.warning(
                    "Anomaly detected",
                    client=self.client,
                    sensor_id=record.sensor_id,
                    description=description,
                )

        self.store.append(record)
        self.stats["records_stored"] += 1
        logger.debug(
            "Reading stored",
            client=self.client,
            sensor_id=record.sensor_id,
            temperature=record.temperature,
            humidity=record.humidity,
            light=record.light,
        )
        return ACK
