"""
Connection supervisor: accepts clients and owns the shutdown signal.
"""

import socket
import threading

import structlog

from sensorlog.core.config import ServerConfig, Thresholds
from sensorlog.store.base import TelemetryStore

from .handler import ConnectionHandler
from .protocol import ERROR_BUSY
from .strategies import ConcurrencyStrategy, strategy_for

logger = structlog.get_logger(__name__)


class ConnectionSupervisor:
    """Accept loop multiplexing client sessions onto the shared store

    The accept call waits at most ``poll_interval`` seconds so the shutdown
    event is re-checked regularly. Once it is set the loop stops accepting,
    waits for every handler to finish and then sets ``closed``.
    """

    def __init__(
        self,
        config: ServerConfig,
        store: TelemetryStore,
        thresholds: Thresholds | None = None,
        strategy: ConcurrencyStrategy | None = None,
        shutdown_event: threading.Event | None = None,
    ):
        self.config = config
        self.store = store
        self.thresholds = thresholds or config.thresholds
        self.strategy = strategy or strategy_for(config.max_connections)
        self.shutdown_event = shutdown_event or threading.Event()
        self.closed = threading.Event()

        self.listener: socket.socket | None = None
        self._thread: threading.Thread | None = None

        self.stats = {
            "connections_accepted": 0,
            "connections_refused": 0,
            "accept_errors": 0,
        }

    @property
    def address(self) -> tuple[str, int]:
        """Bound (host, port); useful when listening on port 0"""
        if self.listener is None:
            raise RuntimeError("Supervisor is not bound")
        return self.listener.getsockname()[:2]

    def bind(self):
        """Create the listening socket

        Raises:
            OSError: If the address cannot be bound or listened on
        """
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.config.host, self.config.port))
            listener.listen(socket.SOMAXCONN)
            listener.settimeout(self.config.poll_interval)
        except OSError as e:
            listener.close()
            logger.error(
                "Failed to bind listening socket",
                host=self.config.host,
                port=self.config.port,
                error=str(e),
            )
            raise

        self.listener = listener
        host, port = self.address
        logger.info(
            "Server listening", host=host, port=port, strategy=self.strategy.name
        )

    def serve_forever(self):
        """Run the accept loop until shutdown() is called"""
        if self.listener is None:
            self.bind()

        try:
            while not self.shutdown_event.is_set():
                try:
                    conn, address = self.listener.accept()
                except TimeoutError:
                    continue
                except OSError as e:
                    if self.shutdown_event.is_set():
                        break
                    self.stats["accept_errors"] += 1
                    logger.error("Accept failed", error=str(e))
                    continue

                self._dispatch(conn, address)

        finally:
            self.listener.close()
            logger.info("Stopped accepting, waiting for handlers", active=self.strategy.active_count)
            self.strategy.join()
            self.closed.set()
            logger.info("Supervisor stopped", **self.stats)

    def start(self) -> threading.Thread:
        """Run serve_forever() on a background thread"""
        if self.listener is None:
            self.bind()
        self._thread = threading.Thread(target=self.serve_forever, name="accept-loop")
        self._thread.start()
        return self._thread

    def shutdown(self):
        """Request a graceful stop"""
        if not self.shutdown_event.is_set():
            logger.info("Shutdown requested")
        self.shutdown_event.set()

    def join(self, timeout: float | None = None):
        if self._thread is not None:
            self._thread.join(timeout)

    def _dispatch(self, conn: socket.socket, address: tuple):
        client = f"{address[0]}:{address[1]}"
        handler = ConnectionHandler(
            conn,
            client,
            self.store,
            self.thresholds,
            self.shutdown_event,
            buffer_size=self.config.buffer_size,
            receive_timeout=self.config.receive_timeout,
        )

        if self.strategy.submit(handler.run, name=f"handler-{client}"):
            self.stats["connections_accepted"] += 1
            return

        self.stats["connections_refused"] += 1
        try:
            conn.sendall(ERROR_BUSY.encode("utf-8"))
        except OSError as e:
            logger.debug("Could not notify refused client", client=client, error=str(e))
        finally:
            conn.close()
