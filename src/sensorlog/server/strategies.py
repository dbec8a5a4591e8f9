"""
Concurrency strategies for connection handlers.

The supervisor hands every accepted connection to a strategy. The strategy
decides whether the handler runs and on which thread, which makes the
resource policy under many connections an explicit configuration choice.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable

import structlog

logger = structlog.get_logger(__name__)


class ConcurrencyStrategy(ABC):
    """Abstract base class for handler scheduling policies"""

    def __init__(self):
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()

    @abstractmethod
    def submit(self, target: Callable[[], None], name: str | None = None) -> bool:
        """Run a handler

        Returns:
            False if the policy refuses the connection
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    def active_count(self) -> int:
        """Handlers still running"""
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            return len(self._threads)

    def join(self, timeout: float | None = None):
        """Wait for every submitted handler to finish"""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)

    def _spawn(self, target: Callable[[], None], name: str | None) -> threading.Thread:
        thread = threading.Thread(target=target, name=name)
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        thread.start()
        return thread

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(active={self.active_count})"


class ThreadPerConnection(ConcurrencyStrategy):
    """One thread per connection, no upper bound"""

    @property
    def name(self) -> str:
        return "thread_per_connection"

    def submit(self, target: Callable[[], None], name: str | None = None) -> bool:
        self._spawn(target, name)
        return True


class BoundedThreadStrategy(ConcurrencyStrategy):
    """One thread per connection, at most ``max_connections`` at a time

    Connections beyond the limit are refused immediately instead of queued.
    """

    def __init__(self, max_connections: int):
        super().__init__()
        if max_connections <= 0:
            raise ValueError("max_connections must be positive")
        self.max_connections = max_connections
        self._slots = threading.BoundedSemaphore(max_connections)

    @property
    def name(self) -> str:
        return "bounded"

    def submit(self, target: Callable[[], None], name: str | None = None) -> bool:
        if not self._slots.acquire(blocking=False):
            logger.warning("Connection limit reached", max_connections=self.max_connections)
            return False

        def run_and_release():
            try:
                target()
            finally:
                self._slots.release()

        try:
            self._spawn(run_and_release, name)
        except RuntimeError:
            self._slots.release()
            raise
        return True


# Registry of available strategies
STRATEGY_REGISTRY = {
    "thread_per_connection": ThreadPerConnection,
    "bounded": BoundedThreadStrategy,
}


def get_strategy(strategy_name: str, **kwargs) -> ConcurrencyStrategy:
    """Factory to create a concurrency strategy

    Raises:
        ValueError: If strategy_name is not registered
    """
    if strategy_name not in STRATEGY_REGISTRY:
        available = ", ".join(STRATEGY_REGISTRY.keys())
        raise ValueError(f"Unknown strategy '{strategy_name}'. Available strategies: {available}")

    return STRATEGY_REGISTRY[strategy_name](**kwargs)


def strategy_for(max_connections: int) -> ConcurrencyStrategy:
    """Pick the strategy matching a configured connection limit (0 = unbounded)"""
    if max_connections > 0:
        return get_strategy("bounded", max_connections=max_connections)
    return get_strategy("thread_per_connection")
