"""
TCP ingestion server: connection supervisor, per-connection handlers and wire protocol.
"""

from .handler import ConnectionHandler
from .protocol import ACK, DecodeError, MessageType
from .strategies import BoundedThreadStrategy, ConcurrencyStrategy, ThreadPerConnection
from .supervisor import ConnectionSupervisor

__all__ = [
    "ACK",
    "BoundedThreadStrategy",
    "ConcurrencyStrategy",
    "ConnectionHandler",
    "ConnectionSupervisor",
    "DecodeError",
    "MessageType",
    "ThreadPerConnection",
]
