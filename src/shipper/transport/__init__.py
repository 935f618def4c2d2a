"""
Transport layer.

Puts chunks on the wire: request construction, write retry and the
fire-and-forget HTTP transport.
"""

from shipper.transport.interface import Connection, ConnectError, Transport
from shipper.transport.http import FireForgetHttpTransport, SocketConnection
from shipper.transport.writer import RetryingWriter, WriteResult, WriteState

__all__ = [
    "Connection",
    "ConnectError",
    "Transport",
    "FireForgetHttpTransport",
    "SocketConnection",
    "RetryingWriter",
    "WriteResult",
    "WriteState",
]
