"""
Fluent Shipper

A fire-and-forget client for shipping log records to a Fluentd HTTP input.
Records are batched into requests and requests are batched onto connections,
with per-record delivery results reported back to the caller.
"""

__version__ = "0.1.0"

from shipper.core.emitter import Emitter
from shipper.core.chunk import Chunk, Session
from shipper.serializer import Serializer
from shipper.transport.http import FireForgetHttpTransport
from shipper.transport.interface import ConnectError, Transport

__all__ = [
    "Emitter",
    "Chunk",
    "Session",
    "Serializer",
    "FireForgetHttpTransport",
    "ConnectError",
    "Transport",
]
