"""
Core shipper components.

This module contains the chunk and session models and the batch emitter
that drives them through a transport.
"""

from shipper.core.chunk import Chunk, ResultMap, Session
from shipper.core.emitter import Emitter

__all__ = [
    "Chunk",
    "ResultMap",
    "Session",
    "Emitter",
]
